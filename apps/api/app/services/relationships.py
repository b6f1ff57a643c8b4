from __future__ import annotations

import logging
from enum import Enum

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.entities import Member
from app.services.access import verify_member_access
from app.services.subfamily import resync_affected_subfamilies

logger = logging.getLogger(__name__)


class RelationshipTypeEnum(str, Enum):
    parent = "PARENT"
    child = "CHILD"
    spouse = "SPOUSE"


def connect(member: Member, related: Member, relationship_type: RelationshipTypeEnum) -> bool:
    """Link related to member as its parent, child or spouse. Returns False if the edge already existed."""
    if relationship_type == RelationshipTypeEnum.parent:
        if related in member.parents:
            return False
        member.parents.append(related)
    elif relationship_type == RelationshipTypeEnum.child:
        if related in member.children:
            return False
        member.children.append(related)
    else:
        if related in member.all_spouses:
            return False
        member.spouses.append(related)
    return True


def disconnect(member: Member, related: Member, relationship_type: RelationshipTypeEnum) -> bool:
    removed = False
    if relationship_type == RelationshipTypeEnum.parent:
        if related in member.parents:
            member.parents.remove(related)
            removed = True
    elif relationship_type == RelationshipTypeEnum.child:
        if related in member.children:
            member.children.remove(related)
            removed = True
    else:
        for edges in (member.spouses, member.spouses_reverse):
            if related in edges:
                edges.remove(related)
                removed = True
    return removed


def _load_pair(db: Session, actor_id: int, target_id: int, related_id: int) -> tuple[Member, Member]:
    target = db.get(Member, target_id)
    if target is None:
        raise HTTPException(status_code=404, detail="target member not found")
    related = db.get(Member, related_id)
    if related is None:
        raise HTTPException(status_code=404, detail="related member not found")
    if target_id == related_id:
        raise HTTPException(status_code=400, detail="cannot create relationship with yourself")
    verify_member_access(db, actor_id, target_id)
    verify_member_access(db, actor_id, related_id)
    return target, related


def add_relationship(
    db: Session,
    actor_id: int,
    target_id: int,
    related_id: int,
    relationship_type: RelationshipTypeEnum,
) -> str:
    target, related = _load_pair(db, actor_id, target_id, related_id)
    if connect(target, related, relationship_type):
        logger.info("member %s added %s edge %s -> %s", actor_id, relationship_type.value, target.id, related.id)
        resync_affected_subfamilies(db, [target.id, related.id])
    return f"{relationship_type.value.lower()} relationship added successfully"


def remove_relationship(
    db: Session,
    actor_id: int,
    target_id: int,
    related_id: int,
    relationship_type: RelationshipTypeEnum,
) -> str:
    target, related = _load_pair(db, actor_id, target_id, related_id)
    if not disconnect(target, related, relationship_type):
        raise HTTPException(status_code=404, detail="relationship not found")
    logger.info("member %s removed %s edge %s -> %s", actor_id, relationship_type.value, target.id, related.id)
    resync_affected_subfamilies(db, [target.id, related.id])
    return f"{relationship_type.value.lower()} relationship removed successfully"
