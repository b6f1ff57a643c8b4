import pytest
from fastapi import HTTPException
from sqlalchemy import select

from app.models.entities import Family, FamilyMembership, FamilyRoleEnum, Member, MembershipTypeEnum
from app.services.subfamily import (
    PRUNE_DEACTIVATE,
    compute_auto_members,
    recalculate_subfamily_memberships,
    resync_affected_subfamilies,
)


def _members(db, *names):
    members = [Member(name=name) for name in names]
    db.add_all(members)
    db.flush()
    return members


def _sub_family(db, head, creator=None):
    creator = creator or head
    main = Family(name="Main", creator_id=creator.id, head_of_family_id=creator.id)
    db.add(main)
    db.flush()
    family = Family(
        name="Branch",
        is_sub_family=True,
        creator_id=creator.id,
        head_of_family_id=head.id,
        parent_family_id=main.id,
    )
    db.add(family)
    db.flush()
    return family


def _rows(db, family_id):
    return {
        row.member_id: row
        for row in db.execute(select(FamilyMembership).where(FamilyMembership.family_id == family_id)).scalars()
    }


def test_lineage_includes_children_and_their_spouses(db_session):
    head, child_one, child_two, spouse = _members(db_session, "H", "C1", "C2", "S1")
    head.children.extend([child_one, child_two])
    child_one.spouses.append(spouse)
    family = _sub_family(db_session, head)

    stats = recalculate_subfamily_memberships(db_session, family.id)
    db_session.commit()

    assert stats.member_ids == {head.id, child_one.id, child_two.id, spouse.id}
    assert stats.created == 4
    rows = _rows(db_session, family.id)
    assert rows[head.id].role == FamilyRoleEnum.head
    assert rows[spouse.id].role == FamilyRoleEnum.member
    assert all(row.type == MembershipTypeEnum.sub for row in rows.values())
    assert all(row.auto_enrolled and row.is_active and not row.manually_edited for row in rows.values())


def test_lineage_reaches_grandchildren_and_head_spouse(db_session):
    head, wife, child, grandchild, unrelated = _members(db_session, "H", "W", "C", "G", "U")
    wife.spouses.append(head)
    head.children.append(child)
    grandchild.parents.append(child)
    db_session.flush()

    assert compute_auto_members(head) == {head.id, wife.id, child.id, grandchild.id}
    assert unrelated.id not in compute_auto_members(head)


def test_recalculation_is_idempotent(db_session):
    head, child = _members(db_session, "H", "C")
    head.children.append(child)
    family = _sub_family(db_session, head)

    recalculate_subfamily_memberships(db_session, family.id)
    db_session.commit()
    again = recalculate_subfamily_memberships(db_session, family.id)

    assert again.writes == 0
    assert again.unchanged == 2
    assert len(_rows(db_session, family.id)) == 2


def test_manually_edited_rows_are_left_alone(db_session):
    head, child = _members(db_session, "H", "C")
    head.children.append(child)
    family = _sub_family(db_session, head)
    db_session.add(
        FamilyMembership(
            member_id=child.id,
            family_id=family.id,
            role=FamilyRoleEnum.viewer,
            is_active=False,
            manually_edited=True,
        )
    )
    db_session.flush()

    stats = recalculate_subfamily_memberships(db_session, family.id)

    assert stats.skipped_manual == 1
    row = _rows(db_session, family.id)[child.id]
    assert row.is_active is False
    assert row.role == FamilyRoleEnum.viewer


def test_cyclic_parent_edges_terminate(db_session):
    head, child = _members(db_session, "H", "C")
    head.children.append(child)
    child.children.append(head)
    family = _sub_family(db_session, head)

    stats = recalculate_subfamily_memberships(db_session, family.id)

    assert stats.member_ids == {head.id, child.id}


def test_deactivate_policy_prunes_stale_auto_rows(db_session):
    head, child, creator = _members(db_session, "H", "C", "Creator")
    head.children.append(child)
    family = _sub_family(db_session, head, creator=creator)
    db_session.add(FamilyMembership(member_id=creator.id, family_id=family.id, role=FamilyRoleEnum.admin))
    recalculate_subfamily_memberships(db_session, family.id)
    db_session.commit()

    head.children.remove(child)
    kept = recalculate_subfamily_memberships(db_session, family.id)
    assert kept.deactivated == 0
    assert _rows(db_session, family.id)[child.id].is_active is True

    pruned = recalculate_subfamily_memberships(db_session, family.id, prune_policy=PRUNE_DEACTIVATE)
    rows = _rows(db_session, family.id)
    assert pruned.deactivated == 1
    assert rows[child.id].is_active is False
    assert rows[creator.id].is_active is True


def test_deactivate_policy_leaves_manually_edited_auto_rows_alone(db_session):
    head, child, outsider = _members(db_session, "H", "C", "X")
    head.children.append(child)
    family = _sub_family(db_session, head)
    db_session.add(
        FamilyMembership(
            member_id=outsider.id,
            family_id=family.id,
            role=FamilyRoleEnum.member,
            is_active=True,
            auto_enrolled=True,
            manually_edited=True,
        )
    )
    db_session.flush()

    stats = recalculate_subfamily_memberships(db_session, family.id, prune_policy=PRUNE_DEACTIVATE)

    assert stats.deactivated == 0
    assert stats.skipped_manual == 0
    assert _rows(db_session, family.id)[outsider.id].is_active is True


def test_unknown_prune_policy_is_rejected(db_session):
    (head,) = _members(db_session, "H")
    family = _sub_family(db_session, head)

    with pytest.raises(ValueError):
        recalculate_subfamily_memberships(db_session, family.id, prune_policy="drop")


def test_main_family_is_not_a_valid_target(db_session):
    (head,) = _members(db_session, "H")
    family = Family(name="Main", creator_id=head.id, head_of_family_id=head.id)
    db_session.add(family)
    db_session.flush()

    with pytest.raises(HTTPException) as exc_info:
        recalculate_subfamily_memberships(db_session, family.id)
    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "invalid sub-family for membership calculation"


def test_missing_family_is_not_a_valid_target(db_session):
    with pytest.raises(HTTPException) as exc_info:
        recalculate_subfamily_memberships(db_session, 9999)
    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "invalid sub-family for membership calculation"


def test_headless_subfamily_is_not_a_valid_target(db_session):
    (creator,) = _members(db_session, "Creator")
    family = Family(name="Branch", is_sub_family=True, creator_id=creator.id, head_of_family_id=None)
    db_session.add(family)
    db_session.flush()

    with pytest.raises(HTTPException) as exc_info:
        recalculate_subfamily_memberships(db_session, family.id)
    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "invalid sub-family for membership calculation"


def test_new_descendant_resyncs_ancestor_headed_subfamilies(db_session):
    head, child, grandchild = _members(db_session, "H", "C", "G")
    head.children.append(child)
    family = _sub_family(db_session, head)
    recalculate_subfamily_memberships(db_session, family.id)

    child.children.append(grandchild)
    results = resync_affected_subfamilies(db_session, [child.id, grandchild.id])

    assert [item.family_id for item in results] == [family.id]
    assert grandchild.id in _rows(db_session, family.id)
