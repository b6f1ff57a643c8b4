import pytest
from fastapi import HTTPException

from app.core.auth import AuthContext
from app.models.entities import Family, FamilyMembership, FamilyRoleEnum, Member
from app.services.access import (
    current_member,
    shares_family,
    verify_family_access,
    verify_family_admin_access,
    verify_member_access,
)


def _family_with(db, roles):
    members = {name: Member(name=name, email=f"{name}@example.com") for name in roles}
    db.add_all(members.values())
    db.flush()
    creator = next(iter(members.values()))
    family = Family(name="Household", creator_id=creator.id, head_of_family_id=creator.id)
    db.add(family)
    db.flush()
    for name, role in roles.items():
        if role is not None:
            db.add(FamilyMembership(member_id=members[name].id, family_id=family.id, role=role))
    db.commit()
    return family, members


def test_head_and_admin_pass_admin_check(db_session):
    family, members = _family_with(
        db_session, {"ann": FamilyRoleEnum.admin, "hal": FamilyRoleEnum.head, "mo": FamilyRoleEnum.member}
    )

    assert verify_family_admin_access(db_session, members["ann"].id, family.id).role == FamilyRoleEnum.admin
    assert verify_family_admin_access(db_session, members["hal"].id, family.id).role == FamilyRoleEnum.head
    with pytest.raises(HTTPException) as exc_info:
        verify_family_admin_access(db_session, members["mo"].id, family.id)
    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == "admin access required for this family"


def test_inactive_membership_denies_family_access(db_session):
    family, members = _family_with(db_session, {"ann": FamilyRoleEnum.admin, "old": FamilyRoleEnum.member})
    row = db_session.query(FamilyMembership).filter_by(member_id=members["old"].id).one()
    row.is_active = False
    db_session.commit()

    with pytest.raises(HTTPException) as exc_info:
        verify_family_access(db_session, members["old"].id, family.id)
    assert exc_info.value.status_code == 403


def test_member_access_requires_a_shared_family(db_session):
    _, members = _family_with(db_session, {"ann": FamilyRoleEnum.admin, "bo": FamilyRoleEnum.member, "eve": None})

    assert shares_family(db_session, members["ann"].id, members["bo"].id)
    assert shares_family(db_session, members["eve"].id, members["eve"].id)
    verify_member_access(db_session, members["ann"].id, members["bo"].id)
    with pytest.raises(HTTPException) as exc_info:
        verify_member_access(db_session, members["ann"].id, members["eve"].id)
    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == "access denied to this member"


def test_current_member_needs_identity_and_profile(db_session):
    with pytest.raises(HTTPException) as missing:
        current_member(db_session, None)
    assert missing.value.status_code == 401

    with pytest.raises(HTTPException) as unknown:
        current_member(db_session, AuthContext(email="nobody@example.com"))
    assert unknown.value.status_code == 404
