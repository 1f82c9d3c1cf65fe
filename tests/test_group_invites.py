from datetime import timedelta

import pytest
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError

from gamenight.models.event import Event
from gamenight.models.group import GameGroup
from gamenight.models.group_member import GroupMember, MemberRole
from gamenight.services.group_invites import get_invite, issue_group, regenerate_invite
from gamenight.services.group_membership import join_group
from gamenight.services.invite_verification import verify_invite
from gamenight.services.results import ErrorCode

from conftest import T0


def test_issue_creates_group_with_admin_creator(db, users, group):
    assert group.name == "Game Night"
    assert len(group.join_code) == 6
    assert group.join_code == group.join_code.upper()

    members = db.query(GroupMember).filter_by(group_id=group.id).all()
    assert [(m.user_id, m.role) for m in members] == [(users["alice"], MemberRole.admin)]

    ev = db.query(Event).filter_by(group_id=group.id, type="group_created").one()
    assert ev.actor_id == users["alice"]


def test_issue_sets_one_hour_expiry(db, users):
    result = issue_group(db, "Game Night", users["alice"], now=T0)
    assert result.invite.expires_at == T0 + timedelta(hours=1)
    assert result.invite.is_expired is False


def test_issue_requires_name(db, users):
    result = issue_group(db, "   ", users["alice"])
    assert not result.ok
    assert result.error is ErrorCode.invalid_input
    assert db.query(GameGroup).count() == 0


def test_issue_requires_identity(db):
    result = issue_group(db, "Game Night", None)
    assert result.error is ErrorCode.not_authenticated


def test_issue_requires_registered_user(db, users):
    result = issue_group(db, "Game Night", 9999)
    assert result.error is ErrorCode.not_found
    assert result.message == "user_not_found"


def test_issue_is_atomic_when_membership_insert_fails(db, session_factory, users):
    def boom(mapper, connection, target):
        raise SQLAlchemyError("membership insert failed")

    event.listen(GroupMember, "before_insert", boom)
    try:
        result = issue_group(db, "Game Night", users["alice"], now=T0)
    finally:
        event.remove(GroupMember, "before_insert", boom)

    assert not result.ok
    assert result.error is ErrorCode.store_failure

    fresh = session_factory()
    try:
        assert fresh.query(GameGroup).count() == 0
        assert fresh.query(GroupMember).count() == 0
        assert fresh.query(Event).count() == 0
    finally:
        fresh.close()


def test_join_code_collision_is_retried(db, users, group, monkeypatch):
    codes = iter([group.join_code, group.join_code, "ZZZ999"])
    monkeypatch.setattr("gamenight.services.group_invites.generate_join_code", lambda: next(codes))

    result = issue_group(db, "Second Table", users["bob"], now=T0)
    assert result.ok
    assert result.group.join_code == "ZZZ999"


def test_join_code_exhaustion_reports_failure(db, users, group, monkeypatch):
    monkeypatch.setattr("gamenight.services.group_invites.generate_join_code", lambda: group.join_code)

    result = issue_group(db, "Second Table", users["bob"], now=T0)
    assert result.error is ErrorCode.store_failure
    assert result.message == "join_code_unavailable"
    assert db.query(GameGroup).count() == 1


def test_verify_succeeds_for_issued_pair(db, group):
    result = verify_invite(db, group.join_code, group.invite_token, now=T0)
    assert result.ok
    assert result.verified.group_id == group.id
    assert result.verified.name == "Game Night"


def test_verify_is_case_insensitive_on_code_only(db, group):
    assert verify_invite(db, group.join_code.lower(), group.invite_token, now=T0).ok

    result = verify_invite(db, group.join_code, group.invite_token.upper(), now=T0)
    # uuid4 hex в нижнем регистре: токен в верхнем регистре уже другой токен
    assert result.error is ErrorCode.invalid_credential


@pytest.mark.parametrize("decorate", [" {} ", "token={}", "{}\n"])
def test_verify_requires_exact_token(db, group, decorate):
    result = verify_invite(db, group.join_code, decorate.format(group.invite_token), now=T0)
    assert result.error is ErrorCode.invalid_credential
    assert result.message == "invalid_invite"


def test_verify_expiry_boundaries(db, group):
    assert verify_invite(db, group.join_code, group.invite_token, now=T0 + timedelta(minutes=30)).ok
    assert verify_invite(db, group.join_code, group.invite_token, now=T0 + timedelta(hours=1)).ok

    late = verify_invite(db, group.join_code, group.invite_token, now=T0 + timedelta(minutes=90))
    assert not late.ok
    assert late.error is ErrorCode.expired


@pytest.mark.parametrize(
    "code, token",
    [
        ("XXXXXX", None),
        (None, "whatever"),
        ("", ""),
    ],
)
def test_verify_rejects_missing_or_unknown_credentials(db, group, code, token):
    if token is None:
        token = group.invite_token
    result = verify_invite(db, code, token, now=T0)
    assert result.error is ErrorCode.invalid_credential


def test_verify_does_not_mutate(db, group):
    before = (group.invite_token, group.invite_token_expires_at)
    verify_invite(db, group.join_code, group.invite_token, now=T0)
    verify_invite(db, group.join_code, group.invite_token, now=T0 + timedelta(hours=2))
    db.refresh(group)
    assert (group.invite_token, group.invite_token_expires_at) == before


def test_regenerate_invalidates_previous_token(db, users, group):
    old_token = group.invite_token

    result = regenerate_invite(db, group.id, users["alice"], now=T0 + timedelta(minutes=10))
    assert result.ok
    assert result.invite.invite_token != old_token
    assert result.invite.join_code == group.join_code
    assert result.invite.expires_at == T0 + timedelta(minutes=70)

    stale = verify_invite(db, group.join_code, old_token, now=T0 + timedelta(minutes=11))
    assert stale.error is ErrorCode.invalid_credential

    fresh = verify_invite(db, group.join_code, result.invite.invite_token, now=T0 + timedelta(minutes=11))
    assert fresh.ok


def test_regenerate_allowed_for_plain_member(db, users, group):
    join_group(db, group.id, users["bob"], now=T0)
    result = regenerate_invite(db, group.id, users["bob"], now=T0)
    assert result.ok


def test_regenerate_revives_expired_invite(db, users, group):
    later = T0 + timedelta(hours=5)
    result = regenerate_invite(db, group.id, users["alice"], now=later)
    assert verify_invite(db, group.join_code, result.invite.invite_token, now=later).ok


def test_regenerate_requires_membership(db, users, group):
    result = regenerate_invite(db, group.id, users["carol"], now=T0)
    assert result.error is ErrorCode.not_found
    assert result.message == "not_group_member"


def test_regenerate_unknown_group(db, users):
    result = regenerate_invite(db, 424242, users["alice"], now=T0)
    assert result.error is ErrorCode.not_found
    assert result.message == "group_not_found"


def test_get_invite_for_members_only(db, users, group):
    ok = get_invite(db, group.id, users["alice"], now=T0 + timedelta(hours=2))
    assert ok.ok
    assert ok.invite.is_expired is True

    denied = get_invite(db, group.id, users["bob"], now=T0)
    assert denied.error is ErrorCode.not_found
