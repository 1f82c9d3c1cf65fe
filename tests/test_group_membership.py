import threading
from datetime import timedelta

from gamenight.models.event import Event
from gamenight.models.group_member import GroupMember, MemberRole
from gamenight.services import group_membership
from gamenight.services.group_invites import regenerate_invite
from gamenight.services.group_membership import (
    join_by_code,
    join_group,
    join_with_token,
    preview_invite,
)
from gamenight.services.results import ErrorCode

from conftest import T0


def _rows(db, group_id, user_id):
    return db.query(GroupMember).filter_by(group_id=group_id, user_id=user_id).count()


def test_join_with_token_admits_member(db, users, group):
    result = join_with_token(db, group.join_code.lower(), group.invite_token, users["bob"], now=T0)
    assert result.ok
    assert result.already_member is False
    assert result.membership.role is MemberRole.member
    assert result.verified.group_id == group.id
    assert _rows(db, group.id, users["bob"]) == 1


def test_join_is_idempotent(db, users, group):
    first = join_group(db, group.id, users["bob"], now=T0)
    second = join_group(db, group.id, users["bob"], now=T0)

    assert first.ok and not first.already_member
    assert second.ok and second.already_member
    assert second.error is None
    assert second.membership.id == first.membership.id
    assert _rows(db, group.id, users["bob"]) == 1


def test_join_writes_one_event_per_new_member(db, users, group):
    join_group(db, group.id, users["bob"], now=T0)
    join_group(db, group.id, users["bob"], now=T0)

    events = db.query(Event).filter_by(type="member_joined", group_id=group.id).all()
    assert len(events) == 1
    assert events[0].actor_id == users["bob"]
    assert events[0].target_user_id == users["bob"]
    assert events[0].data == {"via": "direct"}
    assert "idempotency_key" not in Event.__table__.c


def test_creator_rejoin_reports_already_member(db, users, group):
    result = join_with_token(db, group.join_code, group.invite_token, users["alice"], now=T0)
    assert result.ok and result.already_member
    assert result.membership.role is MemberRole.admin


def test_join_with_expired_token(db, users, group):
    result = join_with_token(db, group.join_code, group.invite_token, users["bob"], now=T0 + timedelta(minutes=90))
    assert result.error is ErrorCode.expired
    assert _rows(db, group.id, users["bob"]) == 0


def test_join_with_rotated_token(db, users, group):
    old_token = group.invite_token
    regenerate_invite(db, group.id, users["alice"], now=T0)

    result = join_with_token(db, group.join_code, old_token, users["bob"], now=T0)
    assert result.error is ErrorCode.invalid_credential
    assert _rows(db, group.id, users["bob"]) == 0


def test_join_requires_identity(db, group):
    assert join_with_token(db, group.join_code, group.invite_token, None, now=T0).error is ErrorCode.not_authenticated
    assert join_group(db, group.id, None).error is ErrorCode.not_authenticated


def test_join_unknown_group(db, users):
    result = join_group(db, 31337, users["bob"], now=T0)
    assert result.error is ErrorCode.not_found


def test_racing_insert_reported_as_already_member(db, users, group, monkeypatch):
    """Проверка «до вставки» проиграла гонку: запись уже есть, INSERT упирается в UNIQUE."""
    join_group(db, group.id, users["bob"], now=T0)

    real_get_membership = group_membership.get_membership
    calls = {"n": 0}

    def stale_first_lookup(session, group_id, user_id):
        calls["n"] += 1
        if calls["n"] == 1:
            return None
        return real_get_membership(session, group_id, user_id)

    monkeypatch.setattr(group_membership, "get_membership", stale_first_lookup)

    result = join_group(db, group.id, users["bob"], now=T0)
    assert result.ok
    assert result.already_member
    assert result.error is None
    assert calls["n"] == 2
    assert _rows(db, group.id, users["bob"]) == 1


def test_concurrent_joins_leave_single_row(session_factory, users, group):
    n = 8
    code, token = group.join_code, group.invite_token
    barrier = threading.Barrier(n)
    results = []
    lock = threading.Lock()

    def worker():
        session = session_factory()
        try:
            barrier.wait()
            r = join_with_token(session, code, token, users["carol"], now=T0)
            with lock:
                results.append((r.ok, r.already_member, r.error))
        finally:
            session.close()

    threads = [threading.Thread(target=worker) for _ in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == n
    assert all(ok for ok, _, _ in results), results
    assert sum(1 for _, already, _ in results if not already) == 1

    check = session_factory()
    try:
        assert _rows(check, group.id, users["carol"]) == 1
    finally:
        check.close()


def test_join_by_code_disabled_by_default(db, users, group, monkeypatch):
    monkeypatch.setattr(group_membership, "LEGACY_CODE_JOIN_ENABLED", False)
    result = join_by_code(db, group.join_code, users["bob"], now=T0)
    assert result.error is ErrorCode.invalid_credential
    assert result.message == "code_only_join_disabled"


def test_join_by_code_ignores_expiry_when_enabled(db, users, group):
    result = join_by_code(db, group.join_code.lower(), users["bob"], now=T0 + timedelta(days=3), enabled=True)
    assert result.ok
    assert _rows(db, group.id, users["bob"]) == 1

    again = join_by_code(db, group.join_code, users["bob"], enabled=True)
    assert again.ok and again.already_member


def test_join_by_code_unknown_code(db, users, group):
    result = join_by_code(db, "NOPE00", users["bob"], enabled=True)
    assert result.error is ErrorCode.invalid_credential
    assert result.message == "invalid_join_code"


def test_preview_reports_membership_without_writing(db, users, group):
    preview = preview_invite(db, group.join_code, group.invite_token, users["bob"], now=T0)
    assert preview.ok
    assert preview.verified.member_count == 1
    assert preview.already_member is False
    assert _rows(db, group.id, users["bob"]) == 0

    mine = preview_invite(db, group.join_code, group.invite_token, users["alice"], now=T0)
    assert mine.already_member is True


def test_preview_of_expired_invite(db, users, group):
    result = preview_invite(db, group.join_code, group.invite_token, users["bob"], now=T0 + timedelta(hours=2))
    assert result.error is ErrorCode.expired
