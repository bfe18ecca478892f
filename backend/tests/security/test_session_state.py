"""Session holder lifecycle and derived role state."""

from __future__ import annotations

from repairdesk.security.roles import PERMISSIONS, PermissionLevel, Resource
from repairdesk.security.session_state import SessionState, SessionStatus, parse_auth_user

ADMIN_SESSION = {
    "user": {
        "id": "u-1",
        "name": "Ada",
        "email": "ada@example.com",
        "image": None,
        "isStaff": True,
        "isSuperuser": False,
        "isActive": True,
        "staffRole": "ADMINISTRATOR",
    },
    "expires": "2030-01-01T00:00:00Z",
}


def test_initial_state_is_loading_guest() -> None:
    state = SessionState()
    assert state.status is SessionStatus.LOADING
    assert state.current_role is PermissionLevel.GUEST
    assert not state.is_initialized
    assert not state.is_authenticated()
    assert state.permissions == frozenset({PERMISSIONS.VIEW_PUBLIC})


def test_set_session_derives_role_and_notifies() -> None:
    state = SessionState()
    seen: list[PermissionLevel] = []
    state.subscribe(lambda current: seen.append(current.current_role))

    state.set_session(ADMIN_SESSION, SessionStatus.AUTHENTICATED)

    assert seen == [PermissionLevel.ADMIN]
    assert state.is_authenticated()
    assert state.is_admin() and state.is_staff()
    assert not state.is_superuser()
    assert state.can_access(Resource.ADMIN_PANEL)
    assert state.has_permission(PERMISSIONS.CREATE_SERVICES)
    assert state.last_activity is not None


def test_malformed_session_fails_closed() -> None:
    state = SessionState()
    state.set_session({"user": "not-a-mapping"}, "authenticated")
    assert state.status is SessionStatus.UNAUTHENTICATED
    assert state.current_role is PermissionLevel.GUEST
    assert state.user is None

    user = parse_auth_user({"user": {"isStaff": "yes", "staffRole": "KING"}})
    assert user is not None
    assert user.is_staff is False
    assert user.staff_role is None


def test_unsubscribe_and_dispose_stop_notifications() -> None:
    state = SessionState()
    calls: list[str] = []
    unsubscribe = state.subscribe(lambda _: calls.append("a"))
    state.subscribe(lambda _: calls.append("b"))

    unsubscribe()
    state.set_error("boom")
    assert calls == ["b"]

    state.dispose()
    state.clear_error()
    state.set_session(ADMIN_SESSION)
    assert calls == ["b"]
    assert state.subscribe(lambda _: calls.append("c"))() is None


def test_clear_and_reset() -> None:
    state = SessionState()
    state.set_session(ADMIN_SESSION)
    state.clear_session()
    assert state.status is SessionStatus.UNAUTHENTICATED
    assert state.is_initialized
    assert state.current_role is PermissionLevel.GUEST

    state.reset()
    assert state.status is SessionStatus.LOADING
    assert not state.is_initialized


def test_snapshot_is_serializable() -> None:
    state = SessionState()
    state.set_session(ADMIN_SESSION)
    snapshot = state.snapshot()
    assert snapshot["status"] == "authenticated"
    assert snapshot["role"] == "admin"
    assert snapshot["can_access"]["admin_panel"] is True
    assert snapshot["permissions"] == sorted(snapshot["permissions"])
