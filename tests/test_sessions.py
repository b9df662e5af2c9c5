from datetime import datetime, timedelta, timezone

import pytest

from dojo_schedule.core.exceptions import AuthenticationError, ConfigurationError
from dojo_schedule.core.sessions import SessionManager, SessionPrincipal


@pytest.fixture
def manager():
    return SessionManager(secret_key="unit-test-secret", ttl=timedelta(days=7))


def test_issue_and_decode(manager):
    token = manager.issue("t1", "trainer", "Anna", club_id="club-1")
    principal = manager.decode(token)

    assert principal.subject_id == "t1"
    assert principal.role == "trainer"
    assert principal.name == "Anna"
    assert principal.club_id == "club-1"
    assert not principal.is_admin
    assert principal.expires_at - principal.issued_at == timedelta(days=7)
    assert not principal.is_expired()


def test_expired_session_is_rejected(manager):
    issued = datetime.now(timezone.utc) - timedelta(days=8)
    token = manager.issue("t1", "trainer", "Anna", now=issued)

    with pytest.raises(AuthenticationError):
        manager.decode(token)


def test_forged_token_is_rejected(manager):
    other = SessionManager(secret_key="another-secret")
    token = other.issue("a1", "admin", "Mallory", is_super_admin=True)

    with pytest.raises(AuthenticationError):
        manager.decode(token)

    with pytest.raises(AuthenticationError):
        manager.decode("not-a-token")


def test_missing_secret_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        SessionManager(secret_key=None).issue("t1", "trainer", "Anna")


def principal(role, club_id=None, is_super_admin=False):
    now = datetime.now(timezone.utc)
    return SessionPrincipal(
        subject_id="x",
        role=role,
        name="X",
        club_id=club_id,
        is_super_admin=is_super_admin,
        issued_at=now,
        expires_at=now + timedelta(days=1),
    )


def test_club_management_rights():
    assert principal("admin", "club-1").can_manage_club("club-1")
    assert not principal("admin", "club-1").can_manage_club("club-2")
    assert principal("admin", is_super_admin=True).can_manage_club("club-2")
    assert not principal("trainer", "club-1").can_manage_club("club-1")


def test_is_expired_at_boundary():
    session = principal("trainer")
    assert session.is_expired(session.expires_at)
    assert not session.is_expired(session.expires_at - timedelta(seconds=1))
