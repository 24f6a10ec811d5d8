"""Tests for the session manager: login, rotation and revocation"""
import threading
from datetime import timedelta
from unittest import mock

from sqlalchemy.exc import OperationalError

from auth import SessionManager
from models import User
from tests.conftest import TEST_PASSWORD, active_token_count


def test_login_with_email_or_username(sessions: SessionManager, user: User):
    """Test either identifier logs in"""
    by_email = sessions.login("jane@example.com", TEST_PASSWORD)
    by_username = sessions.login(user.username, TEST_PASSWORD)

    assert by_email.ok and by_username.ok
    assert by_email.value.refresh_token != by_username.value.refresh_token
    claims = sessions.tokens.decode_access_token(by_email.value.access_token)
    assert claims["sub"] == user.id
    assert claims["username"] == user.username


def test_login_failures_are_indistinguishable(sessions: SessionManager, user: User):
    """Test unknown identifier and wrong password fail with the same error"""
    ghost = sessions.login("ghost@x.com", "pw")
    wrong = sessions.login(user.email, "wrongpw")

    assert not ghost.ok and not wrong.ok
    assert type(ghost.error) is type(wrong.error)
    assert ghost.error.kind == wrong.error.kind == "invalid_credentials"
    assert ghost.error.message == wrong.error.message == "Invalid credentials"


def test_rotate_returns_new_pair(sessions: SessionManager, user: User):
    """Test rotation issues a different pair for the same user"""
    first = sessions.login(user.email, TEST_PASSWORD).unwrap()
    second = sessions.rotate(first.refresh_token)

    assert second.ok
    assert second.value.refresh_token != first.refresh_token
    claims = sessions.tokens.decode_access_token(second.value.access_token)
    assert claims["sub"] == user.id


def test_refresh_token_is_single_use(sessions: SessionManager, user: User, storage, clock):
    """Test a second rotation of the same token is reuse and revokes everything"""
    pair = sessions.login(user.email, TEST_PASSWORD).unwrap()
    other_device = sessions.login(user.username, TEST_PASSWORD).unwrap()

    rotated = sessions.rotate(pair.refresh_token).unwrap()
    replay = sessions.rotate(pair.refresh_token)

    assert not replay.ok
    assert replay.error.kind == "token_reuse_detected"
    assert replay.error.message == "Invalid or expired token"
    assert active_token_count(storage, user.id, clock()) == 0
    assert not sessions.rotate(rotated.refresh_token).ok
    assert not sessions.rotate(other_device.refresh_token).ok


def test_rotate_unknown_and_empty_token(sessions: SessionManager):
    """Test unknown tokens fail without side effects"""
    assert sessions.rotate("garbage").error.kind == "invalid_token"
    assert sessions.rotate("").error.kind == "invalid_token"


def test_rotate_expired_token(sessions: SessionManager, user: User, clock):
    """Test an expired refresh token cannot be rotated"""
    pair = sessions.login(user.email, TEST_PASSWORD).unwrap()
    clock.advance(days=8)

    result = sessions.rotate(pair.refresh_token)
    assert result.error.kind == "token_expired"
    assert result.error.message == "Invalid or expired token"


def test_logout_is_idempotent(sessions: SessionManager, user: User, clock):
    """Test logout never fails, whatever the token state"""
    pair = sessions.login(user.email, TEST_PASSWORD).unwrap()

    assert sessions.logout(pair.refresh_token).ok
    assert sessions.logout(pair.refresh_token).ok
    assert sessions.logout("not-a-token").ok
    assert sessions.logout(None).ok

    expiring = sessions.login(user.email, TEST_PASSWORD).unwrap()
    clock.advance(days=30)
    assert sessions.logout(expiring.refresh_token).ok


def test_logout_swallows_storage_failure(sessions: SessionManager):
    """Test a storage error during logout is logged, not surfaced"""
    failure = OperationalError("UPDATE", {}, Exception("database is locked"))
    with mock.patch.object(sessions.refresh_tokens, "revoke", side_effect=failure):
        assert sessions.logout("any-token").ok


def test_logout_then_rotate_is_reuse(sessions: SessionManager, user: User):
    """Test a logged-out token presented again trips reuse detection"""
    pair = sessions.login(user.email, TEST_PASSWORD).unwrap()
    sessions.logout(pair.refresh_token)

    assert sessions.rotate(pair.refresh_token).error.kind == "token_reuse_detected"


def test_logout_all(sessions: SessionManager, user: User):
    """Test every session of the user is revoked"""
    pairs = [sessions.login(user.email, TEST_PASSWORD).unwrap() for _ in range(3)]

    result = sessions.logout_all(user.id)

    assert result.ok and result.value == 3
    for pair in pairs:
        assert not sessions.rotate(pair.refresh_token).ok


def test_storage_failure_is_internal(sessions: SessionManager, user: User):
    """Test database errors surface as Internal without details"""
    failure = OperationalError("INSERT", {}, Exception("disk I/O error"))
    with mock.patch.object(sessions.refresh_tokens, "store", side_effect=failure):
        result = sessions.login(user.email, TEST_PASSWORD)

    assert result.error.kind == "internal"
    assert result.error.status == 500
    assert "disk" not in result.error.message


def test_concurrent_rotation_yields_one_pair(sessions: SessionManager, user: User):
    """Test two simultaneous rotations of one token: one pair, one reuse failure"""
    pair = sessions.login(user.email, TEST_PASSWORD).unwrap()
    barrier = threading.Barrier(2)
    results = []
    lock = threading.Lock()

    def rotate():
        barrier.wait()
        result = sessions.rotate(pair.refresh_token)
        with lock:
            results.append(result)

    threads = [threading.Thread(target=rotate) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert len(results) == 2
    successes = [r for r in results if r.ok]
    failures = [r for r in results if not r.ok]
    assert len(successes) == 1
    assert len(failures) == 1
    assert failures[0].error.kind == "token_reuse_detected"


def test_access_token_ttl_follows_issuer(sessions: SessionManager, user: User):
    """Test expires_in mirrors the configured access lifetime"""
    pair = sessions.login(user.email, TEST_PASSWORD).unwrap()
    assert pair.expires_in == int(timedelta(minutes=15).total_seconds())
    assert pair.token_type == "bearer"
