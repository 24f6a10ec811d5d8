"""Tests for access token issuance and verification"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import jwt
import pytest

from auth import ConfigurationError, InvalidToken, TokenIssuer
from tests.conftest import TEST_SECRET, FrozenClock

SAMPLE_USER = SimpleNamespace(id="user-1", email="jane@example.com", username="janedoe1234")


def test_access_token_claims(issuer: TokenIssuer, clock: FrozenClock):
    """Test the access token carries identity and lifetime claims"""
    token = issuer.issue_access_token(SAMPLE_USER)
    claims = jwt.decode(token, TEST_SECRET, algorithms=["HS256"], options={"verify_iss": False})

    assert claims["sub"] == "user-1"
    assert claims["email"] == "jane@example.com"
    assert claims["username"] == "janedoe1234"
    assert claims["type"] == "access"
    assert claims["iat"] == int(clock().timestamp())
    assert claims["exp"] - claims["iat"] == 15 * 60


def test_decode_access_token_roundtrip(issuer: TokenIssuer):
    """Test a freshly issued token verifies"""
    claims = issuer.decode_access_token(issuer.issue_access_token(SAMPLE_USER))
    assert claims["sub"] == "user-1"


def test_expired_access_token_rejected():
    """Test expiry is enforced by signature verification"""
    past = FrozenClock(datetime.now(timezone.utc) - timedelta(hours=1))
    issuer = TokenIssuer(secret=TEST_SECRET, clock=past)
    token = issuer.issue_access_token(SAMPLE_USER)

    with pytest.raises(InvalidToken):
        issuer.decode_access_token(token)


def test_tampered_access_token_rejected(issuer: TokenIssuer):
    """Test a token signed with another secret is rejected"""
    forged = TokenIssuer(secret="another-secret-that-is-also-32-chars-long")
    with pytest.raises(InvalidToken):
        issuer.decode_access_token(forged.issue_access_token(SAMPLE_USER))


def test_non_access_token_rejected(issuer: TokenIssuer):
    """Test a correctly signed token of the wrong type is rejected"""
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode(
        {"sub": "user-1", "iat": now, "exp": now + 60, "iss": "user-auth-api", "type": "refresh"},
        TEST_SECRET,
        algorithm="HS256",
    )
    with pytest.raises(InvalidToken):
        issuer.decode_access_token(token)


def test_refresh_token_pair_from_issuer(issuer: TokenIssuer):
    """Test the issuer returns a plaintext and its hash"""
    plaintext, digest = issuer.issue_refresh_token()
    assert len(plaintext) == 128
    assert len(digest) == 64


@pytest.mark.parametrize("secret", [None, "", "too-short"])
def test_bad_secret_is_configuration_error(secret):
    """Test signing misconfiguration fails at construction"""
    with pytest.raises(ConfigurationError):
        TokenIssuer(secret=secret)


def test_unsupported_algorithm_is_configuration_error():
    """Test only HMAC algorithms are accepted"""
    with pytest.raises(ConfigurationError):
        TokenIssuer(secret=TEST_SECRET, algorithm="none")


def test_from_config_reads_flask_style_mapping(clock: FrozenClock):
    """Test the issuer is built from config keys"""
    issuer = TokenIssuer.from_config(
        {
            "JWT_SECRET": TEST_SECRET,
            "ACCESS_TOKEN_EXPIRES": timedelta(minutes=5),
            "REFRESH_TOKEN_EXPIRES": timedelta(days=30),
        },
        clock=clock,
    )
    assert issuer.access_ttl == timedelta(minutes=5)
    assert issuer.refresh_ttl == timedelta(days=30)
    pair = issuer.issue_pair(SAMPLE_USER, "opaque")
    assert pair.expires_in == 300
    assert pair.refresh_token == "opaque"
