"""Token issuer/verifier tests.

Learn: The clock is passed in explicitly, so the expiry boundary is
tested exactly: valid for every instant before exp, rejected at exp.
"""

import base64
import json
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from nimbus.auth.jwt import TokenIssuer
from nimbus.errors import (
    ConfigurationError,
    ExpiredTokenError,
    InvalidTokenError,
    TokenError,
)

SECRET = "unit-test-secret-0123456789abcdefgh"
ISSUED = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_issue_and_verify_recovers_identity():
    issuer = TokenIssuer(SECRET)
    token = issuer.issue("7b3d2c1e-0000-4000-8000-000000000001")
    assert issuer.verify(token) == "7b3d2c1e-0000-4000-8000-000000000001"


def test_default_lifetime_is_thirty_days():
    issuer = TokenIssuer(SECRET)
    token = issuer.issue("abc", now=ISSUED)
    payload = jwt.decode(token, options={"verify_signature": False})
    assert payload["exp"] - payload["iat"] == 30 * 24 * 3600


def test_valid_strictly_before_expiry():
    issuer = TokenIssuer(SECRET, lifetime=timedelta(hours=1))
    token = issuer.issue("abc", now=ISSUED)
    expires = ISSUED + timedelta(hours=1)

    assert issuer.verify(token, now=ISSUED) == "abc"
    assert issuer.verify(token, now=expires - timedelta(seconds=1)) == "abc"
    with pytest.raises(ExpiredTokenError):
        issuer.verify(token, now=expires)
    with pytest.raises(ExpiredTokenError):
        issuer.verify(token, now=expires + timedelta(days=3))


def test_tampered_token_rejected():
    issuer = TokenIssuer(SECRET)
    header, _, signature = issuer.issue("abc").split(".")
    forged_payload = base64.urlsafe_b64encode(
        json.dumps({"sub": "someone-else", "exp": 4102444800}).encode()
    ).rstrip(b"=").decode()
    with pytest.raises(InvalidTokenError):
        issuer.verify(f"{header}.{forged_payload}.{signature}")


def test_token_signed_with_other_secret_rejected():
    other = TokenIssuer("some-other-secret-0123456789abcdef")
    with pytest.raises(InvalidTokenError):
        TokenIssuer(SECRET).verify(other.issue("abc"))


@pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c", "Bearer xyz"])
def test_garbage_rejected(garbage):
    with pytest.raises(InvalidTokenError):
        TokenIssuer(SECRET).verify(garbage)


def test_token_without_expiry_rejected():
    token = jwt.encode({"sub": "abc"}, SECRET, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        TokenIssuer(SECRET).verify(token)


def test_invalid_and_expired_share_a_base():
    assert issubclass(InvalidTokenError, TokenError)
    assert issubclass(ExpiredTokenError, TokenError)


def test_missing_secret_is_configuration_error():
    issuer = TokenIssuer("")
    with pytest.raises(ConfigurationError):
        issuer.issue("abc")
    with pytest.raises(ConfigurationError):
        issuer.verify(TokenIssuer(SECRET).issue("abc"))
