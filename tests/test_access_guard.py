"""Access guard tests — the gate in front of /api/weather.

Learn: Uses the real auth pipeline (no get_current_user override).
Every rejection is a 401 with WWW-Authenticate: Bearer, and invalid vs
expired tokens produce exactly the same body.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from starlette.requests import Request

from nimbus.auth.dependencies import extract_bearer, get_current_user
from nimbus.db.store import IdentityStore
from nimbus.services.credential_service import CredentialService

WEATHER = "/api/weather?city=Paris"


@pytest.mark.asyncio
async def test_no_header(client):
    r = await client.get(WEATHER)
    assert r.status_code == 401
    assert r.json() == {"error": "Not authorized. No token provided."}
    assert r.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_non_bearer_scheme(client):
    r = await client.get(WEATHER, headers={"Authorization": "Basic YWRhOnNlY3JldA=="})
    assert r.status_code == 401
    assert r.json() == {"error": "Not authorized. No token provided."}


@pytest.mark.asyncio
async def test_garbage_token(client):
    r = await client.get(WEATHER, headers={"Authorization": "Bearer invalid_token_here"})
    assert r.status_code == 401
    assert r.json() == {"error": "Not authorized. Invalid token."}


@pytest.mark.asyncio
async def test_expired_token_looks_like_invalid(client, register_user, issuer):
    body = await register_user()
    stale = issuer.issue(
        body["user"]["id"], now=datetime.now(timezone.utc) - timedelta(days=31)
    )
    r = await client.get(WEATHER, headers={"Authorization": f"Bearer {stale}"})
    assert r.status_code == 401
    assert r.json() == {"error": "Not authorized. Invalid token."}


@pytest.mark.asyncio
async def test_token_with_non_uuid_subject(client, issuer):
    token = issuer.issue("not-a-uuid")
    r = await client.get(WEATHER, headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json() == {"error": "Not authorized. Invalid token."}


@pytest.mark.asyncio
async def test_deleted_identity(client, register_user, session_factory, issuer):
    body = await register_user()
    async with session_factory() as db:
        await CredentialService(db, issuer).delete_identity(uuid.UUID(body["user"]["id"]))

    r = await client.get(WEATHER, headers={"Authorization": f"Bearer {body['token']}"})
    assert r.status_code == 401
    assert r.json() == {"error": "User not found"}


@pytest.mark.asyncio
async def test_valid_token_passes(client, register_user):
    body = await register_user()
    r = await client.get(WEATHER, headers={"Authorization": f"Bearer {body['token']}"})
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_resolved_user_has_no_password_hash(db_session, issuer):
    grant = await CredentialService(db_session, issuer).register("ada", "ada@x.com", "secret1")
    request = Request({"type": "http", "headers": []})

    user = await get_current_user(
        request,
        authorization=f"Bearer {grant.token}",
        db=db_session,
        tokens=issuer,
    )

    assert user.id == str(grant.identity.id)
    assert user.to_public() == {"id": user.id, "username": "ada", "email": "ada@x.com"}
    assert not hasattr(user, "password_hash")
    assert request.state.user is user


@pytest.mark.parametrize(
    "header,expected",
    [
        (None, None),
        ("", None),
        ("Bearer", None),
        ("Bearer ", None),
        ("bearer abc", None),
        ("Token abc", None),
        ("Bearer abc.def.ghi", "abc.def.ghi"),
    ],
)
def test_extract_bearer(header, expected):
    assert extract_bearer(header) == expected


@pytest.mark.asyncio
async def test_lookup_failure_is_json_500(client, register_user, monkeypatch):
    body = await register_user()

    async def broken_get(self, identity_id):
        raise RuntimeError("store exploded")

    monkeypatch.setattr(IdentityStore, "get", broken_get)
    r = await client.get(WEATHER, headers={"Authorization": f"Bearer {body['token']}"})
    assert r.status_code == 500
    assert r.json() == {"error": "Server error during authentication"}
