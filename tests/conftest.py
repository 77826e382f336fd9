"""Test fixtures — a fresh in-memory database per test, real auth pipeline.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own SQLite (aiosqlite) in-memory engine. StaticPool
   keeps a single connection so every session sees the same database.
2. get_db is overridden to hand each request its own session from that
   engine, just like production.
3. The token issuer and weather provider are overridden so no env vars
   or outbound network are needed. Auth itself is NOT mocked.
"""

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from nimbus.auth.jwt import TokenIssuer, get_token_issuer
from nimbus.config import settings
from nimbus.db.engine import get_db
from nimbus.db.models import Base
from nimbus.main import app
from nimbus.services.weather_service import WeatherProvider, get_weather_provider

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
TEST_SECRET = "test-signing-secret-0123456789abcdef"
WEATHER_URL = "https://weather.test/v1/current.json"

PARIS = {
    "location": {"name": "Paris", "country": "France", "localtime": "2026-10-19 10:00"},
    "current": {
        "temp_c": 14.0,
        "feelslike_c": 12.5,
        "humidity": 71,
        "wind_kph": 11.2,
        "condition": {"text": "Partly cloudy", "code": 1003},
    },
}


def weather_handler(request: httpx.Request) -> httpx.Response:
    """Fake WeatherAPI: knows Paris, nothing else."""
    if request.url.params.get("key") != "test-weather-key":
        return httpx.Response(
            401, json={"error": {"code": 2006, "message": "API key is invalid."}}
        )
    if request.url.params.get("q") == "Paris":
        return httpx.Response(200, json=PARIS)
    return httpx.Response(
        400, json={"error": {"code": 1006, "message": "No matching location found."}}
    )


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Minimum bcrypt work factor so tests don't spend seconds hashing."""
    monkeypatch.setattr(settings, "bcrypt_rounds", 4)


@pytest.fixture()
def issuer() -> TokenIssuer:
    return TokenIssuer(secret=TEST_SECRET)


@pytest.fixture()
def weather_provider() -> WeatherProvider:
    return WeatherProvider(
        api_key="test-weather-key",
        base_url=WEATHER_URL,
        transport=httpx.MockTransport(weather_handler),
    )


@pytest_asyncio.fixture()
async def engine():
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """A session for tests that drive services and the store directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def test_app(session_factory, issuer, weather_provider):
    """The app with DB, issuer and weather provider overridden."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_issuer] = lambda: issuer
    app.dependency_overrides[get_weather_provider] = lambda: weather_provider
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(test_app):
    """HTTP client talking to the app in-process."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def register_user(client):
    """Register through the API and return the response body."""

    async def _register(username="ada", email="ada@x.com", password="secret1"):
        r = await client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        )
        assert r.status_code == 201, r.text
        return r.json()

    return _register


@pytest_asyncio.fixture()
async def auth_headers(register_user):
    """Authorization header for a freshly registered user."""
    body = await register_user()
    return {"Authorization": f"Bearer {body['token']}"}
