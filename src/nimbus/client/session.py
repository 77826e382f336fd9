"""Client session manager — the device-local side of authentication.

Learn: The session is an explicit object handed to whatever needs it
(weather client, CLI). SessionManager is its only writer; everybody
else reads get_token() / current_user or subscribes with add_listener().

States:

    INITIALIZING ──(token on disk)──▶ AUTHENTICATED
         │                                │  ▲
         └──(no token)──▶ ANONYMOUS ◀─────┘  │ register / login
                              │  logout, 401 │
                              └──────────────┘

Startup trusts a persisted token without asking the server. The first
protected call that comes back 401 ends the session (implicit logout),
handled once in SessionAuth instead of at every call site.

Every register/login/logout bumps a generation counter. A register or
login that resolves after a newer session change is discarded.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import httpx
import structlog

from nimbus.client.errors import (
    AuthRequestError,
    MissingTokenError,
    NetworkError,
    RequestTimeoutError,
    ServerConfigurationError,
    StorageError,
    SupersededError,
)
from nimbus.client.storage import KeyValueStorage

logger = structlog.get_logger()

TOKEN_KEY = "userToken"
DEFAULT_TIMEOUT = 10.0


class SessionState(str, Enum):
    INITIALIZING = "initializing"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class UserSnapshot:
    """Denormalized copy of the user from the last successful auth call."""

    id: str
    username: str
    email: str

    @classmethod
    def from_payload(cls, data: Any) -> Optional["UserSnapshot"]:
        if not isinstance(data, dict):
            return None
        return cls(
            id=str(data.get("id", "")),
            username=str(data.get("username", "")),
            email=str(data.get("email", "")),
        )


Listener = Callable[[SessionState, str], None]


class SessionAuth(httpx.Auth):
    """Attach the session's bearer token; end the session on a 401.

    Learn: This is the single response interceptor for protected calls.
    Only an explicit 401 triggers the implicit logout. A timeout or a
    dropped connection raises before a response exists, so it never
    reaches the check below.
    """

    def __init__(self, session: "SessionManager"):
        self.session = session

    def sync_auth_flow(self, request):
        raise RuntimeError("SessionAuth only works with httpx.AsyncClient")

    async def async_auth_flow(self, request):
        token = self.session.get_token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        response = yield request
        if response.status_code == 401 and token:
            await self.session.expire(token)


class SessionManager:
    """Owns the token and current-user snapshot for one device."""

    def __init__(
        self,
        base_url: str,
        storage: KeyValueStorage,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.storage = storage
        self.timeout = timeout
        self.transport = transport

        self.state = SessionState.INITIALIZING
        self.token: Optional[str] = None
        self.current_user: Optional[UserSnapshot] = None

        self._generation = 0
        self._write_lock = asyncio.Lock()
        self._listeners: list[Listener] = []

    # ─── Readers ────────────────────────────────────────

    @property
    def loading_initial_session(self) -> bool:
        return self.state is SessionState.INITIALIZING

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    def get_token(self) -> Optional[str]:
        """Token for outbound protected calls, or None. Never blocks."""
        if self.state is not SessionState.AUTHENTICATED:
            return None
        return self.token

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Subscribe to (state, reason) changes. Returns an unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def client(self) -> httpx.AsyncClient:
        """HTTP client for protected calls, with SessionAuth installed."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            auth=SessionAuth(self),
        )

    # ─── Lifecycle ──────────────────────────────────────

    async def initialize(self) -> SessionState:
        """Read the persisted token once at startup. No network call."""
        if self.state is not SessionState.INITIALIZING:
            return self.state

        try:
            token = await self.storage.get(TOKEN_KEY)
        except (OSError, ValueError) as e:
            logger.warning("nimbus.session.storage_read_failed", error=str(e))
            token = None

        async with self._write_lock:
            if self.state is SessionState.INITIALIZING:
                if token:
                    self.token = token
                    self._set_state(SessionState.AUTHENTICATED, "restored")
                else:
                    self._set_state(SessionState.ANONYMOUS, "startup")
        return self.state

    async def register(self, username: str, email: str, password: str) -> UserSnapshot:
        return await self._authenticate(
            "/api/auth/register",
            {"username": username, "email": email, "password": password},
            fallback="Registration failed",
        )

    async def login(self, email: str, password: str) -> UserSnapshot:
        return await self._authenticate(
            "/api/auth/login",
            {"email": email, "password": password},
            fallback="Login failed",
        )

    async def logout(self) -> None:
        """Forget the session locally and on disk."""
        self._generation += 1
        async with self._write_lock:
            await self._clear("logout")

    async def expire(self, token: str) -> bool:
        """Implicit logout after the server rejected `token`.

        Does nothing if the session has already moved on to another token.
        """
        if token != self.token:
            return False
        async with self._write_lock:
            if token != self.token:
                return False
            logger.info("nimbus.session.expired")
            await self._clear("expired")
        return True

    # ─── Internals ──────────────────────────────────────

    async def _authenticate(self, path: str, payload: dict, fallback: str) -> UserSnapshot:
        self._generation += 1
        generation = self._generation

        try:
            data = await asyncio.wait_for(
                self._post(path, payload, fallback), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.info("nimbus.session.timeout", path=path)
            raise RequestTimeoutError()

        token = data.get("token")
        if not token:
            raise MissingTokenError()
        user = UserSnapshot.from_payload(data.get("user"))

        async with self._write_lock:
            if generation != self._generation:
                logger.info("nimbus.session.stale_result_discarded", path=path)
                raise SupersededError()
            try:
                await self.storage.set(TOKEN_KEY, token)
            except OSError as e:
                logger.warning("nimbus.session.storage_write_failed", error=str(e))
                raise StorageError() from e
            self.token = token
            self.current_user = user
            self._set_state(SessionState.AUTHENTICATED, "login")
        return user

    async def _post(self, path: str, payload: dict, fallback: str) -> dict:
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self.transport
        ) as client:
            try:
                resp = await client.post(path, json=payload)
            except httpx.TimeoutException:
                raise RequestTimeoutError()
            except httpx.HTTPError as e:
                logger.info("nimbus.session.network_error", path=path, error=str(e))
                raise NetworkError()

        try:
            data = resp.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            data = {}

        if not resp.is_success:
            message = data.get("error") or fallback
            if resp.status_code >= 500 and "configuration" in str(message).lower():
                raise ServerConfigurationError(message, status_code=resp.status_code)
            raise AuthRequestError(message, status_code=resp.status_code)
        return data

    async def _clear(self, reason: str) -> None:
        try:
            await self.storage.remove(TOKEN_KEY)
        except OSError as e:
            logger.warning("nimbus.session.storage_remove_failed", error=str(e))
        self.token = None
        self.current_user = None
        self._set_state(SessionState.ANONYMOUS, reason)

    def _set_state(self, state: SessionState, reason: str) -> None:
        self.state = state
        for listener in list(self._listeners):
            listener(state, reason)
