"""Auth API — registration and login.

Learn: Routes for the credential lifecycle:
- POST /auth/register → create an identity, return its first token (201)
- POST /auth/login → email/password → new token (200)

Both answer {success, token, user: {id, username, email}}. Fields are
optional in the schemas so that missing values reach the service and
come back as a friendly 400 rather than a framework validation dump.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from nimbus.auth.jwt import TokenIssuer, get_token_issuer
from nimbus.config import settings
from nimbus.db.engine import get_db
from nimbus.errors import NimbusError
from nimbus.services.credential_service import AuthGrant, CredentialService

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")


# ─── Schemas ─────────────────────────────────────────────


class RegisterRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserRead(BaseModel):
    id: str
    username: str
    email: str


class AuthResponse(BaseModel):
    success: bool = True
    token: str
    user: UserRead


def _auth_response(grant: AuthGrant) -> AuthResponse:
    return AuthResponse(token=grant.token, user=UserRead(**grant.identity.to_public()))


def _server_error(message: str, exc: Exception) -> JSONResponse:
    body = {"error": message}
    if settings.environment == "development":
        body["details"] = str(exc)
    return JSONResponse(status_code=500, content=body)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
):
    """Create a new identity and return a bearer token for it."""
    service = CredentialService(db, tokens)
    try:
        grant = await service.register(body.username, body.email, body.password)
    except NimbusError:
        raise
    except Exception as e:
        logger.exception("nimbus.auth.register_failed", error=str(e))
        await db.rollback()
        return _server_error("Server error during registration", e)
    return _auth_response(grant)


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
):
    """Login with email and password → bearer token."""
    service = CredentialService(db, tokens)
    try:
        grant = await service.login(body.email, body.password)
    except NimbusError:
        raise
    except Exception as e:
        logger.exception("nimbus.auth.login_failed", error=str(e))
        return _server_error("Server error during login", e)
    return _auth_response(grant)
