"""Auth API — login, session verification, logout, token verification.

Routes:
- POST /auth/login → email/password → JWT + encrypted session envelope
- POST /auth/verify-session → envelope → user profile
- POST /auth/logout → envelope → session row deleted
- POST /auth/verify-token → Bearer JWT → user id (stateless)

Domain errors become their HTTP status; anything unexpected is logged
and returned as a bare 500 with no internal detail.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tollgate.auth.dependencies import get_bearer_token, require_api_key
from tollgate.auth.jwt import verify_token as verify_token_claims
from tollgate.auth.session_crypto import get_session_cipher
from tollgate.db.engine import get_db
from tollgate.errors import InvalidToken, TollgateError, UserNotFound
from tollgate.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    SessionRequest,
    SessionVerifyResponse,
    TokenVerifyResponse,
    UserIdRead,
    UserProfileRead,
)
from tollgate.services.auth_service import AuthService
from tollgate.services.session_service import SessionService
from tollgate.services.user_service import UserService

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")

_api_key = [Depends(require_api_key)]


def _svc(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(UserService(db), SessionService(db), get_session_cipher())


def _internal_error(event: str) -> HTTPException:
    logger.exception(event)
    return HTTPException(status_code=500, detail="Internal server error")


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=LoginResponse, dependencies=_api_key)
async def login(body: LoginRequest, svc: AuthService = Depends(_svc)):
    """Email + password → session envelope and short-lived JWT."""
    try:
        result = await svc.login(body.email, body.password)
    except TollgateError as e:
        # 500-class domain errors (encryption) fall through to the generic path
        if e.status_code >= 500:
            raise _internal_error("auth.login_error")
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception:
        raise _internal_error("auth.login_error")

    return LoginResponse(
        user=UserIdRead(id=result.user.id),
        token=result.token,
        session=result.session,
        session_expires=result.session_expires,
    )


# ─── Session verification ────────────────────────────────


@router.post(
    "/verify-session", response_model=SessionVerifyResponse, dependencies=_api_key
)
async def verify_session(body: SessionRequest, svc: AuthService = Depends(_svc)):
    """Resolve an envelope to its user. Every failure past validation is 401."""
    try:
        result = await svc.verify_session(body.session)
    except UserNotFound as e:
        raise HTTPException(status_code=401, detail=str(e))
    except TollgateError as e:
        if e.status_code >= 500:
            raise _internal_error("auth.verify_session_error")
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception:
        raise _internal_error("auth.verify_session_error")

    return SessionVerifyResponse(
        user_id=result.user_id,
        user=UserProfileRead.model_validate(result.user),
        expires_at=result.expires_at,
    )


# ─── Logout ──────────────────────────────────────────────


@router.post("/logout", response_model=MessageResponse, dependencies=_api_key)
async def logout(body: SessionRequest, svc: AuthService = Depends(_svc)):
    """Always succeeds for a present envelope, valid or not."""
    try:
        await svc.logout(body.session)
    except TollgateError as e:
        if e.status_code >= 500:
            raise _internal_error("auth.logout_error")
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception:
        raise _internal_error("auth.logout_error")

    return MessageResponse(message="Logged out successfully")


# ─── Token verification ──────────────────────────────────


@router.post("/verify-token", response_model=TokenVerifyResponse)
async def verify_token(token: str = Depends(get_bearer_token)):
    """Stateless JWT check — no session or user lookup."""
    try:
        claims = verify_token_claims(token)
    except InvalidToken as e:
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenVerifyResponse(user_id=claims.subject, expires_at=claims.expires_at)
