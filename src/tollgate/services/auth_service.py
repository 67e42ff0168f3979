"""Auth service — login, session verification, logout.

Composes the three auth primitives with the user and session stores:

    login:           credentials ─► user ─► password check ─► session row
                                    ─► encrypted envelope + short JWT
    verify_session:  envelope ─► decrypt ─► embedded expiry ─► session row
                                    ─► row expiry (delete if past) ─► user
    logout:          envelope ─► decrypt ─► delete row

The JWT (1 hour) and the session (7 days) have deliberately separate
lifetimes: the token is a stateless short-lived check, the envelope is
the long-lived stateful one.

Every operation fails closed except logout, which fails open: an
envelope that doesn't decrypt already means "not logged in".
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

import structlog

from tollgate.auth.jwt import create_access_token
from tollgate.auth.password import verify_password
from tollgate.auth.session_crypto import SessionCipher
from tollgate.config import settings
from tollgate.db.models import User, as_utc, utcnow
from tollgate.errors import (
    InvalidCredentials,
    InvalidSession,
    SessionExpired,
    SessionNotFound,
    UserNotFound,
    ValidationError,
)
from tollgate.services.session_service import SessionService
from tollgate.services.user_service import UserService

logger = structlog.get_logger()

# sessions.id is a 32-bit INTEGER column; larger ids can't exist and
# would overflow the driver.
MAX_SESSION_ID = 2**31 - 1


@dataclass(frozen=True)
class SafeUser:
    """User projection that is safe to return. Never carries credentials."""

    id: int
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @classmethod
    def id_only(cls, user: User) -> "SafeUser":
        return cls(id=user.id)

    @classmethod
    def profile(cls, user: User) -> "SafeUser":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
        )


@dataclass(frozen=True)
class LoginResult:
    user: SafeUser
    token: str
    session: str
    session_expires: datetime


@dataclass(frozen=True)
class SessionVerification:
    user_id: int
    user: SafeUser
    expires_at: datetime


@dataclass(frozen=True)
class EnvelopeClaims:
    session_id: int
    expires_at: datetime


def _is_session_id(value: Any) -> bool:
    # bool is an int subclass; a `true` session id is not a session id
    if not isinstance(value, int) or isinstance(value, bool):
        return False
    return 1 <= value <= MAX_SESSION_ID


def _parse_envelope(payload: Any) -> Optional[EnvelopeClaims]:
    """Pull {sessionId, expiresAt} out of a decrypted envelope, or None."""
    if not isinstance(payload, dict):
        return None
    session_id = payload.get("sessionId")
    expires_at = payload.get("expiresAt")
    if not _is_session_id(session_id):
        return None
    if not isinstance(expires_at, str):
        return None
    try:
        parsed = datetime.fromisoformat(expires_at)
    except ValueError:
        return None
    return EnvelopeClaims(session_id=session_id, expires_at=as_utc(parsed))


class AuthService:
    """Login / verify / logout over injected stores and cipher."""

    def __init__(
        self,
        users: UserService,
        sessions: SessionService,
        cipher: SessionCipher,
        session_lifetime: Optional[timedelta] = None,
    ):
        self.users = users
        self.sessions = sessions
        self.cipher = cipher
        self.session_lifetime = session_lifetime or timedelta(
            days=settings.session_expire_days
        )

    # ─── Login ──────────────────────────────────────────

    async def login(self, email: Optional[str], password: Optional[str]) -> LoginResult:
        """Check credentials and open a new session.

        Raises ValidationError, UserNotFound or InvalidCredentials.
        Storage and encryption failures propagate.
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = await self.users.find_by_email(email)
        if not user:
            logger.info("auth.login_unknown_email")
            raise UserNotFound()

        ok = await asyncio.to_thread(
            verify_password, password, user.password_hash, user.salt
        )
        if not ok:
            logger.info("auth.login_failed", user_id=user.id)
            raise InvalidCredentials()

        token = create_access_token(user.id)

        expires_at = utcnow() + self.session_lifetime
        session = await self.sessions.create(user.id, expires_at)
        try:
            envelope = self.cipher.encrypt(
                {"sessionId": session.id, "expiresAt": expires_at.isoformat()}
            )
        except Exception:
            # No client will ever hold this session
            await self.sessions.delete_by_id(session.id)
            raise

        logger.info("auth.login", user_id=user.id, session_id=session.id)
        return LoginResult(
            user=SafeUser.id_only(user),
            token=token,
            session=envelope,
            session_expires=expires_at,
        )

    # ─── Session verification ───────────────────────────

    async def verify_session(self, envelope: Optional[str]) -> SessionVerification:
        """Resolve an envelope to its live session and user.

        Raises ValidationError, InvalidSession, SessionExpired,
        SessionNotFound or UserNotFound.
        """
        if not envelope:
            raise ValidationError("Session is required")

        claims = _parse_envelope(self.cipher.decrypt(envelope))
        if claims is None:
            raise InvalidSession()

        now = utcnow()
        # Envelope says it's over: no need to ask the database.
        if claims.expires_at <= now:
            raise SessionExpired()

        row = await self.sessions.find_by_id(claims.session_id)
        if not row:
            raise SessionNotFound()

        if row.is_expired(now):
            await self.sessions.delete_by_id(row.id)
            logger.info("auth.session_expired_cleanup", session_id=row.id)
            raise SessionExpired()

        user = await self.users.find_by_id(row.user_id)
        if not user:
            raise UserNotFound()

        return SessionVerification(
            user_id=user.id,
            user=SafeUser.profile(user),
            expires_at=as_utc(row.expires_at),
        )

    # ─── Logout ─────────────────────────────────────────

    async def logout(self, envelope: Optional[str]) -> None:
        """End the envelope's session. Succeeds whether or not it existed."""
        if not envelope:
            raise ValidationError("Session is required")

        payload = self.cipher.decrypt(envelope)
        session_id = payload.get("sessionId") if isinstance(payload, dict) else None
        if not _is_session_id(session_id):
            return

        deleted = await self.sessions.delete_by_id(session_id)
        logger.info("auth.logout", session_id=session_id, deleted=deleted)
