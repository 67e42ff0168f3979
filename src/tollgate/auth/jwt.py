"""JWT token creation and verification.

Access tokens are short-lived (60 min by default) and stateless: a valid
signature with an unexpired claim is accepted even if the user's session
rows are gone. Long-lived auth goes through the encrypted session envelope.

The token carries the user id as ``sub`` (stringified, as RFC 7519 wants).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from tollgate.config import settings
from tollgate.errors import InvalidToken


@dataclass(frozen=True)
class TokenClaims:
    subject: int
    expires_at: datetime


def create_access_token(
    user_id: int,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a JWT access token."""
    now = datetime.now(timezone.utc)
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes
    expires = now + timedelta(minutes=expires_minutes)
    payload = {
        "sub": str(user_id),
        "type": "access",
        "exp": expires,
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> TokenClaims:
    """Verify and decode a JWT access token.

    Returns the claims on success.
    Raises InvalidToken on failure.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise InvalidToken("Token has expired")
    except jwt.InvalidTokenError as e:
        raise InvalidToken(f"Invalid token: {e}")

    try:
        subject = int(payload["sub"])
    except (TypeError, ValueError):
        raise InvalidToken("Invalid token: subject is not a user id")

    return TokenClaims(
        subject=subject,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
