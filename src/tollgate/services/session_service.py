"""Session service — persisted login sessions.

Every successful login creates one row in `sessions`. A row is either
active (expires_at in the future) or gone: logout and expiry both delete
it. Renewal is an expires_at update on the same row, not a new state.

    create ──► ACTIVE ──(expires_at passes | delete)──► row removed

Expired rows are not removed automatically by reads other than session
verification; delete_expired() is the sweep, run by SessionSweeper.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tollgate.db.models import AuthSession, utcnow


class SessionService:
    """CRUD + expiry queries over the sessions table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Create / read ────────────────────────────────────

    async def create(self, user_id: int, expires_at: datetime) -> AuthSession:
        """Insert a new session row. Storage errors propagate."""
        session = AuthSession(user_id=user_id, expires_at=expires_at)
        self.db.add(session)
        await self.db.commit()
        await self.db.refresh(session)
        return session

    async def find_by_id(self, session_id: int) -> Optional[AuthSession]:
        """Always hits the database; a row deleted elsewhere reads as None."""
        q = (
            select(AuthSession)
            .where(AuthSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(q)
        return result.scalars().first()

    async def find_by_user_id(self, user_id: int) -> list[AuthSession]:
        """All sessions for a user, newest first (expired ones included)."""
        q = (
            select(AuthSession)
            .where(AuthSession.user_id == user_id)
            .order_by(AuthSession.created_at.desc(), AuthSession.id.desc())
        )
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def find_active_by_user_id(self, user_id: int) -> list[AuthSession]:
        """Unexpired sessions for a user, newest first."""
        q = (
            select(AuthSession)
            .where(AuthSession.user_id == user_id)
            .where(AuthSession.expires_at > utcnow())
            .order_by(AuthSession.created_at.desc(), AuthSession.id.desc())
        )
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def is_valid(self, session_id: int) -> bool:
        """True iff the row exists and has not expired."""
        q = (
            select(AuthSession.id)
            .where(AuthSession.id == session_id)
            .where(AuthSession.expires_at > utcnow())
        )
        result = await self.db.execute(q)
        return result.first() is not None

    # ─── Update ───────────────────────────────────────────

    async def update_expiration(
        self, session_id: int, expires_at: datetime
    ) -> Optional[AuthSession]:
        """Move a session's expiry. Returns None if the row is gone."""
        result = await self.db.execute(
            update(AuthSession)
            .where(AuthSession.id == session_id)
            .values(expires_at=expires_at, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        if not result.rowcount:
            return None
        return await self.find_by_id(session_id)

    # ─── Delete ───────────────────────────────────────────
    # All deletes return the number of removed rows; 0 is not an error.

    async def delete_by_id(self, session_id: int) -> int:
        return await self._delete(AuthSession.id == session_id)

    async def delete_by_user_id(self, user_id: int) -> int:
        return await self._delete(AuthSession.user_id == user_id)

    async def delete_expired(self) -> int:
        """Sweep: remove every row with expires_at <= now."""
        return await self._delete(AuthSession.expires_at <= utcnow())

    async def _delete(self, condition) -> int:
        result = await self.db.execute(
            delete(AuthSession)
            .where(condition)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount or 0
