"""User service — account records and their credentials.

The auth flow only needs find_by_email / find_by_id; the rest backs the
/users CRUD routes. Passwords are hashed here, never stored raw, and a
password change always gets a fresh salt.
"""

import asyncio
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tollgate.auth.password import hash_password
from tollgate.db.models import User, utcnow
from tollgate.errors import EmailAlreadyExists, UserNotFound


class UserService:
    """Business logic for user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Lookups ────────────────────────────────────────

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def find_by_id(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def list_users(self) -> list[User]:
        result = await self.db.execute(
            select(User).order_by(User.created_at.desc(), User.id.desc())
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(User.id)))
        return result.scalar_one()

    # ─── Writes ─────────────────────────────────────────

    async def create(
        self, first_name: str, last_name: str, email: str, password: str
    ) -> User:
        """Create an account. Raises EmailAlreadyExists on a taken email."""
        if await self.find_by_email(email):
            raise EmailAlreadyExists()

        credential = await asyncio.to_thread(hash_password, password)
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=credential.hash,
            salt=credential.salt,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def update(
        self,
        user_id: int,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        """Partial update; None fields are left alone."""
        user = await self.find_by_id(user_id)
        if not user:
            raise UserNotFound()

        if email and email != user.email:
            if await self.find_by_email(email):
                raise EmailAlreadyExists()
            user.email = email
        if first_name:
            user.first_name = first_name
        if last_name:
            user.last_name = last_name
        if password:
            credential = await asyncio.to_thread(hash_password, password)
            user.password_hash = credential.hash
            user.salt = credential.salt

        user.updated_at = utcnow()
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def delete(self, user_id: int) -> bool:
        """Delete an account. Its sessions go with it (FK cascade)."""
        result = await self.db.execute(
            delete(User)
            .where(User.id == user_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return bool(result.rowcount)
