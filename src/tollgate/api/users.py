"""User account API routes.

Plain CRUD over UserService. Every route sits behind the API key (applied
at include_router level). Responses go through UserRead, which has no
credential fields.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tollgate.db.engine import get_db
from tollgate.errors import TollgateError
from tollgate.schemas.auth import MessageResponse
from tollgate.schemas.user import UserCreate, UserRead, UserUpdate, UserWritten
from tollgate.services.user_service import UserService

logger = structlog.get_logger()

router = APIRouter(prefix="/users")


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("", response_model=list[UserRead])
async def list_users(svc: UserService = Depends(_svc)):
    return await svc.list_users()


@router.post("", response_model=UserWritten, status_code=201)
async def create_user(body: UserCreate, svc: UserService = Depends(_svc)):
    """Create an account; the password is hashed before storage."""
    if not (body.first_name and body.last_name and body.email and body.password):
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: firstName, lastName, email, password",
        )
    try:
        user = await svc.create(
            first_name=body.first_name,
            last_name=body.last_name,
            email=body.email,
            password=body.password,
        )
    except TollgateError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    logger.info("users.created", user_id=user.id)
    return UserWritten(
        message=f"{user.first_name} has been added to the database",
        user=UserRead.model_validate(user),
    )


@router.get("/{user_id}", response_model=UserRead)
async def get_user(user_id: int, svc: UserService = Depends(_svc)):
    user = await svc.find_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.put("/{user_id}", response_model=UserWritten)
async def update_user(
    user_id: int,
    body: UserUpdate,
    svc: UserService = Depends(_svc),
):
    """Partial update. A new password gets a fresh salt."""
    try:
        user = await svc.update(
            user_id,
            first_name=body.first_name,
            last_name=body.last_name,
            email=body.email,
            password=body.password,
        )
    except TollgateError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return UserWritten(
        message="User updated successfully",
        user=UserRead.model_validate(user),
    )


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: int, svc: UserService = Depends(_svc)):
    """Delete an account and, through the FK cascade, its sessions."""
    if not await svc.delete(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("users.deleted", user_id=user_id)
    return MessageResponse(message=f"User {user_id} deleted successfully")
