"""Back-office user accounts: registration, login and token issue."""

import uuid
from typing import Optional

import bcrypt
from fastapi import HTTPException, status
from libs.auth.dependencies import create_access_token
from libs.common.logging import get_logger
from services.market_service.models import User
from services.market_service.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

BCRYPT_ROUNDS = 12
# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash
        return False


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        access_token=create_access_token(subject=str(user.id), email=user.email),
        user=UserResponse.model_validate(user),
    )


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(
        select(User).where(func.lower(User.email) == email.lower())
    )
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> User:
    if await get_user_by_email(db, email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists",
        )

    user = User(
        email=email.lower(),
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        is_active=True,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists",
        ) from e
    await db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


async def register(db: AsyncSession, *, data: RegisterRequest) -> AuthResponse:
    user = await create_user(
        db,
        email=data.email,
        password=data.password,
        first_name=data.first_name,
        last_name=data.last_name,
    )
    return _auth_response(user)


async def login(db: AsyncSession, *, data: LoginRequest) -> AuthResponse:
    user = await get_user_by_email(db, data.email)
    if not user or not user.is_active or not verify_password(
        data.password, user.password_hash
    ):
        logger.warning("Failed login for %s", data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return _auth_response(user)


async def get_user(db: AsyncSession, *, user_id: str) -> User:
    try:
        user = await db.get(User, uuid.UUID(user_id))
    except ValueError:
        user = None
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user
