"""Registration, login and profile endpoints."""

from fastapi import APIRouter, Depends, Request, status
from libs.auth.dependencies import get_current_user, require_api_key
from libs.auth.models import AuthUser
from libs.common.rate_limit import auth_limit
from libs.db.session import get_async_db
from services.market_service.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from services.market_service.services import user_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(
    prefix="/auth", tags=["auth"], dependencies=[Depends(require_api_key)]
)


@router.post(
    "/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED
)
@auth_limit
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_async_db),
):
    return await user_ops.register(db, data=body)


@router.post("/login", response_model=AuthResponse)
@auth_limit
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_async_db),
):
    return await user_ops.login(db, data=body)


@router.get("/profile", response_model=UserResponse)
async def profile(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await user_ops.get_user(db, user_id=current_user.user_id)
