"""
NewsNext Backend — Auth Routes
===============================

POST /api/v1/auth/login   email + password → bearer token
GET  /api/v1/auth/me      the authenticated user
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newsnext.config import settings
from newsnext.database import get_db_session
from newsnext.dependencies import get_current_user
from newsnext.models.user import User
from newsnext.schemas.common import ApiResponse, ErrorResponse
from newsnext.schemas.user import LoginRequest, TokenResponse, UserResponse
from newsnext.security import create_access_token
from newsnext.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=ApiResponse[TokenResponse],
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Log in with email and password",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[TokenResponse]:
    user = await user_service.authenticate(db, body.email, body.password)
    token = create_access_token(str(user.id), user.email, user.role.value)
    logger.info("User %s logged in", user.id)
    return ApiResponse(
        message="Login successful",
        data=TokenResponse(
            access_token=token,
            expires_in=settings.jwt_expires_minutes * 60,
            user=UserResponse.model_validate(user),
        ),
    )


@router.get("/me", response_model=ApiResponse[UserResponse], summary="Current user")
async def me(user: User = Depends(get_current_user)) -> ApiResponse[UserResponse]:
    return ApiResponse(message="User retrieved successfully", data=UserResponse.model_validate(user))
