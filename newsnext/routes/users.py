"""
NewsNext Backend — User Management Routes (ADMIN / SUPER_ADMIN only)
=====================================================================

GET    /api/v1/users                   paginated, with news_count
GET    /api/v1/users/{id}
POST   /api/v1/users
PUT    /api/v1/users/{id}
PUT    /api/v1/users/{id}/categories   editor category assignment
DELETE /api/v1/users/{id}
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from newsnext.database import get_db_session
from newsnext.dependencies import require_admin
from newsnext.exceptions import ValidationError
from newsnext.models.enums import Role
from newsnext.models.user import User
from newsnext.schemas.common import ApiResponse, ErrorResponse
from newsnext.schemas.user import (
    AssignCategoriesRequest,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from newsnext.services.user_service import user_service

router = APIRouter(prefix="/api/v1/users", tags=["Users"])

ERRORS = {
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not an admin", "model": ErrorResponse},
    404: {"description": "User not found", "model": ErrorResponse},
}


@router.get("", response_model=ApiResponse[UserListResponse], responses=ERRORS, summary="List users")
async def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    role: Optional[Role] = Query(default=None),
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[UserListResponse]:
    users = await user_service.get_all_users(db, page=page, limit=limit, role=role)
    return ApiResponse(message="Users retrieved successfully", data=users)


@router.get("/{user_id}", response_model=ApiResponse[UserResponse], responses=ERRORS, summary="Get a user")
async def get_user(
    user_id: UUID,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[UserResponse]:
    user = await user_service.get_user_by_id(db, user_id)
    return ApiResponse(message="User retrieved successfully", data=UserResponse.model_validate(user))


@router.post(
    "",
    status_code=201,
    response_model=ApiResponse[UserResponse],
    responses={**ERRORS, 409: {"description": "Email already exists", "model": ErrorResponse}},
    summary="Create a user",
)
async def create_user(
    body: UserCreate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[UserResponse]:
    user = await user_service.create_user(db, body)
    return ApiResponse(message="User created successfully", data=UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=ApiResponse[UserResponse], responses=ERRORS, summary="Update a user")
async def update_user(
    user_id: UUID,
    body: UserUpdate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[UserResponse]:
    user = await user_service.update_user(db, user_id, body)
    return ApiResponse(message="User updated successfully", data=UserResponse.model_validate(user))


@router.put(
    "/{user_id}/categories",
    response_model=ApiResponse[UserResponse],
    responses=ERRORS,
    summary="Set the categories an editor may publish in",
)
async def assign_categories(
    user_id: UUID,
    body: AssignCategoriesRequest,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[UserResponse]:
    user = await user_service.assign_categories(db, user_id, body.category_ids)
    return ApiResponse(message="Categories assigned successfully", data=UserResponse.model_validate(user))


@router.delete(
    "/{user_id}",
    response_model=ApiResponse[None],
    responses={**ERRORS, 409: {"description": "User still authors news", "model": ErrorResponse}},
    summary="Delete a user",
)
async def delete_user(
    user_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[None]:
    if admin.id == user_id:
        raise ValidationError("You cannot delete your own account", field="user_id")
    await user_service.delete_user(db, user_id)
    return ApiResponse(message="User deleted successfully")
