"""
NewsNext Backend — Memo Routes (ADMIN / SUPER_ADMIN only)
==========================================================

POST   /api/v1/memos                 attach a memo to a user
GET    /api/v1/memos/user/{user_id}  memos for a user, newest first
DELETE /api/v1/memos/{memo_id}
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from newsnext.database import get_db_session
from newsnext.dependencies import require_admin
from newsnext.models.user import User
from newsnext.schemas.common import ApiResponse, ErrorResponse
from newsnext.schemas.memo import MemoCreate, MemoResponse
from newsnext.services.memo_service import memo_service

router = APIRouter(prefix="/api/v1/memos", tags=["Memos"])

ERRORS = {
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not an admin", "model": ErrorResponse},
    404: {"description": "User or memo not found", "model": ErrorResponse},
}


@router.post("", status_code=201, response_model=ApiResponse[MemoResponse], responses=ERRORS, summary="Create a memo")
async def create_memo(
    body: MemoCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[MemoResponse]:
    memo = await memo_service.create_memo(db, body, admin.id)
    return ApiResponse(message="Memo created successfully", data=MemoResponse.model_validate(memo))


@router.get(
    "/user/{user_id}",
    response_model=ApiResponse[List[MemoResponse]],
    responses=ERRORS,
    summary="Memos attached to a user",
)
async def get_memos_by_user(
    user_id: UUID,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[List[MemoResponse]]:
    memos = await memo_service.get_memos_by_user(db, user_id)
    return ApiResponse(
        message="Memos retrieved successfully",
        data=[MemoResponse.model_validate(m) for m in memos],
    )


@router.delete("/{memo_id}", response_model=ApiResponse[None], responses=ERRORS, summary="Delete a memo")
async def delete_memo(
    memo_id: UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[None]:
    await memo_service.delete_memo(db, memo_id, admin.id)
    return ApiResponse(message="Memo deleted successfully")
