"""
NewsNext Backend — Media Routes
================================

POST /api/v1/media/upload                 any signed-in user (multipart "file")
GET  /api/v1/media/{id}
GET  /api/v1/media/videos/pending         admins: videos awaiting processing
POST /api/v1/media/videos/process         admins: batch (re)process
POST /api/v1/media/{id}/process           admins: process one video now

Uploaded videos are processed after the response is sent (BackgroundTasks),
so the upload returns as soon as the file is on disk.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, File, Query, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from newsnext.database import get_db_session
from newsnext.dependencies import get_current_user, require_admin
from newsnext.models.enums import MediaType
from newsnext.models.media import Media
from newsnext.models.user import User
from newsnext.schemas.common import ApiResponse, ErrorResponse
from newsnext.schemas.media import MediaResponse, ProcessVideosRequest, ProcessVideosResult
from newsnext.services.media_service import media_service
from newsnext.services.video_processing_service import video_processing_service
from newsnext.utils.urls import convert_urls_to_absolute

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/media", tags=["Media"])


def _media_out(media: Media) -> MediaResponse:
    data = convert_urls_to_absolute(MediaResponse.model_validate(media).model_dump())
    return MediaResponse(**data)


@router.post(
    "/upload",
    status_code=201,
    response_model=ApiResponse[MediaResponse],
    responses={
        400: {"description": "Unsupported or oversized file", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
    },
    summary="Upload an image or video",
)
async def upload_media(
    request: Request,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="Image or video file"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[MediaResponse]:
    content_length = request.headers.get("content-length")
    content = await file.read()
    media = await media_service.upload(
        db,
        filename=file.filename or "",
        content=content,
        uploader=user,
        content_length=int(content_length) if content_length and content_length.isdigit() else None,
    )
    if media.type == MediaType.VIDEO:
        # Row must be committed before the background session can see it
        await db.commit()
        background_tasks.add_task(video_processing_service.process_in_background, media.id)
    return ApiResponse(message="Media uploaded successfully", data=_media_out(media))


@router.get(
    "/videos/pending",
    response_model=ApiResponse[List[MediaResponse]],
    summary="Videos waiting for processing",
)
async def pending_videos(
    limit: int = Query(default=10, ge=1, le=100),
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[List[MediaResponse]]:
    videos = await video_processing_service.get_pending_videos(db, limit)
    return ApiResponse(message="Pending videos retrieved successfully", data=[_media_out(v) for v in videos])


@router.post(
    "/videos/process",
    response_model=ApiResponse[ProcessVideosResult],
    summary="Process several videos",
)
async def process_videos(
    body: ProcessVideosRequest,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ProcessVideosResult]:
    result = await video_processing_service.process_videos(db, body.media_ids)
    return ApiResponse(message="Video processing finished", data=ProcessVideosResult(**result))


@router.get("/{media_id}", response_model=ApiResponse[MediaResponse], summary="Get media")
async def get_media(
    media_id: UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[MediaResponse]:
    media = await media_service.get_media(db, media_id)
    return ApiResponse(message="Media retrieved successfully", data=_media_out(media))


@router.post(
    "/{media_id}/process",
    response_model=ApiResponse[MediaResponse],
    responses={500: {"description": "ffprobe failed", "model": ErrorResponse}},
    summary="Process one video",
)
async def process_video(
    media_id: UUID,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[MediaResponse]:
    media = await video_processing_service.process_video(db, media_id)
    return ApiResponse(message="Video processed successfully", data=_media_out(media))
