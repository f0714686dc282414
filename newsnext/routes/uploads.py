"""
NewsNext Backend — Static Uploads Route
========================================

GET /uploads/{path}

Serves stored media with long-lived caching (file names are UUIDs, so a
URL never changes content) and cross-origin headers so partner sites can
embed images and videos. Range requests are handled by FileResponse.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from newsnext.services.file_service import content_type_for, file_service

router = APIRouter(tags=["Uploads"])

CACHE_HEADERS = {
    "Cache-Control": "public, max-age=31536000, immutable",
    "Cross-Origin-Resource-Policy": "cross-origin",
    "Access-Control-Allow-Origin": "*",
}


@router.get("/uploads/{file_path:path}", include_in_schema=False)
async def serve_upload(file_path: str) -> FileResponse:
    path = file_service.resolve_public_path(file_path)
    return FileResponse(path, media_type=content_type_for(path), headers=CACHE_HEADERS)
