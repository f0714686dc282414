"""
NewsNext Backend — Upload Storage Service
==========================================

What:  Validates, stores and serves files under the uploads directory.
Who:   MediaService (uploads) and routes/uploads.py (static serving).

Layout:
    uploads/
    ├── <uuid>.jpg            images
    ├── videos/<uuid>.mp4     videos
    ├── thumbnails/<id>.jpg   video thumbnails (VideoProcessingService)
    └── chunks/               reserved for chunked uploads

    Stored files are addressed publicly as /uploads/<relative path>.

Upload checks, cheapest first:
    1. Extension decides the media kind (image or video)
    2. Size against the per-kind limit (Content-Length first, then bytes)
    3. MIME type from the file header bytes via libmagic
    4. UUID filename, so no user input reaches the filesystem

Serving checks:
    The requested path is resolved and must stay inside the uploads root;
    anything that escapes it (../, absolute paths, symlinks) is refused.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Dict, Optional, Tuple

import aiofiles

from newsnext.config import settings
from newsnext.exceptions import AuthorizationError, FileStorageError, NotFoundError, ValidationError
from newsnext.models.enums import MediaType

logger = logging.getLogger(__name__)

UPLOAD_SUBDIRS = ("videos", "thumbnails", "chunks")

# ── Allowed File Types ────────────────────────────────────────────────────
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
VIDEO_EXTENSIONS = {".mp4", ".webm", ".mov", ".avi", ".mkv"}

IMAGE_MIME_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}
VIDEO_MIME_TYPES = {
    "video/mp4", "video/webm", "video/quicktime",
    "video/x-msvideo", "video/avi", "video/x-matroska", "video/mkv",
}

# Content-Type sent when serving from /uploads
CONTENT_TYPES: Dict[str, str] = {
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".mkv": "video/x-matroska",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def _detect_mime(content: bytes) -> str:
    import magic

    return magic.from_buffer(content[:2048], mime=True)


def content_type_for(path: Path) -> str:
    return CONTENT_TYPES.get(path.suffix.lower(), "application/octet-stream")


class FileService:
    """
    Stores uploads and resolves public /uploads paths back to files.
    """

    def __init__(self, uploads_root: Optional[str] = None):
        self.uploads_root = Path(uploads_root or settings.uploads_root).resolve()

    def ensure_directories(self) -> None:
        """Create the uploads root and its subdirectories (idempotent)."""
        self.uploads_root.mkdir(parents=True, exist_ok=True)
        for subdir in UPLOAD_SUBDIRS:
            (self.uploads_root / subdir).mkdir(exist_ok=True)
        logger.info("Uploads directory ready at %s", self.uploads_root)

    def classify(self, filename: str) -> Tuple[MediaType, str]:
        """
        Decide the media kind from the extension.

        Returns:
            (MediaType, normalised extension with dot)

        Raises:
            ValidationError: extension is neither an image nor a video type.
        """
        ext = Path(filename or "").suffix.lower()
        if ext in IMAGE_EXTENSIONS:
            return MediaType.IMAGE, ext
        if ext in VIDEO_EXTENSIONS:
            return MediaType.VIDEO, ext
        allowed = sorted(IMAGE_EXTENSIONS | VIDEO_EXTENSIONS)
        raise ValidationError(
            message=f"File type '{ext or filename}' is not supported. Allowed types: {', '.join(allowed)}",
            field="file",
            context={"extension": ext, "allowed": allowed},
        )

    def validate_size(self, media_type: MediaType, content_length: Optional[int], actual_size: int) -> None:
        limit = settings.max_video_size if media_type == MediaType.VIDEO else settings.max_image_size
        max_mb = limit / (1024 * 1024)

        if content_length and content_length > limit:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )
        if actual_size > limit:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )
        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty.", field="file")

    def validate_mime_type(self, media_type: MediaType, content: bytes) -> str:
        """
        Check the real content type from the header bytes.

        Raises:
            ValidationError: content does not match the declared kind.
            FileStorageError: libmagic failed to inspect the bytes.
        """
        try:
            mime_type = _detect_mime(content)
        except Exception as e:
            logger.error("MIME type detection failed: %s", e)
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        allowed = VIDEO_MIME_TYPES if media_type == MediaType.VIDEO else IMAGE_MIME_TYPES
        if mime_type not in allowed:
            raise ValidationError(
                message=f"File content type '{mime_type}' does not match a supported {media_type.value.lower()} format.",
                field="file",
                context={"detected_mime": mime_type},
            )
        return mime_type

    def _storage_path(self, media_type: MediaType, extension: str) -> Tuple[Path, str]:
        name = f"{uuid.uuid4()}{extension}"
        relative = f"videos/{name}" if media_type == MediaType.VIDEO else name
        return self.uploads_root / relative, relative

    async def store_file(self, content: bytes, media_type: MediaType, extension: str) -> Tuple[Path, str]:
        """
        Write content under the uploads root.

        Returns:
            (absolute path, public URL path such as /uploads/videos/<uuid>.mp4)
        """
        absolute_path, relative = self._storage_path(media_type, extension)
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store upload at %s: %s", absolute_path, e)
            raise FileStorageError(
                message="Failed to save uploaded file. Please try again.",
                context={"path": relative, "os_error": str(e)},
            )

        logger.info("Stored upload %s (%d bytes)", relative, len(content))
        return absolute_path, f"/uploads/{relative}"

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Dict[str, object]:
        """
        Full upload pipeline.

        Returns a dict with media_type, mime_type, path, url and file_size.
        """
        media_type, ext = self.classify(filename)
        self.validate_size(media_type, content_length, len(content))
        mime_type = self.validate_mime_type(media_type, content)
        path, url = await self.store_file(content, media_type, ext)
        return {
            "media_type": media_type,
            "mime_type": mime_type,
            "path": path,
            "url": url,
            "file_size": len(content),
        }

    async def cleanup_file(self, file_path: str) -> None:
        """Best-effort removal of a stored file after a failed request."""
        path = Path(file_path)
        try:
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, e)

    def resolve_public_path(self, relative: str) -> Path:
        """
        Map the part after /uploads/ to a file inside the uploads root.

        Raises:
            AuthorizationError: the path escapes the uploads root.
            NotFoundError: no such file.
        """
        candidate = (self.uploads_root / relative.lstrip("/")).resolve()
        if not candidate.is_relative_to(self.uploads_root):
            logger.warning("Blocked path traversal attempt: %s", relative)
            raise AuthorizationError("Access denied", context={"path": relative})
        if not candidate.is_file():
            raise NotFoundError("File", relative)
        return candidate


file_service = FileService()
