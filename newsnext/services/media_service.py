"""NewsNext Backend — Media Service (upload records for images and videos)."""

import logging
import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsnext.exceptions import DatabaseError, NotFoundError
from newsnext.models.enums import MediaType, ProcessingStatus
from newsnext.models.media import Media
from newsnext.models.user import User
from newsnext.services.file_service import file_service

logger = logging.getLogger(__name__)


class MediaService:
    async def upload(
        self,
        db: AsyncSession,
        filename: str,
        content: bytes,
        uploader: User,
        content_length: Optional[int] = None,
    ) -> Media:
        """
        Store the file and create its Media row.

        Images are COMPLETED immediately; videos start PENDING and are picked
        up by VideoProcessingService. The stored file is removed again if the
        row cannot be written.
        """
        stored = await file_service.validate_and_store(filename, content, content_length)
        media_type = stored["media_type"]

        media = Media(
            url=stored["url"],
            type=media_type,
            filename=filename,
            mime_type=stored["mime_type"],
            file_size=stored["file_size"],
            uploader=uploader,
            processing_status=(
                ProcessingStatus.PENDING if media_type == MediaType.VIDEO else ProcessingStatus.COMPLETED
            ),
        )
        db.add(media)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            await file_service.cleanup_file(str(stored["path"]))
            logger.error("Failed to save media record for %s: %s", stored["url"], e)
            raise DatabaseError(context={"url": stored["url"]})

        logger.info("Media %s uploaded by %s (%s)", media.id, uploader.id, media_type.value)
        return media

    async def get_media(self, db: AsyncSession, media_id: uuid.UUID) -> Media:
        media = await db.get(Media, media_id)
        if media is None:
            raise NotFoundError("Media", str(media_id))
        return media


media_service = MediaService()
