"""
NewsNext Backend — Media Model
===============================

What:  Uploaded images and videos served from /uploads.

Processing lifecycle (videos):
    PENDING ──process──▶ PROCESSING ──ok──▶ COMPLETED   (admin uploader)
                              │        └──▶ PENDING     (awaits approval)
                              └──error──▶ FAILED        (retried by batch runs)

Images are stored COMPLETED straight away; only videos go through
ffprobe/ffmpeg.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Enum as SAEnum, Float, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from newsnext.database import Base, UTCDateTime, utcnow
from newsnext.models.enums import MediaType, ProcessingStatus
from newsnext.models.user import User


class Media(Base):
    __tablename__ = "media"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    type: Mapped[MediaType] = mapped_column(SAEnum(MediaType, native_enum=False, length=16), nullable=False)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    uploader_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    processing_status: Mapped[ProcessingStatus] = mapped_column(
        SAEnum(ProcessingStatus, native_enum=False, length=16),
        nullable=False,
        default=ProcessingStatus.PENDING,
    )
    duration: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    width: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    codec: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    bitrate: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    uploader: Mapped[Optional[User]] = relationship(lazy="selectin")

    __table_args__ = (
        Index("idx_media_type_status", "type", "processing_status"),
    )

    def __repr__(self) -> str:
        return f"<Media(id={self.id}, type='{self.type}', status='{self.processing_status}')>"
