"""NewsNext Backend — Media, Video Processing & Analytics Relay Schemas."""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from newsnext.models.enums import MediaType, ProcessingStatus


class MediaResponse(BaseModel):
    id: uuid.UUID
    url: str
    type: MediaType
    filename: str
    mime_type: Optional[str] = None
    uploader_id: Optional[uuid.UUID] = None
    processing_status: ProcessingStatus
    duration: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
    file_size: Optional[int] = None
    codec: Optional[str] = None
    bitrate: Optional[int] = None
    thumbnail_url: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ProcessVideosRequest(BaseModel):
    media_ids: List[uuid.UUID] = Field(min_length=1, max_length=100)


class ProcessVideosResult(BaseModel):
    success: int
    failed: int


class TrackEventRequest(BaseModel):
    """A client-side analytics event relayed to GA4."""
    name: str = Field(min_length=1, max_length=40, pattern=r"^[A-Za-z][A-Za-z0-9_]*$")
    client_id: Optional[str] = Field(default=None, max_length=100)
    params: Dict[str, Any] = Field(default_factory=dict)
