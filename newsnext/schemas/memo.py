"""NewsNext Backend — Memo Schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from newsnext.models.enums import MemoType
from newsnext.schemas.user import UserSummary


class MemoCreate(BaseModel):
    type: MemoType
    message: str = Field(min_length=1, max_length=5000)
    when: int = Field(default=0, ge=0)
    user_id: uuid.UUID = Field(description="The account the memo is attached to")


class MemoResponse(BaseModel):
    id: uuid.UUID
    type: MemoType
    message: str
    when: int
    user_id: uuid.UUID
    created_by_id: uuid.UUID
    created_at: datetime
    user: UserSummary
    created_by: UserSummary

    model_config = {"from_attributes": True}
