"""
NewsNext Backend — User, Category & Auth Schemas
=================================================

The password hash is never part of any response model; passwords only
appear on the create/update/login request bodies.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from newsnext.models.enums import Role
from newsnext.schemas.common import PageMeta


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name_en: str
    name_it: str
    slug: str

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    """Compact user shape embedded in memos."""
    id: uuid.UUID
    name: str
    email: str
    avatar: Optional[str] = None
    role: Role

    model_config = {"from_attributes": True}


class AdvertiserSummary(BaseModel):
    """Compact user shape embedded in ads."""
    id: uuid.UUID
    name: str
    email: str
    company_name: Optional[str] = None

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    avatar: Optional[str] = None
    role: Role
    company_name: Optional[str] = None
    is_active: bool
    social_posting_allowed: bool
    created_at: datetime
    allowed_categories: List[CategoryResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class UserListItem(UserResponse):
    news_count: int = Field(default=0, description="Number of news articles authored")


class UserListResponse(BaseModel):
    users: List[UserListItem]
    meta: PageMeta


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(min_length=1, max_length=120)
    role: Role = Role.USER
    avatar: Optional[str] = Field(default=None, max_length=500)
    company_name: Optional[str] = Field(default=None, max_length=200)
    is_active: bool = True
    social_posting_allowed: bool = False
    category_ids: Optional[List[uuid.UUID]] = Field(
        default=None, description="Categories an EDITOR may publish in"
    )


class UserUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    role: Optional[Role] = None
    avatar: Optional[str] = Field(default=None, max_length=500)
    company_name: Optional[str] = Field(default=None, max_length=200)
    is_active: Optional[bool] = None
    social_posting_allowed: Optional[bool] = None
    category_ids: Optional[List[uuid.UUID]] = Field(
        default=None, description="Replaces the category set; [] clears it"
    )


class AssignCategoriesRequest(BaseModel):
    category_ids: List[uuid.UUID]


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Token lifetime in seconds")
    user: UserResponse
