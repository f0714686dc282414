"""
NewsNext Backend — User & Category Models
==========================================

What:  `users`, `categories` and the `editor_categories` association table.
Why:   Every other table hangs off a user: ads have an advertiser, media an
       uploader, memos a subject and an author, news an author.

Table Design Rationale:
    - email is unique; the service checks first so the client gets a
      friendly 409, the constraint catches races
    - password_hash uses the pbkdf2:sha256 format from newsnext.security
    - role is stored as a short string (non-native enum) so adding a role
      never needs an ALTER TYPE
    - allowed_categories restricts what an EDITOR may publish in
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, Column, Enum as SAEnum, ForeignKey, Index, String, Table, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from newsnext.database import Base, UTCDateTime, utcnow
from newsnext.models.enums import Role


editor_categories = Table(
    "editor_categories",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Uuid, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name_en: Mapped[str] = mapped_column(String(120), nullable=False)
    name_it: Mapped[str] = mapped_column(String(120), nullable=False)
    slug: Mapped[str] = mapped_column(String(140), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, slug='{self.slug}')>"


class User(Base):
    """
    A platform account: staff (admins, editors), advertisers and readers.

    The password hash never leaves the service layer; response schemas
    simply do not declare it.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    avatar: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    role: Mapped[Role] = mapped_column(
        SAEnum(Role, native_enum=False, length=32),
        nullable=False,
        default=Role.USER,
    )
    company_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    social_posting_allowed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    allowed_categories: Mapped[List[Category]] = relationship(
        secondary=editor_categories,
        lazy="selectin",
        order_by=Category.name_en,
    )

    __table_args__ = (
        Index("idx_users_role", "role"),
        Index("idx_users_created_at", "created_at"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role in (Role.ADMIN, Role.SUPER_ADMIN)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
