"""NewsNext Backend — Memo Model (admin notes attached to a user account)."""

import uuid
from datetime import datetime

from sqlalchemy import Enum as SAEnum, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from newsnext.database import Base, UTCDateTime, utcnow
from newsnext.models.enums import MemoType
from newsnext.models.user import User


class Memo(Base):
    __tablename__ = "memos"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    type: Mapped[MemoType] = mapped_column(SAEnum(MemoType, native_enum=False, length=16), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    # Free-form reminder offset entered by the admin; 0 means "no reminder"
    when: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    user: Mapped[User] = relationship(foreign_keys=[user_id], lazy="selectin")
    created_by: Mapped[User] = relationship(foreign_keys=[created_by_id], lazy="selectin")

    __table_args__ = (Index("idx_memos_user_id_created_at", "user_id", "created_at"),)
