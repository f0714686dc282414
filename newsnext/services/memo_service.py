"""NewsNext Backend — Memo Service (admin notes attached to user accounts)."""

import logging
import uuid
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsnext.exceptions import AuthorizationError, NotFoundError
from newsnext.models.enums import Role
from newsnext.models.memo import Memo
from newsnext.models.user import User
from newsnext.schemas.memo import MemoCreate

logger = logging.getLogger(__name__)


class MemoService:
    async def create_memo(self, db: AsyncSession, data: MemoCreate, created_by_id: uuid.UUID) -> Memo:
        """
        Attach a memo to `data.user_id`, authored by `created_by_id`.

        Raises:
            NotFoundError: the target user or the author does not exist.
        """
        user = await db.get(User, data.user_id)
        if user is None:
            raise NotFoundError("User", str(data.user_id))
        author = user if created_by_id == user.id else await db.get(User, created_by_id)
        if author is None:
            raise NotFoundError("User", str(created_by_id))

        memo = Memo(
            type=data.type,
            message=data.message,
            when=data.when,
            user=user,
            created_by=author,
        )
        db.add(memo)
        await db.flush()
        logger.info("Memo %s created for user %s by %s", memo.id, user.id, author.id)
        return memo

    async def get_memos_by_user(self, db: AsyncSession, user_id: uuid.UUID) -> List[Memo]:
        """All memos for a user, newest first."""
        result = await db.execute(
            select(Memo).where(Memo.user_id == user_id).order_by(Memo.created_at.desc())
        )
        return list(result.scalars().all())

    async def delete_memo(self, db: AsyncSession, memo_id: uuid.UUID, admin_id: uuid.UUID) -> None:
        """
        Delete a memo. Only its author or a SUPER_ADMIN may do so.

        Raises:
            NotFoundError: the admin or the memo does not exist.
            AuthorizationError: the admin neither wrote the memo nor is a SUPER_ADMIN.
        """
        admin = await db.get(User, admin_id)
        if admin is None:
            raise NotFoundError("Admin", str(admin_id))
        memo = await db.get(Memo, memo_id)
        if memo is None:
            raise NotFoundError("Memo", str(memo_id))
        if memo.created_by_id != admin.id and admin.role != Role.SUPER_ADMIN:
            raise AuthorizationError("Unauthorized to delete this memo")

        await db.delete(memo)
        await db.flush()
        logger.info("Memo %s deleted by %s", memo_id, admin.id)


memo_service = MemoService()
