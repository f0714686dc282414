"""
NewsNext Backend — User Service
================================

What:  Account management for the admin dashboard (list, create, update,
       delete, editor category assignment) plus password login.
Who:   routes/users.py and routes/auth.py.

Deleting a user:
    Refused while the user authors news (news.author_id is RESTRICT).
    Otherwise the rows that reference the account are removed first
    (chats, transactions, reports, audit logs, bookmarks, memos), ads and
    media are detached, and the user row goes last. Everything runs in
    the request's transaction, so a failure leaves nothing half-deleted.
"""

import logging
import math
import uuid
from typing import Iterable, List, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from newsnext.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from newsnext.models.activity import AuditLog, ChatMessage, Report
from newsnext.models.ad import Ad, Transaction
from newsnext.models.enums import Role
from newsnext.models.media import Media
from newsnext.models.memo import Memo
from newsnext.models.news import Bookmark, News
from newsnext.models.user import Category, User
from newsnext.schemas.common import PageMeta
from newsnext.schemas.user import UserCreate, UserListItem, UserListResponse, UserUpdate
from newsnext.security import hash_password, verify_password

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for users. All methods receive the request session and
    leave committing to the session dependency.
    """

    async def get_all_users(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        role: Optional[Role] = None,
    ) -> UserListResponse:
        """Paginated users, newest first, each with the number of news they authored."""
        conditions = [User.role == role] if role else []

        total = (
            await db.execute(select(func.count()).select_from(User).where(*conditions))
        ).scalar() or 0

        news_counts = (
            select(News.author_id, func.count(News.id).label("news_count"))
            .group_by(News.author_id)
            .subquery()
        )
        result = await db.execute(
            select(User, func.coalesce(news_counts.c.news_count, 0))
            .outerjoin(news_counts, news_counts.c.author_id == User.id)
            .where(*conditions)
            .order_by(User.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        users: List[UserListItem] = []
        for user, news_count in result.all():
            item = UserListItem.model_validate(user)
            item.news_count = news_count
            users.append(item)

        return UserListResponse(
            users=users,
            meta=PageMeta(
                total=total,
                page=page,
                limit=limit,
                total_pages=math.ceil(total / limit) if limit else 0,
            ),
        )

    async def get_user_by_id(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", str(user_id))
        return user

    async def _get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    async def _load_categories(
        self, db: AsyncSession, category_ids: Iterable[uuid.UUID]
    ) -> List[Category]:
        wanted = set(category_ids)
        if not wanted:
            return []
        result = await db.execute(select(Category).where(Category.id.in_(wanted)))
        categories = list(result.scalars().all())
        if len(categories) != len(wanted):
            missing = wanted - {c.id for c in categories}
            raise ValidationError(
                "Some categories not found",
                field="category_ids",
                context={"missing": sorted(str(m) for m in missing)},
            )
        return categories

    async def create_user(self, db: AsyncSession, data: UserCreate) -> User:
        email = data.email.lower()
        if await self._get_by_email(db, email) is not None:
            raise ConflictError("Email already exists", context={"field": "email"})

        categories = await self._load_categories(db, data.category_ids or [])
        user = User(
            email=email,
            password_hash=hash_password(data.password),
            name=data.name,
            role=data.role,
            avatar=data.avatar,
            company_name=data.company_name,
            is_active=data.is_active,
            social_posting_allowed=data.social_posting_allowed,
            allowed_categories=categories,
        )
        db.add(user)
        await db.flush()
        logger.info("Created user %s (role=%s)", user.id, user.role.value)
        return user

    async def update_user(self, db: AsyncSession, user_id: uuid.UUID, data: UserUpdate) -> User:
        user = await self.get_user_by_id(db, user_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("email"):
            email = changes.pop("email").lower()
            existing = await self._get_by_email(db, email)
            if existing is not None and existing.id != user.id:
                raise ConflictError("Email already exists", context={"field": "email"})
            user.email = email

        if changes.get("password"):
            user.password_hash = hash_password(changes.pop("password"))

        if "category_ids" in changes:
            # null and [] both clear the set
            user.allowed_categories = await self._load_categories(
                db, changes.pop("category_ids") or []
            )

        for field in ("name", "role", "is_active", "social_posting_allowed"):
            if changes.get(field) is not None:
                setattr(user, field, changes[field])
        for field in ("avatar", "company_name"):
            if field in changes:
                setattr(user, field, changes[field])

        await db.flush()
        logger.info("Updated user %s", user.id)
        return user

    async def assign_categories(
        self, db: AsyncSession, user_id: uuid.UUID, category_ids: List[uuid.UUID]
    ) -> User:
        user = await self.get_user_by_id(db, user_id)
        user.allowed_categories = await self._load_categories(db, category_ids)
        await db.flush()
        logger.info("Assigned %d categories to user %s", len(user.allowed_categories), user.id)
        return user

    async def delete_user(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        user = await self.get_user_by_id(db, user_id)

        news_count = (
            await db.execute(
                select(func.count()).select_from(News).where(News.author_id == user_id)
            )
        ).scalar() or 0
        if news_count:
            raise ConflictError(
                f"Cannot delete user: User has authored {news_count} news article(s). "
                "Please reassign or delete the news articles first.",
                context={"news_count": news_count},
            )

        await db.execute(
            delete(ChatMessage).where(
                or_(ChatMessage.sender_id == user_id, ChatMessage.receiver_id == user_id)
            )
        )
        await db.execute(delete(Transaction).where(Transaction.user_id == user_id))
        await db.execute(delete(Report).where(Report.user_id == user_id))
        await db.execute(delete(AuditLog).where(AuditLog.user_id == user_id))
        await db.execute(delete(Bookmark).where(Bookmark.user_id == user_id))
        await db.execute(
            delete(Memo).where(or_(Memo.user_id == user_id, Memo.created_by_id == user_id))
        )
        await db.execute(update(Ad).where(Ad.advertiser_id == user_id).values(advertiser_id=None))
        await db.execute(
            update(Media).where(Media.uploader_id == user_id).values(uploader_id=None)
        )

        await db.delete(user)
        await db.flush()
        logger.info("Deleted user %s", user_id)

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> User:
        """
        Raises:
            AuthenticationError: unknown email, wrong password or inactive
                account (one message for all three).
        """
        user = await self._get_by_email(db, email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Invalid email or password")
        return user


user_service = UserService()
