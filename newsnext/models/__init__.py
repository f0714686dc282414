"""
ORM models. Importing this package registers every table on Base.metadata,
which Alembic and the test fixtures rely on.
"""

from newsnext.models.activity import AuditLog, ChatMessage, Report
from newsnext.models.ad import Ad, Transaction
from newsnext.models.media import Media
from newsnext.models.memo import Memo
from newsnext.models.news import Bookmark, News
from newsnext.models.user import Category, User, editor_categories

__all__ = [
    "Ad",
    "AuditLog",
    "Bookmark",
    "Category",
    "ChatMessage",
    "Media",
    "Memo",
    "News",
    "Report",
    "Transaction",
    "User",
    "editor_categories",
]
