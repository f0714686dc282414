"""Enumerations shared by the ORM models, schemas and services."""

import enum


class Role(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    ADVERTISER = "ADVERTISER"
    USER = "USER"


ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


class AdType(str, enum.Enum):
    BANNER_TOP = "BANNER_TOP"
    BANNER_SIDE = "BANNER_SIDE"
    INLINE = "INLINE"
    FOOTER = "FOOTER"
    SLIDER = "SLIDER"
    SLIDER_TOP = "SLIDER_TOP"


SLIDER_TYPES = frozenset({AdType.SLIDER, AdType.SLIDER_TOP})


class AdStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


# Statuses that hold a booking on the calendar
BOOKED_STATUSES = (AdStatus.ACTIVE, AdStatus.PENDING)


class TransactionStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class MediaType(str, enum.Enum):
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"


class ProcessingStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class MemoType(str, enum.Enum):
    NOTE = "NOTE"
    REMINDER = "REMINDER"
    TASK = "TASK"
    FOLLOW_UP = "FOLLOW_UP"
