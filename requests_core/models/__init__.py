from .core import (  # noqa: F401
    TimeStampedModel,
    UserRole,
    SampleRequest,
    SampleRequestQuerySet,
    AuditLog,
)
from .history import RequiredByChange, StatusChange  # noqa: F401
from .catalog import ProductTemplate, RequestItem  # noqa: F401

__all__ = [
    "TimeStampedModel",
    "UserRole",
    "SampleRequest",
    "SampleRequestQuerySet",
    "AuditLog",
    "RequiredByChange",
    "StatusChange",
    "RequestItem",
    "ProductTemplate",
]
