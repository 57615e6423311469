"""
Usage tracking module.

Records automation requests, enforces the per-user request quota and
keeps the audit log of bot interactions.

Public API:
- IUsageService: Interface for usage and quota operations
- IAuditService: Interface for the audit log
- UsageService / SupabaseUsageService
- AuditService / SupabaseAuditService
"""

from .interfaces import IUsageService, IAuditService
from .models import (
    AuditEntry,
    UsageHistoryResponse,
    UsageLog,
    UsageSummary,
    UserStats,
)
from .exceptions import UsageError, QuotaExceededError
from .service import UsageService, SupabaseUsageService
from .audit import AuditService, SupabaseAuditService

__all__ = [
    # Interfaces
    "IUsageService",
    "IAuditService",
    # Models
    "AuditEntry",
    "UsageHistoryResponse",
    "UsageLog",
    "UsageSummary",
    "UserStats",
    # Exceptions
    "UsageError",
    "QuotaExceededError",
    # Implementation
    "UsageService",
    "SupabaseUsageService",
    "AuditService",
    "SupabaseAuditService",
]
