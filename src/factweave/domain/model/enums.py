"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class FieldStatus(StrEnum):
    PROPOSED = "proposed"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class FieldSource(StrEnum):
    """Normalized producer family that contributed a field value."""

    USER = "user"
    LAB = "lab"
    GAP = "gap"
    AI = "ai"
    CRM = "crm"
    IMPORT = "import"


class RunStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    ERROR = "error"
    ABORTED = "aborted"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"

    @property
    def is_failure(self) -> bool:
        return self in _FAILED_RUN_STATUSES


_FAILED_RUN_STATUSES = frozenset(
    {
        RunStatus.FAILED,
        RunStatus.ERROR,
        RunStatus.ABORTED,
        RunStatus.TIMEOUT,
        RunStatus.CANCELLED,
    }
)


class FindingImpact(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PromotionStatus(StrEnum):
    NOT_PROMOTED = "not_promoted"
    PROMOTED_PENDING = "promoted_pending"


class HealthStatus(StrEnum):
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"


class HealthReason(StrEnum):
    FLAG_DISABLED = "FLAG_DISABLED"
    NO_V4_STORE = "NO_V4_STORE"
    NO_UPSTREAM_RUN = "NO_UPSTREAM_RUN"
    RUN_STALE = "RUN_STALE"
    PROPOSE_ZERO_EXTRACT_MISSING = "PROPOSE_ZERO_EXTRACT_MISSING"
    PROPOSE_ZERO_NO_CANDIDATES = "PROPOSE_ZERO_NO_CANDIDATES"
    PROPOSE_ZERO_ALL_DUPLICATES = "PROPOSE_ZERO_ALL_DUPLICATES"


class NextAction(StrEnum):
    NONE = "NONE"
    FIX_STORE_ACCESS = "FIX_STORE_ACCESS"
    GENERATE_PROPOSALS = "GENERATE_PROPOSALS"
    REVIEW_PROPOSALS = "REVIEW_PROPOSALS"
