#!python3
"""
Record and summary data model for AuditLens.

AuditRecord instances are created once by a single parse pass and are never
mutated afterwards. AuditSummary is always derived from a record sequence.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Category(str, Enum):
    """Mutually exclusive investigation buckets."""

    MISSING_RESOURCE = "file_missing"
    DELETION = "file_deleted"
    FILE_OPERATION = "file_operations"
    SECURITY_EVENT = "security_events"
    SYSTEM_EVENT = "system_events"
    OTHER = "other"


CATEGORY_LABELS = {
    Category.MISSING_RESOURCE: "Missing Files",
    Category.DELETION: "Deleted Files",
    Category.FILE_OPERATION: "File Operations",
    Category.SECURITY_EVENT: "Security Events",
    Category.SYSTEM_EVENT: "System Events",
    Category.OTHER: "Other",
}

# Sentinel returned as time range when no record carries a valid timestamp.
# Callers must check TimeRange.is_sentinel instead of treating it as data.
EPOCH_SENTINEL = datetime(1970, 1, 1)


def category_label(category: Category) -> str:
    """Return the human-readable label of a category."""
    return CATEGORY_LABELS.get(category, str(category.value))


@dataclass(frozen=True)
class AuditRecord:
    """One normalized audit event extracted from one input data row."""

    id: int
    timestamp: Optional[datetime]
    actor: str
    action: str
    resource: str = ""
    container: str = ""
    detail: str = ""
    application: Optional[str] = None
    category: Category = Category.OTHER
    raw: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "user": self.actor,
            "action": self.action,
            "resource": self.resource,
            "folder": self.container,
            "details": self.detail,
            "application": self.application,
            "category": self.category.value,
            "raw": self.raw,
        }


@dataclass(frozen=True)
class TimeRange:
    """Earliest and latest valid timestamps of a record sequence."""

    start: datetime
    end: datetime
    is_sentinel: bool = False

    @classmethod
    def sentinel(cls) -> "TimeRange":
        return cls(EPOCH_SENTINEL, EPOCH_SENTINEL, is_sentinel=True)


@dataclass
class AuditSummary:
    """Aggregate statistics derived from a record sequence."""

    total_entries: int
    category_counts: Dict[Category, int]
    top_actors: List[Tuple[str, int]]
    top_resources: List[Tuple[str, int]]
    time_range: TimeRange
    key_events: List[AuditRecord] = field(default_factory=list)

    def count(self, category: Category) -> int:
        return self.category_counts.get(category, 0)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the 'statistics' shape of the JSON export."""
        return {
            "totalEntries": self.total_entries,
            "fileMissingCount": self.count(Category.MISSING_RESOURCE),
            "fileDeletedCount": self.count(Category.DELETION),
            "fileOperationsCount": self.count(Category.FILE_OPERATION),
            "securityEventsCount": self.count(Category.SECURITY_EVENT),
            "systemEventsCount": self.count(Category.SYSTEM_EVENT),
            "otherCount": self.count(Category.OTHER),
            "mostActiveUsers": [{"user": u, "count": c} for u, c in self.top_actors],
            "mostAffectedResources": [{"resource": r, "count": c} for r, c in self.top_resources],
            "timeRange": {
                "start": self.time_range.start.isoformat(),
                "end": self.time_range.end.isoformat(),
                "isSentinel": self.time_range.is_sentinel,
            },
            "keyEvents": [record.id for record in self.key_events],
        }


@dataclass
class ParseEvent:
    """Structured event delivered to the optional observability hook."""

    stage: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
