from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Target:
    target_id: str
    url: str


@dataclass(frozen=True)
class ExtractionRecord:
    """Field mapping produced from one loaded page.

    The mapping is wrapped read-only so a record cannot change after it
    has been handed out."""

    fields: Mapping[str, str]
    timestamp: str = field(default_factory=utc_now_iso)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def __hash__(self) -> int:
        return hash((frozenset(self.fields.items()), self.timestamp))

    def to_dict(self) -> Dict[str, Any]:
        return {"extracted_data": dict(self.fields), "timestamp": self.timestamp}


@dataclass(frozen=True)
class AttemptResult:
    target_id: str
    url: str
    attempt: int
    success: bool
    latency_ms: int
    record: Optional[ExtractionRecord]
    error_type: Optional[str]
    reason: Optional[str] = None


@dataclass(frozen=True)
class TargetOutcome:
    target_id: str
    url: str
    success: bool
    attempts: int
    record: Optional[ExtractionRecord] = None
    error: Optional[str] = None
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "target_id": self.target_id,
            "url": self.url,
            "success": self.success,
            "attempts": self.attempts,
            "timestamp": self.timestamp,
        }
        if self.record is not None:
            data["data"] = dict(self.record.fields)
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class RunResult:
    outcomes: List[TargetOutcome] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)
    aborted: Optional[str] = None

    @property
    def succeeded(self) -> List[TargetOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> List[TargetOutcome]:
        return [o for o in self.outcomes if not o.success]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcomes": [o.to_dict() for o in self.outcomes],
            "logs": list(self.logs),
            "aborted": self.aborted,
        }


@dataclass(frozen=True)
class AttemptStats:
    total_attempts: int
    success_count: int
    failure_count: int
    error_counts: Dict[str, int]
    avg_latency_ms: float
    timestamp: float
