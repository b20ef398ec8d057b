"""
Data models for the maintenance feature.

Issue and IssueStatus are the core domain objects for tracking a detected
anomaly from triage to completion. All records are frozen: lifecycle
operations produce a new value with only the changed fields altered.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum


class IssueStatus(str, Enum):
    UNRESOLVED = "UNRESOLVED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = [IssueStatus.UNRESOLVED, IssueStatus.IN_PROGRESS, IssueStatus.COMPLETED]


class MachineStatus(str, Enum):
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    ERROR = "ERROR"


class IssueAction(str, Enum):
    """Actions the presentation layer may offer for an issue."""
    START_FIX = "start_fix"
    REQUEST_WARRANTY_VISIT = "request_warranty_visit"
    REPAIR_GUIDE = "repair_guide"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Machine:
    """Static descriptor of the monitored asset."""
    id: str
    name: str
    status: MachineStatus
    model: str
    warranty_expiration: datetime

    def warranty_active(self, now: datetime) -> bool:
        return now < self.warranty_expiration


@dataclass(frozen=True)
class RepairGuide:
    steps: tuple[str, ...] = ()
    tools: tuple[str, ...] = ()


@dataclass(frozen=True)
class Judgement:
    """Structured result of an anomaly-analysis request."""
    has_issue: bool
    description: str
    parts_required: tuple[str, ...] = ()
    estimated_cost_self: float = 0.0
    estimated_cost_outsourced: float = 0.0


@dataclass(frozen=True)
class Issue:
    """A tracked maintenance record for one detected anomaly."""
    id: str
    machine_id: str
    description: str
    detected_at: datetime
    status: IssueStatus = IssueStatus.UNRESOLVED
    snapshot_url: str | None = None
    parts_required: tuple[str, ...] = field(default_factory=tuple)
    estimated_cost_self: float = 0.0
    estimated_cost_outsourced: float = 0.0
    repair_guide: RepairGuide | None = None
    warranty_claim_date: datetime | None = None

    def __post_init__(self):
        if not self.description:
            raise ValueError("Issue description must not be empty")
        if self.estimated_cost_self < 0 or self.estimated_cost_outsourced < 0:
            raise ValueError("Cost estimates must be non-negative")

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data
