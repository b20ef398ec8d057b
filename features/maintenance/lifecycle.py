"""
Issue Lifecycle — creates issues and moves them through
UNRESOLVED -> IN_PROGRESS -> COMPLETED.

Every operation reads the current record, builds a replacement and hands it
to IssueStore.replace. Operations on unknown ids are silent no-ops, and each
guarded operation is idempotent: calling it again never regresses status or
overwrites a write-once field (repair guide, warranty claim date).
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable

import config
from features.maintenance.commands import (
    AttachRepairGuide,
    Command,
    Complete,
    RequestWarrantyVisit,
    StartFix,
)
from features.maintenance.models import (
    Issue,
    IssueAction,
    IssueStatus,
    Judgement,
    Machine,
    RepairGuide,
)
from features.maintenance.store import IssueStore

log = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _advance(issue: Issue, target: IssueStatus) -> Issue:
    """Return ``issue`` moved to ``target``, never to an earlier stage."""
    if target.rank <= issue.status.rank:
        return issue
    return replace(issue, status=target)


def available_actions(issue: Issue, machine: Machine, now: datetime) -> list[IssueAction]:
    """Actions the detail and board views may offer for ``issue``.

    A scheduled warranty visit hides the self-repair path.
    """
    actions = []
    if issue.status == IssueStatus.UNRESOLVED:
        actions.append(IssueAction.START_FIX)
    if machine.warranty_active(now) and issue.warranty_claim_date is None:
        actions.append(IssueAction.REQUEST_WARRANTY_VISIT)
    if issue.warranty_claim_date is None:
        actions.append(IssueAction.REPAIR_GUIDE)
    if issue.status != IssueStatus.COMPLETED:
        actions.append(IssueAction.COMPLETE)
    return actions


class IssueLifecycle:
    """Applies lifecycle operations to issues held in an IssueStore."""

    def __init__(
        self,
        store: IssueStore,
        machine: Machine,
        clock: Callable[[], datetime] = utcnow,
        warranty_offset: timedelta | None = None,
    ):
        self.store = store
        self.machine = machine
        self.clock = clock
        self.warranty_offset = warranty_offset or timedelta(days=config.WARRANTY_VISIT_OFFSET_DAYS)
        self._handlers = {
            StartFix: lambda c: self.start_fix(c.issue_id),
            RequestWarrantyVisit: lambda c: self.request_warranty_visit(c.issue_id),
            AttachRepairGuide: lambda c: self.attach_repair_guide(c.issue_id, c.guide),
            Complete: lambda c: self.complete(c.issue_id),
        }

    def create(self, judgement: Judgement, snapshot_url: str | None = None) -> Issue:
        """Turn a judgement into a new UNRESOLVED issue at the head of the store."""
        issue = Issue(
            id=f"issue-{uuid.uuid4().hex[:8]}",
            machine_id=self.machine.id,
            description=judgement.description,
            detected_at=self.clock(),
            status=IssueStatus.UNRESOLVED,
            snapshot_url=snapshot_url,
            parts_required=tuple(judgement.parts_required),
            estimated_cost_self=judgement.estimated_cost_self,
            estimated_cost_outsourced=judgement.estimated_cost_outsourced,
        )
        self.store.append(issue)
        log.info("[ISSUE] Created: %s — %s", issue.id, issue.description)
        return issue

    def start_fix(self, issue_id: str) -> Issue | None:
        def _update(issue: Issue) -> Issue:
            if issue.status != IssueStatus.UNRESOLVED:
                return issue
            log.info("[ISSUE] Fix started: %s", issue.id)
            return _advance(issue, IssueStatus.IN_PROGRESS)

        return self.store.replace(issue_id, _update)

    def request_warranty_visit(self, issue_id: str) -> Issue | None:
        now = self.clock()

        def _update(issue: Issue) -> Issue:
            if issue.warranty_claim_date is not None:
                return issue
            if not self.machine.warranty_active(now):
                log.info("[ISSUE] Warranty expired for %s, visit not scheduled for %s",
                         self.machine.id, issue.id)
                return issue
            visit = now + self.warranty_offset
            log.info("[ISSUE] Warranty visit scheduled: %s — %s", issue.id, visit.date().isoformat())
            return replace(issue, warranty_claim_date=visit)

        return self.store.replace(issue_id, _update)

    def attach_repair_guide(self, issue_id: str, guide: RepairGuide) -> Issue | None:
        def _update(issue: Issue) -> Issue:
            if issue.repair_guide is not None:
                return issue
            log.info("[ISSUE] Repair guide attached: %s (%d steps)", issue.id, len(guide.steps))
            return replace(issue, repair_guide=guide)

        return self.store.replace(issue_id, _update)

    def complete(self, issue_id: str) -> Issue | None:
        def _update(issue: Issue) -> Issue:
            if issue.status != IssueStatus.COMPLETED:
                log.info("[ISSUE] Completed: %s (from %s)", issue.id, issue.status.value)
            return _advance(issue, IssueStatus.COMPLETED)

        return self.store.replace(issue_id, _update)

    def dispatch(self, command: Command) -> Issue | None:
        """Apply a presentation-layer command. Returns the stored issue, or None if unknown."""
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unsupported command: {command!r}")
        return handler(command)

    def actions_for(self, issue: Issue) -> list[IssueAction]:
        return available_actions(issue, self.machine, self.clock())
