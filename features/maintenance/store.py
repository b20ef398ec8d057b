"""
Issue Store — the ordered collection of issues for one monitoring session.

Issues are kept newest first. The store is the only place records are
swapped; every change replaces a whole record, so a reader never sees a
partially updated issue.
"""

from __future__ import annotations

import logging
from typing import Callable

from features.maintenance.errors import DuplicateIssueError, IssueNotFound
from features.maintenance.models import Issue, IssueStatus

log = logging.getLogger(__name__)


class IssueStore:
    """Holds the issues of a single session in most-recent-first order."""

    def __init__(self):
        self._issues: list[Issue] = []

    def __len__(self) -> int:
        return len(self._issues)

    def _index_of(self, issue_id: str) -> int | None:
        for i, issue in enumerate(self._issues):
            if issue.id == issue_id:
                return i
        return None

    def append(self, issue: Issue) -> None:
        """Insert an issue at the head of the collection."""
        if self._index_of(issue.id) is not None:
            raise DuplicateIssueError(f"Issue {issue.id} is already tracked")
        self._issues.insert(0, issue)

    def replace(self, issue_id: str, updater: Callable[[Issue], Issue]) -> Issue | None:
        """Swap the issue with ``issue_id`` for ``updater(issue)``.

        Unknown ids are ignored (a stale reference, not a fault) and
        return None. Otherwise returns the stored replacement.
        """
        idx = self._index_of(issue_id)
        if idx is None:
            log.debug("[ISSUE] Ignoring update for unknown issue %s", issue_id)
            return None
        updated = updater(self._issues[idx])
        if updated.id != issue_id:
            raise ValueError(f"Updater changed issue id {issue_id} -> {updated.id}")
        self._issues[idx] = updated
        return updated

    def get(self, issue_id: str) -> Issue:
        idx = self._index_of(issue_id)
        if idx is None:
            raise IssueNotFound(issue_id)
        return self._issues[idx]

    def all(self) -> list[Issue]:
        """Return a snapshot of all issues, newest first."""
        return list(self._issues)

    def filter_by_status(self, status: IssueStatus) -> list[Issue]:
        status = IssueStatus(status)
        return [i for i in self._issues if i.status == status]

    def summary(self) -> dict:
        """Return per-status counts for the session."""
        statuses = {s.value: 0 for s in IssueStatus}
        for issue in self._issues:
            statuses[issue.status.value] += 1
        return {
            "total_issues": len(self._issues),
            "statuses": statuses,
        }
