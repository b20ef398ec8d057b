"""
Error taxonomy for the maintenance feature.
"""

from __future__ import annotations


class MaintenanceError(Exception):
    """Base class for maintenance errors."""


class GatewayError(MaintenanceError):
    """The analysis service failed or returned unusable data."""


class CaptureUnavailable(MaintenanceError):
    """No capture device is reachable."""


class IssueNotFound(MaintenanceError, LookupError):
    """An issue id is not present in the store."""

    def __init__(self, issue_id: str):
        super().__init__(f"Issue not found: {issue_id}")
        self.issue_id = issue_id


class DuplicateIssueError(MaintenanceError):
    """An issue with the same id is already in the store."""
