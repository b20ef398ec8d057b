"""
Maintenance feature — tracks detected machine issues from triage to completion.

Public API:
    from features.maintenance import IssueStore, IssueLifecycle, Issue, IssueStatus
    from features.maintenance import start_session, run_detection
"""

from features.maintenance.commands import AttachRepairGuide, Complete, RequestWarrantyVisit, StartFix
from features.maintenance.errors import (
    CaptureUnavailable,
    DuplicateIssueError,
    GatewayError,
    IssueNotFound,
    MaintenanceError,
)
from features.maintenance.flows import fetch_repair_guide, run_detection
from features.maintenance.lifecycle import IssueLifecycle, available_actions
from features.maintenance.models import (
    Issue,
    IssueAction,
    IssueStatus,
    Judgement,
    Machine,
    MachineStatus,
    RepairGuide,
)
from features.maintenance.session import MaintenanceSession, start_session
from features.maintenance.store import IssueStore

__all__ = [
    "AttachRepairGuide",
    "CaptureUnavailable",
    "Complete",
    "DuplicateIssueError",
    "GatewayError",
    "Issue",
    "IssueAction",
    "IssueLifecycle",
    "IssueNotFound",
    "IssueStatus",
    "IssueStore",
    "Judgement",
    "Machine",
    "MachineStatus",
    "MaintenanceError",
    "MaintenanceSession",
    "RepairGuide",
    "RequestWarrantyVisit",
    "StartFix",
    "available_actions",
    "fetch_repair_guide",
    "run_detection",
    "start_session",
]
