"""
Commands the presentation layer dispatches into the issue lifecycle.
"""

from __future__ import annotations

from dataclasses import dataclass

from features.maintenance.models import RepairGuide


@dataclass(frozen=True)
class StartFix:
    issue_id: str


@dataclass(frozen=True)
class RequestWarrantyVisit:
    issue_id: str


@dataclass(frozen=True)
class AttachRepairGuide:
    issue_id: str
    guide: RepairGuide


@dataclass(frozen=True)
class Complete:
    issue_id: str


Command = StartFix | RequestWarrantyVisit | AttachRepairGuide | Complete
