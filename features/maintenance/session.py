"""
Monitoring session — owns the machine descriptor, issue store, lifecycle and
collaborators for one run of the service. Created at startup and discarded
at shutdown; nothing outlives it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import config
from features.maintenance.capture import CameraCaptureSource, CaptureSource
from features.maintenance.gateway import AnalysisGateway, OpenAIAnalysisGateway
from features.maintenance.lifecycle import IssueLifecycle, utcnow
from features.maintenance.models import Machine, MachineStatus
from features.maintenance.store import IssueStore

log = logging.getLogger(__name__)


def build_machine(now: datetime | None = None) -> Machine:
    """The connected machine, with warranty running MACHINE_WARRANTY_DAYS from ``now``."""
    now = now or utcnow()
    return Machine(
        id=config.MACHINE_ID,
        name=config.MACHINE_NAME,
        status=MachineStatus.RUNNING,
        model=config.MACHINE_MODEL,
        warranty_expiration=now + timedelta(days=config.MACHINE_WARRANTY_DAYS),
    )


@dataclass
class MaintenanceSession:
    machine: Machine
    store: IssueStore
    lifecycle: IssueLifecycle
    gateway: AnalysisGateway
    camera: CaptureSource | None = None
    scanning: bool = field(default=False)

    def close(self) -> None:
        stop = getattr(self.camera, "stop", None)
        if stop is not None:
            stop()
        log.info("Session closed with %d issues", len(self.store))


def start_session(
    machine: Machine | None = None,
    gateway: AnalysisGateway | None = None,
    camera: CaptureSource | None = None,
) -> MaintenanceSession:
    machine = machine or build_machine()
    store = IssueStore()
    if camera is None and config.CAMERA_INDEX >= 0:
        camera = CameraCaptureSource(config.CAMERA_INDEX)
    session = MaintenanceSession(
        machine=machine,
        store=store,
        lifecycle=IssueLifecycle(store, machine),
        gateway=gateway or OpenAIAnalysisGateway(),
        camera=camera,
    )
    log.info("Session started for %s (%s)", machine.name, machine.id)
    return session
