"""Shared fixtures for the maintenance tests.

The project root is added to sys.path so `import features` works when the
package is not installed in editable mode.
"""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from features.maintenance import (  # noqa: E402
    GatewayError,
    IssueLifecycle,
    IssueStore,
    Judgement,
    Machine,
    MachineStatus,
    RepairGuide,
)
from features.maintenance.capture import Frame  # noqa: E402

NOW = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeGateway:
    """In-memory AnalysisGateway; set ``fail`` to simulate an outage."""

    def __init__(self, judgement: Judgement | None = None, guide: RepairGuide | None = None):
        self.judgement = judgement or Judgement(
            has_issue=True,
            description="Low belt tension",
            parts_required=("Belt",),
            estimated_cost_self=100,
            estimated_cost_outsourced=500,
        )
        self.guide = guide or RepairGuide(steps=("Loosen motor mount", "Tension belt"), tools=("Tension gauge",))
        self.fail = False
        self.frames: list[bytes] = []
        self.guide_requests: list[tuple[str, str]] = []

    def analyze_frame(self, image: bytes) -> Judgement:
        self.frames.append(image)
        if self.fail:
            raise GatewayError("service unavailable")
        return self.judgement

    def generate_repair_guide(self, description: str, machine_model: str) -> RepairGuide:
        self.guide_requests.append((description, machine_model))
        if self.fail:
            raise GatewayError("service unavailable")
        return self.guide


class FakeCamera:
    def __init__(self):
        self.captures = 0

    def capture_frame(self) -> Frame:
        self.captures += 1
        return Frame(full_image=b"\xff\xd8jpeg", preview_reference="data:image/jpeg;base64,AAAA")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def machine():
    return Machine(
        id="M-TEST-1",
        name="Test Mill",
        status=MachineStatus.RUNNING,
        model="Titan X-500 Industrial Mill",
        warranty_expiration=NOW + timedelta(days=365),
    )


@pytest.fixture
def expired_machine(machine):
    return Machine(
        id=machine.id,
        name=machine.name,
        status=machine.status,
        model=machine.model,
        warranty_expiration=NOW - timedelta(days=1),
    )


@pytest.fixture
def store():
    return IssueStore()


@pytest.fixture
def lifecycle(store, machine, clock):
    return IssueLifecycle(store, machine, clock=clock, warranty_offset=timedelta(days=3))


@pytest.fixture
def gateway():
    return FakeGateway()
