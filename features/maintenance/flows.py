"""
Scan and repair flows — glue between the external collaborators
(capture source, analysis gateway) and the issue lifecycle.

Gateway failures never reach the operator: a fixed fallback judgement or
guide is substituted so the flow always completes.
"""

from __future__ import annotations

import logging

import config
from features.maintenance.capture import Frame
from features.maintenance.errors import GatewayError
from features.maintenance.gateway import AnalysisGateway
from features.maintenance.lifecycle import IssueLifecycle
from features.maintenance.models import Issue, Judgement, RepairGuide

log = logging.getLogger(__name__)

ALWAYS_REPORT = "always-report"
REPORT_ONLY_IF_DETECTED = "report-only-if-detected"
DETECTION_POLICIES = (ALWAYS_REPORT, REPORT_ONLY_IF_DETECTED)

# Used when the gateway call fails
FALLBACK_JUDGEMENT = Judgement(
    has_issue=True,
    description="Visual anomaly detected: Surface corrosion on main housing (Simulated)",
    parts_required=("Anti-rust coating", "Sandpaper"),
    estimated_cost_self=450,
    estimated_cost_outsourced=1500,
)

# Used under ALWAYS_REPORT when the gateway sees nothing wrong
SIMULATED_JUDGEMENT = Judgement(
    has_issue=True,
    description="Simulated: Abnormal vibration detected in motor housing.",
    parts_required=("Mounting Bolts", "Damping Pads"),
    estimated_cost_self=250,
    estimated_cost_outsourced=1200,
)

FALLBACK_REPAIR_GUIDE = RepairGuide(
    steps=(
        "Isolate power source.",
        "Remove protective cover.",
        "Inspect damaged area.",
        "Replace component.",
        "Test machine.",
    ),
    tools=("Wrench Set", "Screwdriver", "Multimeter"),
)


def judge_frame(gateway: AnalysisGateway, image: bytes) -> Judgement:
    """Ask the gateway about ``image``, falling back on failure."""
    try:
        return gateway.analyze_frame(image)
    except GatewayError as e:
        log.warning("Frame analysis unavailable, using fallback judgement: %s", e)
        return FALLBACK_JUDGEMENT


def resolve_judgement(judgement: Judgement, policy: str) -> Judgement | None:
    """Apply the detection policy. Returns None when no issue should be created."""
    if policy not in DETECTION_POLICIES:
        raise ValueError(f"Unknown detection policy: {policy}")
    if judgement.has_issue:
        return judgement
    if policy == ALWAYS_REPORT:
        log.info("No anomaly reported; synthesizing a minor issue (%s)", ALWAYS_REPORT)
        return SIMULATED_JUDGEMENT
    return None


def assess_frame(gateway: AnalysisGateway, frame: Frame, policy: str | None = None) -> Judgement | None:
    """Judge a captured frame under the detection policy.

    Touches no session state, so it may run off the event loop.
    """
    return resolve_judgement(judge_frame(gateway, frame.full_image), policy or config.DETECTION_POLICY)


def record_detection(lifecycle: IssueLifecycle, judgement: Judgement | None, frame: Frame) -> Issue | None:
    """Record the issue for an assessed frame. Must run where the store is owned."""
    if judgement is None:
        log.info("Scan clean; no issue recorded")
        return None
    return lifecycle.create(judgement, snapshot_url=frame.preview_reference)


def run_detection(
    lifecycle: IssueLifecycle,
    gateway: AnalysisGateway,
    frame: Frame,
    policy: str | None = None,
) -> Issue | None:
    """Analyze a captured frame and record the resulting issue."""
    return record_detection(lifecycle, assess_frame(gateway, frame, policy), frame)


def fetch_repair_guide(gateway: AnalysisGateway, description: str, machine_model: str) -> RepairGuide:
    """Ask the gateway for a repair guide, falling back on failure."""
    try:
        return gateway.generate_repair_guide(description, machine_model)
    except GatewayError as e:
        log.warning("Repair guide unavailable, using fallback guide: %s", e)
        return FALLBACK_REPAIR_GUIDE
