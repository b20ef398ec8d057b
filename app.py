"""
FastAPI application — REST API for the maintenance dashboard.

Endpoints:
  POST /scan                       — Capture a frame, analyze it, record an issue
  GET  /issues                     — List issues (newest first, optional status filter)
  GET  /board                      — Triage board: issues grouped by status
  GET  /issues/{issue_id}          — Issue detail with available actions
  POST /issues/{issue_id}/start-fix
  POST /issues/{issue_id}/warranty
  POST /issues/{issue_id}/repair-guide
  POST /issues/{issue_id}/complete
  GET  /machine                    — Connected machine and warranty status
  GET  /health                     — Health check
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel

import config
from features.maintenance import (
    AttachRepairGuide,
    CaptureUnavailable,
    Complete,
    IssueAction,
    IssueNotFound,
    IssueStatus,
    MaintenanceSession,
    RequestWarrantyVisit,
    StartFix,
    fetch_repair_guide,
    start_session,
)
from features.maintenance.capture import UploadedFrameSource
from features.maintenance.flows import assess_frame, record_detection
from features.maintenance.lifecycle import utcnow

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.session = start_session()
    try:
        yield
    finally:
        app.state.session.close()


app = FastAPI(
    title="SmartMaint",
    description="Camera-driven machine maintenance monitoring with AI anomaly detection",
    version="1.0.0",
    lifespan=lifespan,
)


def _session(request: Request) -> MaintenanceSession:
    return request.app.state.session


class ScanRequest(BaseModel):
    image_base64: str | None = None  # JPEG captured by the browser; omit to use the server camera


# ── Health ────────────────────────────────────────────────────────────
# Handlers are async so every store read and write runs on the event loop;
# only blocking capture and gateway calls are handed to the executor.

@app.get("/health")
async def health(request: Request):
    session = _session(request)
    return {
        "status": "ok",
        "service": "smartmaint",
        "camera_configured": session.camera is not None,
        "issues": len(session.store),
    }


@app.get("/machine")
async def get_machine(request: Request):
    machine = _session(request).machine
    return _serialize({
        "id": machine.id,
        "name": machine.name,
        "status": machine.status.value,
        "model": machine.model,
        "warranty_expiration": machine.warranty_expiration,
        "warranty_active": machine.warranty_active(utcnow()),
    })


# ── Scan ─────────────────────────────────────────────────────────────

@app.post("/scan")
async def scan(req: ScanRequest, request: Request):
    """Capture a frame, run anomaly detection, and record the resulting issue."""
    session = _session(request)
    if req.image_base64:
        try:
            image = base64.b64decode(req.image_base64, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail="image_base64 is not valid base64")
        source = UploadedFrameSource(image)
    elif session.camera is not None:
        source = session.camera
    else:
        raise HTTPException(status_code=503, detail="Camera access denied or unavailable.")

    if session.scanning:
        raise HTTPException(status_code=409, detail="A scan is already in progress")
    session.scanning = True
    loop = asyncio.get_running_loop()
    try:
        try:
            frame = await loop.run_in_executor(None, source.capture_frame)
        except CaptureUnavailable as e:
            raise HTTPException(status_code=503, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        judgement = await loop.run_in_executor(
            None, assess_frame, session.gateway, frame, config.DETECTION_POLICY,
        )
    finally:
        session.scanning = False

    issue = record_detection(session.lifecycle, judgement, frame)
    if issue is None:
        return {"issue": None}
    return {"issue": _issue_detail(session, issue)}


# ── Issues ────────────────────────────────────────────────────────────

@app.get("/issues")
async def list_issues(request: Request, status: IssueStatus | None = None):
    """List issues newest first, optionally filtered by status."""
    store = _session(request).store
    issues = store.filter_by_status(status) if status else store.all()
    return {"issues": [_serialize(i.to_dict()) for i in issues], "count": len(issues)}


@app.get("/board")
async def board(request: Request):
    """Issues grouped into the three triage columns."""
    store = _session(request).store
    columns = {
        s.value.lower(): [_serialize(i.to_dict()) for i in store.filter_by_status(s)]
        for s in IssueStatus
    }
    return {"columns": columns, **store.summary(), "currency": config.CURRENCY}


@app.get("/issues/{issue_id}")
async def get_issue(issue_id: str, request: Request):
    session = _session(request)
    return _issue_detail(session, _get_or_404(session, issue_id))


@app.post("/issues/{issue_id}/start-fix")
async def start_fix(issue_id: str, request: Request):
    return _apply(_session(request), StartFix(issue_id))


@app.post("/issues/{issue_id}/warranty")
async def request_warranty(issue_id: str, request: Request):
    return _apply(_session(request), RequestWarrantyVisit(issue_id))


@app.post("/issues/{issue_id}/complete")
async def complete(issue_id: str, request: Request):
    return _apply(_session(request), Complete(issue_id))


@app.post("/issues/{issue_id}/repair-guide")
async def repair_guide(issue_id: str, request: Request):
    """Fetch a repair guide for the issue and attach it."""
    session = _session(request)
    issue = _require_self_repair(session, _get_or_404(session, issue_id))
    if issue.repair_guide is not None:
        return _issue_detail(session, issue)

    loop = asyncio.get_running_loop()
    guide = await loop.run_in_executor(
        None, fetch_repair_guide, session.gateway, issue.description, session.machine.model,
    )
    # A warranty visit may have been booked while the guide was being fetched.
    _require_self_repair(session, _get_or_404(session, issue_id))
    return _apply(session, AttachRepairGuide(issue_id, guide))


def _get_or_404(session: MaintenanceSession, issue_id: str):
    try:
        return session.store.get(issue_id)
    except IssueNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


def _require_self_repair(session: MaintenanceSession, issue):
    if IssueAction.REPAIR_GUIDE not in session.lifecycle.actions_for(issue):
        raise HTTPException(status_code=409, detail="A warranty visit is scheduled for this issue")
    return issue


def _apply(session: MaintenanceSession, command) -> dict:
    issue = session.lifecycle.dispatch(command)
    if issue is None:
        raise HTTPException(status_code=404, detail=f"Issue not found: {command.issue_id}")
    return _issue_detail(session, issue)


def _issue_detail(session: MaintenanceSession, issue) -> dict:
    data = _serialize(issue.to_dict())
    data["available_actions"] = [a.value for a in session.lifecycle.actions_for(issue)]
    return data


def _serialize(obj: Any) -> Any:
    """Make a dict JSON-serializable (handle datetimes, tuples, etc)."""
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_serialize(v) for v in obj]
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    return obj
