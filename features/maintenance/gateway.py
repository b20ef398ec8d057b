"""
Analysis gateway — the remote AI service that judges camera frames and
writes repair guides.

Responses are validated against pydantic schemas at this boundary. Any
transport failure, unparseable reply or schema violation is raised as
GatewayError so callers can fall back to fixed values.
"""

from __future__ import annotations

import logging
from typing import Protocol

from openai import OpenAIError
from pydantic import BaseModel, ConfigDict, Field, model_validator

import config
from features.maintenance.errors import GatewayError
from features.maintenance.models import Judgement, RepairGuide
from utils.llm import chat_json, image_content

log = logging.getLogger(__name__)

NO_ANOMALY_DESCRIPTION = "No anomaly detected"


class AnalysisGateway(Protocol):
    def analyze_frame(self, image: bytes) -> Judgement: ...

    def generate_repair_guide(self, description: str, machine_model: str) -> RepairGuide: ...


# ── Wire schemas ──────────────────────────────────────────────────────

class JudgementPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    has_issue: bool = Field(alias="hasIssue")
    description: str = ""
    parts_required: list[str] = Field(default_factory=list, alias="partsRequired")
    cost_self: float = Field(default=0, ge=0, alias="costSelf")
    cost_outsourced: float = Field(default=0, ge=0, alias="costOutsourced")

    @model_validator(mode="after")
    def _issue_needs_description(self) -> "JudgementPayload":
        if self.has_issue and not self.description:
            raise ValueError("description is required when hasIssue is true")
        return self

    def to_judgement(self) -> Judgement:
        return Judgement(
            has_issue=self.has_issue,
            description=self.description or NO_ANOMALY_DESCRIPTION,
            parts_required=tuple(self.parts_required),
            estimated_cost_self=self.cost_self,
            estimated_cost_outsourced=self.cost_outsourced,
        )


class RepairGuidePayload(BaseModel):
    steps: list[str] = Field(min_length=1)
    tools: list[str] = Field(default_factory=list)

    def to_guide(self) -> RepairGuide:
        return RepairGuide(steps=tuple(self.steps), tools=tuple(self.tools))


# ── Prompts ───────────────────────────────────────────────────────────

FRAME_SYSTEM_PROMPT = (
    "You are an industrial maintenance inspector. Analyze the image as if it were an "
    "industrial machine component and identify any potential maintenance issue "
    "(wear, rust, leak, overheating, loose wiring, or vibration/blur).\n\n"
    "Respond with JSON:\n"
    "{\n"
    '  "hasIssue": boolean,\n'
    '  "description": "short description of the problem",\n'
    '  "partsRequired": ["part name", ...],\n'
    f'  "costSelf": number (estimated material cost in {config.CURRENCY}),\n'
    f'  "costOutsourced": number (estimated total cost if hiring a pro in {config.CURRENCY})\n'
    "}"
)

GUIDE_SYSTEM_PROMPT = (
    "You are a senior maintenance technician writing concise repair instructions.\n\n"
    "Respond with JSON:\n"
    "{\n"
    '  "steps": ["step 1", "step 2", ...],\n'
    '  "tools": ["tool", ...]\n'
    "}"
)


class OpenAIAnalysisGateway:
    """AnalysisGateway backed by an OpenAI vision-capable chat model."""

    def __init__(self, model: str | None = None):
        self.model = model or config.OPENAI_MODEL

    def analyze_frame(self, image: bytes) -> Judgement:
        if not image:
            raise GatewayError("Empty frame")
        log.info("Analyzing frame (%d bytes) with %s", len(image), self.model)
        user = [
            {"type": "text", "text": "Inspect this machine component and report any maintenance issue."},
            image_content(image),
        ]
        try:
            data = chat_json(FRAME_SYSTEM_PROMPT, user, model=self.model, max_tokens=1024)
            return JudgementPayload.model_validate(data).to_judgement()
        except (OpenAIError, ValueError) as e:
            raise GatewayError(f"Frame analysis failed: {e}") from e

    def generate_repair_guide(self, description: str, machine_model: str) -> RepairGuide:
        log.info("Generating repair guide for %s: %s", machine_model, description)
        user = (
            f'Provide a step-by-step repair guide for a "{machine_model}" '
            f'having the following issue: "{description}".'
        )
        try:
            data = chat_json(GUIDE_SYSTEM_PROMPT, user, model=self.model, max_tokens=2048)
            return RepairGuidePayload.model_validate(data).to_guide()
        except (OpenAIError, ValueError) as e:
            raise GatewayError(f"Repair guide generation failed: {e}") from e
