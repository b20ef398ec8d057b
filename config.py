"""
Configuration — loads settings from environment / .env file.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# OpenAI
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TIMEOUT_SEC = float(os.getenv("OPENAI_TIMEOUT_SEC", "60"))

# Rate-limit backoff for gateway calls
LLM_MAX_RETRIES = int(os.getenv("LLM_MAX_RETRIES", "3"))
LLM_BASE_DELAY = float(os.getenv("LLM_BASE_DELAY", "2"))  # seconds

# Detection policy: "always-report" or "report-only-if-detected"
DETECTION_POLICY = os.getenv("DETECTION_POLICY", "always-report")

# Warranty
WARRANTY_VISIT_OFFSET_DAYS = int(os.getenv("WARRANTY_VISIT_OFFSET_DAYS", "3"))

# Connected machine (single mock asset)
MACHINE_ID = os.getenv("MACHINE_ID", "M-2024-X1")
MACHINE_NAME = os.getenv("MACHINE_NAME", "CNC Milling Unit 04")
MACHINE_MODEL = os.getenv("MACHINE_MODEL", "Titan X-500 Industrial Mill")
MACHINE_WARRANTY_DAYS = int(os.getenv("MACHINE_WARRANTY_DAYS", "365"))

# Camera. CAMERA_INDEX=-1 disables the server-side camera.
CAMERA_INDEX = int(os.getenv("CAMERA_INDEX", "0"))
FRAME_JPEG_QUALITY = int(os.getenv("FRAME_JPEG_QUALITY", "80"))
PREVIEW_JPEG_QUALITY = int(os.getenv("PREVIEW_JPEG_QUALITY", "60"))
PREVIEW_MAX_WIDTH = int(os.getenv("PREVIEW_MAX_WIDTH", "320"))

# Cost estimates are quoted in this unit
CURRENCY = os.getenv("CURRENCY", "THB")
