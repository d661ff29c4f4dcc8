"""
Environment configuration. Values come from the process environment or a local .env file.
"""

import os
from typing import List
from dotenv import load_dotenv

load_dotenv()

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")

# Pause before the automated player answers
AI_MOVE_DELAY_SECONDS = float(os.getenv("AI_MOVE_DELAY_SECONDS", "0.6"))

DEFAULT_GAME_MODE = os.getenv("DEFAULT_GAME_MODE", "PVE").upper()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


CORS_ALLOW_ORIGINS = _split_origins(os.getenv("CORS_ALLOW_ORIGINS", "*"))
