from __future__ import annotations
import os
from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()

def _get_float(name: str, default: float) -> float:
	try:
		return float(os.getenv(name, default))
	except Exception:
		return default

def _get_int(name: str, default: int) -> int:
	try:
		return int(float(os.getenv(name, default)))
	except Exception:
		return default

# Guidance handed to the reasoning engine (it computes the final numbers)
DEFAULT_FORECAST_HORIZON_DAYS = _get_int("FORECAST_HORIZON_DAYS", 30)
SAFETY_STOCK_RATIO = _get_float("SAFETY_STOCK_RATIO", 0.25)
PEAK_DAYS_LIMIT = _get_int("PEAK_DAYS_LIMIT", 3)

REASONING_TIMEOUT_SECONDS = _get_float("REASONING_TIMEOUT_SECONDS", 30.0)

# Reasoning engine providers; Gemini wins when both keys are set
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_API_URL = os.getenv("GEMINI_API_URL")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
DISABLE_LLM = bool(os.getenv("SUPPLYSENSE_DISABLE_LLM"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")
