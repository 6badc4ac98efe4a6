"""Inference helper module for deployment portals.

Provides a function `suggest_stock(payload, engine=None)` that mirrors the
FastAPI /api/stock-suggestion logic but without web server code.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from agents.errors import ReasoningEngineUnavailable
from agents.reasoning_engine import ReasoningEngine, build_reasoning_engine
from agents.stock_suggestion_agent import StockSuggestionAgent


def suggest_stock(payload: Dict[str, Any], engine: Optional[ReasoningEngine] = None) -> Dict[str, Any]:
    """Run the pipeline on a camelCase request dict and return the camelCase response dict.

    Raises the pipeline's typed errors unchanged (InvalidRequest,
    NoSalesDataAvailable, ReasoningEngineUnavailable, SchemaValidationError).
    """
    engine = engine or build_reasoning_engine()
    if engine is None:
        raise ReasoningEngineUnavailable("No reasoning engine configured. Set GEMINI_API_KEY or OPENAI_API_KEY.")
    agent = StockSuggestionAgent(engine)
    response = agent.suggest(payload)
    return response.model_dump(by_alias=True)

__all__ = ["suggest_stock"]
