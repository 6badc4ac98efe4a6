from __future__ import annotations

from fastapi import Depends, HTTPException

from agents.reasoning_engine import ReasoningEngine, build_reasoning_engine
from agents.sales_analyzer import SalesAnalyzer
from agents.stock_suggestion_agent import StockSuggestionAgent
from utils.config import (
    DEFAULT_FORECAST_HORIZON_DAYS,
    PEAK_DAYS_LIMIT,
    REASONING_TIMEOUT_SECONDS,
    SAFETY_STOCK_RATIO,
)


def get_sales_analyzer():
    return SalesAnalyzer(peak_days_limit=PEAK_DAYS_LIMIT)


def get_reasoning_engine():
    engine = build_reasoning_engine()
    if engine is None:
        raise HTTPException(
            status_code=503,
            detail="No reasoning engine configured. Set GEMINI_API_KEY or OPENAI_API_KEY.",
        )
    return engine


def get_stock_suggestion_agent(
    engine: ReasoningEngine = Depends(get_reasoning_engine),
    analyzer: SalesAnalyzer = Depends(get_sales_analyzer),
):
    return StockSuggestionAgent(
        engine,
        analyzer=analyzer,
        timeout_seconds=REASONING_TIMEOUT_SECONDS,
        horizon_days=DEFAULT_FORECAST_HORIZON_DAYS,
        safety_stock_ratio=SAFETY_STOCK_RATIO,
    )
