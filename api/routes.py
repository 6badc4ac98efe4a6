from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from .schemas import AnalysisResult, SalesAnalysisRequest, StockSuggestionRequest, StockSuggestionResponse
from .deps import get_sales_analyzer, get_stock_suggestion_agent
from agents.errors import (
    DateParseError,
    InvalidRequest,
    NoSalesDataAvailable,
    ReasoningEngineUnavailable,
    SchemaValidationError,
)
from agents.sales_analyzer import SalesAnalyzer
from agents.stock_suggestion_agent import StockSuggestionAgent

router = APIRouter()

# Pipeline failure kind -> HTTP status
_STATUS_BY_ERROR = [
    (InvalidRequest, 400),
    (NoSalesDataAvailable, 404),
    (ReasoningEngineUnavailable, 503),
    (SchemaValidationError, 502),
]


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/sales-analysis", response_model=AnalysisResult)
def sales_analysis(
    payload: SalesAnalysisRequest,
    analyzer: SalesAnalyzer = Depends(get_sales_analyzer),
):
    try:
        return analyzer.analyze(payload.sales_data)
    except DateParseError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/stock-suggestion", response_model=StockSuggestionResponse)
def stock_suggestion(
    payload: StockSuggestionRequest,
    agent: StockSuggestionAgent = Depends(get_stock_suggestion_agent),
):
    """Statistics plus an LLM-written stocking recommendation for one product.

    Sync on purpose: FastAPI runs it in the threadpool, so the blocking
    reasoning engine call never stalls the event loop.
    """
    try:
        return agent.suggest(payload)
    except tuple(err for err, _ in _STATUS_BY_ERROR) as e:
        status = next(code for err, code in _STATUS_BY_ERROR if isinstance(e, err))
        raise HTTPException(
            status_code=status,
            detail={"kind": e.kind, "message": str(e), "retryable": e.retryable},
        )
