from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

import requests
from pydantic import ValidationError

from api.schemas import (
    AnalysisResult,
    ReasoningOutput,
    StockSuggestionRequest,
    StockSuggestionResponse,
)
from agents.errors import (
    DateParseError,
    InvalidRequest,
    NoSalesDataAvailable,
    ReasoningEngineUnavailable,
    SchemaValidationError,
    StockSuggestionError,
)
from agents.reasoning_engine import ReasoningEngine
from agents.sales_analyzer import SalesAnalyzer
from utils.config import (
    DEFAULT_FORECAST_HORIZON_DAYS,
    REASONING_TIMEOUT_SECONDS,
    SAFETY_STOCK_RATIO,
)

logger = logging.getLogger(__name__)


class StockSuggestionAgent:
    """
    Runs the stock suggestion pipeline for one product.

    The sales statistics are computed locally by SalesAnalyzer; only those
    statistics (never the raw sales records) go to the reasoning engine, whose
    answer is schema-checked before it reaches the caller. Every failure is
    raised as one of InvalidRequest, NoSalesDataAvailable,
    ReasoningEngineUnavailable or SchemaValidationError. Nothing is retried
    here: retry policy belongs to the caller.
    """

    def __init__(self,
                 reasoning_engine: ReasoningEngine,
                 analyzer: Optional[SalesAnalyzer] = None,
                 timeout_seconds: float = REASONING_TIMEOUT_SECONDS,
                 horizon_days: int = DEFAULT_FORECAST_HORIZON_DAYS,
                 safety_stock_ratio: float = SAFETY_STOCK_RATIO):
        if reasoning_engine is None:
            raise ValueError("reasoning_engine is required")
        self.reasoning_engine = reasoning_engine
        self.analyzer = analyzer or SalesAnalyzer()
        self.timeout_seconds = timeout_seconds
        self.horizon_days = horizon_days
        self.safety_stock_ratio = safety_stock_ratio

    def suggest(self, request: Union[StockSuggestionRequest, Mapping[str, Any]]) -> StockSuggestionResponse:
        request = self._validate_request(request)
        analysis = self._analyze(request)

        if analysis.sales_trend == "no_data":
            logger.info(f"No sales data for {request.product_name}; skipping reasoning engine")
            raise NoSalesDataAvailable(request.product_name)

        context = self.build_context(request, analysis)
        raw = self._call_engine(context)
        output = self._validate_output(raw, request.product_name)

        # The engine may echo an analysis back; ours is the only one we trust
        return StockSuggestionResponse(
            product_name=request.product_name,
            analysis=analysis,
            suggestion=output.suggestion,
            reasoning=output.reasoning,
        )

    def build_context(self, request: StockSuggestionRequest, analysis: AnalysisResult) -> Dict[str, Any]:
        return {
            "productName": request.product_name,
            "currentStock": request.current_stock,
            "analysisPeriod": request.analysis_period,
            "analysis": analysis.model_dump(by_alias=True),
            "guidance": self.guidance(),
        }

    def guidance(self) -> str:
        pct = round(self.safety_stock_ratio * 100)
        return (
            f"Suggested stock for the next period should approximate (averageDailySales * {self.horizon_days}) "
            "plus a safety buffer; make the buffer larger when the trend is increasing, decreasing or sporadic "
            f"rather than stable. A good safety stock baseline is {pct}% of the next period's stock."
        )

    def _validate_request(self, request) -> StockSuggestionRequest:
        if not isinstance(request, StockSuggestionRequest):
            try:
                request = StockSuggestionRequest.model_validate(request)
            except ValidationError as e:
                logger.info(f"Rejected stock suggestion request: {e.error_count()} validation error(s)")
                raise InvalidRequest(f"Invalid stock suggestion request: {e}") from e

        # model_construct() skips validation, so re-check the basics
        if not (request.product_name or "").strip():
            raise InvalidRequest("productName must not be empty")
        if not (request.analysis_period or "").strip():
            raise InvalidRequest("analysisPeriod must not be empty")
        if request.current_stock is None or request.current_stock < 0:
            raise InvalidRequest("currentStock must be zero or greater")
        return request

    def _analyze(self, request: StockSuggestionRequest) -> AnalysisResult:
        try:
            return self.analyzer.analyze(request.sales_data)
        except DateParseError as e:
            logger.info(f"Rejected sales data for {request.product_name}: {e}")
            raise InvalidRequest(str(e)) from e
        except (ValueError, TypeError) as e:
            logger.info(f"Sales data for {request.product_name} could not be analyzed: {e}")
            raise InvalidRequest(f"Sales data could not be analyzed: {e}") from e

    def _call_engine(self, context: Dict[str, Any]) -> Any:
        product = context["productName"]
        try:
            return self.reasoning_engine.generate(context, timeout=self.timeout_seconds)
        except ReasoningEngineUnavailable as e:
            logger.warning(f"Reasoning engine unavailable for {product}: {e}")
            raise
        except SchemaValidationError as e:
            self._log_schema_drift(product, str(e))
            raise
        except StockSuggestionError:
            raise
        except (TimeoutError, requests.RequestException, OSError) as e:
            logger.warning(f"Reasoning engine unavailable for {product}: {e}")
            raise ReasoningEngineUnavailable(f"Reasoning engine call failed: {e}") from e
        except Exception as e:
            logger.exception(f"Reasoning engine raised unexpectedly for {product}")
            raise ReasoningEngineUnavailable(f"Reasoning engine call failed: {e}") from e

    def _validate_output(self, raw: Any, product: str) -> ReasoningOutput:
        if not isinstance(raw, Mapping):
            self._log_schema_drift(product, f"expected an object, got {type(raw).__name__}")
            raise SchemaValidationError("Reasoning engine returned a non-object response")
        try:
            return ReasoningOutput.model_validate(dict(raw))
        except ValidationError as e:
            self._log_schema_drift(product, str(e))
            raise SchemaValidationError(f"Reasoning engine response violates the output schema: {e}") from e

    def _log_schema_drift(self, product: str, detail: str) -> None:
        logger.error(
            f"Reasoning engine response rejected for {product}",
            extra={"extra_data": {"event": "schema_drift", "product": product, "detail": detail[:500]}},
        )
