from __future__ import annotations

from typing import List, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


SalesTrend = Literal["no_data", "stable", "increasing", "decreasing"]


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase JSON. Both spellings are accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _not_blank(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("must not be empty")
    return v


class SalesRecord(CamelModel):
    order_date: str
    quantity: int = Field(ge=0)


class StockSuggestionRequest(CamelModel):
    product_name: str
    current_stock: int = Field(ge=0)
    sales_data: List[SalesRecord]
    analysis_period: str

    @field_validator("product_name", "analysis_period")
    @classmethod
    def _required_text(cls, v: str) -> str:
        return _not_blank(v)


class SalesAnalysisRequest(CamelModel):
    sales_data: List[SalesRecord]


class AnalysisResult(CamelModel):
    total_sold: int = Field(ge=0)
    sales_trend: SalesTrend
    peak_days: List[str] = Field(default_factory=list)
    average_daily_sales: float = Field(ge=0)


class StockSuggestion(CamelModel):
    next_period_stock: int = Field(ge=0)
    safety_stock: int = Field(ge=0)


class ReasoningOutput(CamelModel):
    """What the reasoning engine must hand back. Echoed keys are ignored."""

    suggestion: StockSuggestion
    reasoning: str

    @field_validator("reasoning")
    @classmethod
    def _reasoning_present(cls, v: str) -> str:
        return _not_blank(v)


class StockSuggestionResponse(CamelModel):
    product_name: str
    analysis: AnalysisResult
    suggestion: StockSuggestion
    reasoning: str

    @field_validator("reasoning")
    @classmethod
    def _reasoning_present(cls, v: str) -> str:
        return _not_blank(v)
