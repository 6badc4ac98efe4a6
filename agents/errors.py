from __future__ import annotations


class DateParseError(ValueError):
    """Raised by the analyzer when an order date is not a YYYY-MM-DD string."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Unparseable order date: {value!r} (expected YYYY-MM-DD)")


class StockSuggestionError(Exception):
    """Base class for every failure that leaves the suggestion pipeline."""

    kind = "stock_suggestion_error"
    retryable = False


class InvalidRequest(StockSuggestionError):
    kind = "invalid_request"


class NoSalesDataAvailable(StockSuggestionError):
    """Not a system error: the product simply had no sales in the window."""

    kind = "no_sales_data"

    def __init__(self, product_name: str):
        self.product_name = product_name
        super().__init__(f"No sales data for {product_name} in this period.")


class ReasoningEngineUnavailable(StockSuggestionError):
    """The engine could not be reached or refused the call.

    Timeouts, connection errors, 5xx and 429 are retryable; a rejected key or
    payload (other 4xx) is not.
    """

    kind = "reasoning_engine_unavailable"
    retryable = True

    def __init__(self, message: str, retryable: bool = True):
        self.retryable = retryable
        super().__init__(message)


class SchemaValidationError(StockSuggestionError):
    kind = "schema_validation"
