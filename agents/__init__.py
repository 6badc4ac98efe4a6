"""Top-level agents package for SupplySense.

Exposes the sales analyzer, the reasoning engine adapters and the stock
suggestion agent that ties them together.
"""

from .sales_analyzer import SalesAnalyzer
from .reasoning_engine import GeminiReasoningEngine, OpenAIReasoningEngine, build_reasoning_engine
from .stock_suggestion_agent import StockSuggestionAgent
