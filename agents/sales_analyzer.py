from __future__ import annotations

from fractions import Fraction
from typing import Any, Iterable, List, Mapping
import pandas as pd
from pydantic import BaseModel

from api.schemas import AnalysisResult
from agents.errors import DateParseError
from utils.config import PEAK_DAYS_LIMIT

# Second half vs first half ratios that flip the trend label; exact so huge totals compare without float overflow
INCREASING_FACTOR = Fraction("1.2")
DECREASING_FACTOR = Fraction("0.8")

DATE_FORMAT = "%Y-%m-%d"
PEAK_DAY_FORMAT = "%d %b"


def _as_row(record: Any) -> dict:
    if isinstance(record, BaseModel):
        return {"orderDate": record.order_date, "quantity": record.quantity}
    if isinstance(record, Mapping):
        order_date = record.get("orderDate", record.get("order_date"))
        return {"orderDate": order_date, "quantity": record.get("quantity", 0)}
    raise TypeError(f"Unsupported sales record type: {type(record).__name__}")


class SalesAnalyzer:
    """
    Statistical summary of one product's sales history.

    Pure and stateless: the same records always give the same AnalysisResult,
    so a single instance can be shared across threads.
    """

    def __init__(self, peak_days_limit: int = PEAK_DAYS_LIMIT):
        self.peak_days_limit = max(0, int(peak_days_limit))

    def analyze(self, sales_data: Iterable[Any]) -> AnalysisResult:
        """
        Args:
            sales_data: SalesRecord models or mappings with orderDate (YYYY-MM-DD) and quantity
        Returns:
            AnalysisResult; an empty input yields the "no_data" result rather than an error
        Raises:
            DateParseError: an orderDate could not be parsed
        """
        rows = [_as_row(r) for r in (sales_data or [])]
        if not rows:
            return AnalysisResult(total_sold=0, sales_trend="no_data", peak_days=[], average_daily_sales=0.0)

        df = pd.DataFrame(rows)
        df["day"] = pd.to_datetime(df["orderDate"].astype(str), format=DATE_FORMAT, errors="coerce")
        bad = df[df["day"].isna()]
        if not bad.empty:
            raise DateParseError(bad["orderDate"].iloc[0])
        # Python ints, not int64: large same-day quantities must not wrap
        df["quantity"] = df["quantity"].map(int).astype(object)

        # Several orders on the same day are summed, never overwritten
        totals = {day: sum(grp.tolist()) for day, grp in df.groupby("day")["quantity"]}
        daily = pd.Series(totals, dtype=object).sort_index()

        total_sold = sum(daily.tolist())
        period_in_days = (daily.index[-1] - daily.index[0]).days + 1
        average_daily_sales = total_sold / period_in_days

        return AnalysisResult(
            total_sold=total_sold,
            sales_trend=self._classify_trend(daily),
            peak_days=self._peak_days(daily),
            average_daily_sales=average_daily_sales,
        )

    def _classify_trend(self, daily: pd.Series) -> str:
        n = len(daily)
        if n < 2:
            return "stable"
        # Odd counts put the extra day in the second half
        mid = n // 2
        first_half_total = sum(daily.iloc[:mid].tolist())
        second_half_total = sum(daily.iloc[mid:].tolist())
        if second_half_total > first_half_total * INCREASING_FACTOR:
            return "increasing"
        if second_half_total < first_half_total * DECREASING_FACTOR:
            return "decreasing"
        return "stable"

    def _peak_days(self, daily: pd.Series) -> List[str]:
        # sorted() is stable and daily is date-ascending, so ties go to the earlier date
        top = sorted(daily.items(), key=lambda kv: kv[1], reverse=True)[:self.peak_days_limit]
        return [f"{day.strftime(PEAK_DAY_FORMAT)}: {qty} units" for day, qty in top]
