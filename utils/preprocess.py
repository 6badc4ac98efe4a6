from __future__ import annotations

import pandas as pd

_ACCEPTABLE_DATE_COLUMNS = ["orderdate", "order_date", "date", "dates", "transaction_date"]
_ACCEPTABLE_QUANTITY_COLUMNS = ["quantity", "qty", "units_sold", "units", "sales_qty"]


def clean_order_lines(df: pd.DataFrame) -> pd.DataFrame:
    """Normalize raw order lines to the canonical orderDate / quantity columns.

    Accepts variant column names for date and quantity. Dates are rendered as
    YYYY-MM-DD strings; a row whose date cannot be parsed raises ValueError
    instead of being dropped, so bad exports never shrink the sales totals.
    Quantities are coerced to non-negative integers.
    """
    if df is None or df.empty:
        return pd.DataFrame(columns=["orderDate", "quantity"])

    original_cols = list(df.columns)
    df = df.copy()
    lower_map = {c: str(c).strip().lower() for c in df.columns}
    df.rename(columns=lower_map, inplace=True)

    date_col = next((c for c in _ACCEPTABLE_DATE_COLUMNS if c in df.columns), None)
    if not date_col:
        raise ValueError(
            f"No date column found. Expected one of {_ACCEPTABLE_DATE_COLUMNS}. Got: {original_cols}"
        )
    qty_col = next((c for c in _ACCEPTABLE_QUANTITY_COLUMNS if c in df.columns), None)
    if not qty_col:
        raise ValueError(
            f"No quantity column found. Expected one of {_ACCEPTABLE_QUANTITY_COLUMNS}. Got: {original_cols}"
        )

    dates = pd.to_datetime(df[date_col], errors="coerce")
    if dates.isna().any():
        bad = df.loc[dates.isna(), date_col].iloc[0]
        raise ValueError(f"Unparseable order date in sales data: {bad!r}")

    out = df.drop(columns=[date_col, qty_col])
    out["orderDate"] = dates.dt.strftime("%Y-%m-%d")
    out["quantity"] = pd.to_numeric(df[qty_col], errors="coerce").fillna(0).clip(lower=0).astype(int)
    return out.sort_values("orderDate", kind="mergesort").reset_index(drop=True)
