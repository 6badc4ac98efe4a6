from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from utils.preprocess import clean_order_lines

FULFILLED_STATUSES = ("Shipped", "Delivered")
_PRODUCT_COLUMNS = ["product_id", "productid", "sku"]


def _to_day(value: Any) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts.normalize()


def load_sales_csv(path: str | Path, product_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Read an order-lines export into [{orderDate, quantity}] records.

    When product_id is given the file must carry a product_id (or sku) column
    and only that product's lines are kept.
    """
    df = clean_order_lines(pd.read_csv(path))
    if product_id is not None:
        col = next((c for c in _PRODUCT_COLUMNS if c in df.columns), None)
        if not col:
            raise ValueError(f"CSV has no product column to filter on. Expected one of {_PRODUCT_COLUMNS}")
        df = df[df[col].astype(str) == str(product_id)]
    return [
        {"orderDate": d, "quantity": int(q)}
        for d, q in zip(df["orderDate"], df["quantity"])
    ]


def sales_records_from_orders(orders: Iterable[Dict[str, Any]],
                              product_id: str,
                              start: Any,
                              end: Any,
                              statuses: Sequence[str] = FULFILLED_STATUSES) -> List[Dict[str, Any]]:
    """
    Args:
        orders: order documents shaped {date, status, products: [{productId, quantity}]}
        product_id: product whose line items are collected
        start, end: inclusive calendar-day window
        statuses: order statuses that count as a sale
    Returns:
        One {orderDate, quantity} record per matching line item. Same-day
        records are left separate; the analyzer sums them.
    """
    first, last = _to_day(start), _to_day(end)
    records: List[Dict[str, Any]] = []
    for order in orders:
        if order.get("status") not in statuses or order.get("date") is None:
            continue
        day = _to_day(order["date"])
        if day < first or day > last:
            continue
        for item in order.get("products") or []:
            if item.get("productId") == product_id:
                records.append({"orderDate": day.strftime("%Y-%m-%d"), "quantity": int(item.get("quantity", 0))})
    return records


def analysis_period_label(start: Any, end: Any) -> str:
    """Human label for the selected window, e.g. "30 days"."""
    delta = pd.Timestamp(end) - pd.Timestamp(start)
    days = max(0, math.ceil(delta.total_seconds() / 86400))
    return f"{days} days"
