from __future__ import annotations

from typing import Any, Dict, List, Optional

import pandas as pd

from autobi.config import FunnelOrder
from autobi.fields import label_column, numeric_column


def pivot(
    df: pd.DataFrame,
    category_field: Optional[str],
    group_field: Optional[str],
    value_field: Optional[str],
) -> List[Dict[str, Any]]:
    """Category x group matrix of summed values for grouped/stacked bars.

    One record per category in first-seen order, seeded with ``{category_field: category}``
    and holding one accumulator per group value observed for that category.
    """
    if not category_field or not group_field or not value_field or df.empty:
        return []

    frame = pd.DataFrame(
        {
            "category": label_column(df, category_field),
            "group": label_column(df, group_field),
            "value": numeric_column(df, value_field),
        }
    )
    sums = frame.groupby(["category", "group"], sort=False)["value"].sum()

    records: Dict[str, Dict[str, Any]] = {}
    for (category, group), value in sums.items():
        record = records.setdefault(category, {category_field: category})
        record[group] = float(value)
    return list(records.values())


def pivot_keys(df: pd.DataFrame, group_field: Optional[str]) -> List[str]:
    """Sorted distinct group values: the series a grouped/stacked chart renders."""
    if not group_field or df.empty:
        return []
    return sorted(set(label_column(df, group_field).tolist()))


def _sum_by_label(df: pd.DataFrame, label_field: str, value_field: str) -> pd.Series:
    frame = pd.DataFrame({"name": label_column(df, label_field), "value": numeric_column(df, value_field)})
    return frame.groupby("name", sort=False)["value"].sum()


def ranked_bins(
    df: pd.DataFrame,
    label_field: Optional[str],
    value_field: Optional[str],
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    if not label_field or not value_field or df.empty:
        return []
    ranked = _sum_by_label(df, label_field, value_field).sort_values(ascending=False, kind="mergesort")
    if limit is not None:
        ranked = ranked.head(max(0, int(limit)))
    return [{"name": name, "value": float(value)} for name, value in ranked.items()]


def funnel_stages(
    df: pd.DataFrame,
    label_field: Optional[str],
    value_field: Optional[str],
    order: FunnelOrder = "value",
) -> List[Dict[str, Any]]:
    """Funnel stages, widest first; ``order="row"`` keeps the dataset's stage order instead."""
    if order != "row":
        return ranked_bins(df, label_field, value_field)
    if not label_field or not value_field or df.empty:
        return []
    sums = _sum_by_label(df, label_field, value_field)
    return [{"name": name, "value": float(value)} for name, value in sums.items()]
