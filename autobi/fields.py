"""Field coercion.

Cells arrive as whatever the upstream parser produced (numbers, text, blanks).
Numeric contexts coerce anything unparseable to 0 and label contexts coerce
blanks to an empty string, so a chart referencing a missing or dirty field
degrades instead of failing.
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping, Optional

import numpy as np
import pandas as pd


_RADIX_LITERAL = re.compile(r"0[xob][0-9a-f]+", re.IGNORECASE)


def _parse_text(text: str) -> float:
    # 0x/0o/0b literals parse; digit separators and infinities do not
    if "_" in text:
        return 0.0
    if _RADIX_LITERAL.fullmatch(text):
        try:
            return float(int(text, 0))
        except ValueError:
            return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0


def to_number(value: Any) -> float:
    if value is None or value is pd.NA:
        return 0.0
    if isinstance(value, (bool, np.bool_)):
        return float(value)
    if isinstance(value, str):
        out = _parse_text(value.strip()) if value.strip() else 0.0
    else:
        try:
            out = float(value)
        except (TypeError, ValueError):
            return 0.0
    return out if math.isfinite(out) else 0.0


def to_label(value: Any) -> str:
    if value is None or value is pd.NA:
        return ""
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def coerce_number(row: Mapping[str, Any], field: Optional[str]) -> float:
    if not field:
        return 0.0
    return to_number(row.get(field))


def coerce_label(row: Mapping[str, Any], field: Optional[str]) -> str:
    if not field:
        return ""
    return to_label(row.get(field))


def column_as_series(df: pd.DataFrame, col: Optional[str]) -> Optional[pd.Series]:
    if not col or col not in df.columns:
        return None
    val = df[col]
    if isinstance(val, pd.DataFrame):
        return val.iloc[:, 0]
    return val


def numeric_column(df: pd.DataFrame, field: Optional[str]) -> pd.Series:
    series = column_as_series(df, field)
    if series is None:
        return pd.Series(0.0, index=df.index, dtype=float)
    if pd.api.types.is_numeric_dtype(series):
        values = pd.to_numeric(series, errors="coerce").astype(float)
        return values.where(np.isfinite(values), 0.0)
    return series.map(to_number).astype(float)


def label_column(df: pd.DataFrame, field: Optional[str]) -> pd.Series:
    series = column_as_series(df, field)
    if series is None:
        return pd.Series("", index=df.index, dtype=object)
    return series.map(to_label).astype(object)
