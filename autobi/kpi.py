from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from autobi.fields import numeric_column


@dataclass(frozen=True)
class KpiSummary:
    total: float = 0.0
    trend: List[float] = field(default_factory=list)
    delta_pct: float = 0.0


def trend_delta_pct(trend: List[float]) -> float:
    """Percent change first -> last of the trend; 0 when there is no usable baseline."""
    if not trend:
        return 0.0
    first, last = trend[0], trend[-1]
    if first == 0:
        return 0.0
    return (last - first) / first * 100


def compute_kpi(df: pd.DataFrame, value_field: Optional[str], *, window: int = 30) -> KpiSummary:
    if not value_field or df.empty:
        return KpiSummary()
    values = numeric_column(df, value_field)
    trend = [float(v) for v in values.tail(max(1, int(window))).tolist()]
    return KpiSummary(total=float(values.sum()), trend=trend, delta_pct=trend_delta_pct(trend))
