from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from autobi.config import ALL_OPTION
from autobi.fields import label_column

logger = logging.getLogger(__name__)

FilterSpec = Dict[str, str]
FilterOptions = Dict[str, List[str]]


def build_filter_options(
    df: pd.DataFrame,
    filterable_columns: Optional[Iterable[str]],
    *,
    max_columns: int = 3,
) -> FilterOptions:
    """Option lists per filterable field, from the unfiltered dataset.

    Computed once per dataset; narrowing one filter never prunes another's options.
    """
    options: FilterOptions = {}
    for col in list(filterable_columns or [])[:max_columns]:
        if not col or col in options:
            continue
        if col not in df.columns:
            logger.warning("filterable column %r not in dataset; skipped", col)
            continue
        values = sorted(set(label_column(df, col).tolist()))
        options[col] = [ALL_OPTION] + values
    return options


def normalize_filter_spec(raw: Optional[Mapping[str, object]], options: FilterOptions) -> FilterSpec:
    spec: FilterSpec = {}
    for key, value in (raw or {}).items():
        if key not in options:
            logger.warning("ignoring filter on non-filterable field %r", key)
            continue
        selected = ALL_OPTION if value is None else str(value)
        if selected not in options[key]:
            logger.warning("unknown option %r for filter %r; using %s", selected, key, ALL_OPTION)
            selected = ALL_OPTION
        spec[key] = selected
    return spec


def apply_filters(
    df: pd.DataFrame,
    filter_spec: Optional[Mapping[str, str]],
    *,
    filterable: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """Rows matching every active constraint (AND); ``"All"`` leaves a field unconstrained."""
    allowed = set(filterable) if filterable is not None else None
    mask = pd.Series(True, index=df.index)
    for key, selected in (filter_spec or {}).items():
        if selected == ALL_OPTION:
            continue
        if allowed is not None and key not in allowed:
            continue
        if key not in df.columns:
            mask &= False
            continue
        mask &= label_column(df, key) == str(selected)
    return df[mask]
