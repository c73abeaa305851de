from __future__ import annotations

import io
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from autobi.fields import to_label

EXCEL_SUFFIXES = (".xlsx", ".xls")

Source = Union[str, Path, bytes, BinaryIO]


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def _as_buffer(source: Source) -> Union[str, Path, BinaryIO]:
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(source)
    return source


def read_dataset(source: Source, file_name: Optional[str] = None) -> pd.DataFrame:
    """Parse an uploaded file into a Dataset (CSV by default, Excel by suffix)."""
    name = (file_name or (str(source) if isinstance(source, (str, Path)) else "")).lower()
    buffer = _as_buffer(source)
    if name.endswith(EXCEL_SUFFIXES):
        df = pd.read_excel(buffer)
    else:
        df = pd.read_csv(buffer, skip_blank_lines=True)
    df.columns = [str(c).strip() for c in df.columns]
    df = drop_duplicate_columns(df)
    return df.dropna(how="all").reset_index(drop=True)


def dataset_from_records(rows: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """Build a Dataset from row mappings; the first row's keys define the schema."""
    records: List[Dict[str, Any]] = [dict(r) for r in rows]
    if not records:
        return pd.DataFrame()
    columns = list(records[0].keys())
    return pd.DataFrame.from_records(records, columns=columns)


def csv_snippet(df: pd.DataFrame, rows: int = 5) -> str:
    """Header line plus the first rows, comma-joined (the sample handed to the analysis oracle)."""
    if df.empty:
        return ""
    header = ",".join(str(c) for c in df.columns)
    lines = [",".join(to_label(v) for v in record) for record in df.head(rows).itertuples(index=False, name=None)]
    return "\n".join([header, *lines])
