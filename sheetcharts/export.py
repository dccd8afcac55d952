from __future__ import annotations

import csv
from typing import Dict, Iterable, List

import pandas as pd

from sheetcharts.values import Row, normalize

BOM = "\ufeff"


def export_columns(rows: Iterable[Row]) -> List[str]:
    seen: Dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


def export_frame(rows: List[Row]) -> pd.DataFrame:
    columns = export_columns(rows)
    records = [{c: (normalize(row[c]).text() if c in row else "") for c in columns} for row in rows]
    return pd.DataFrame(records, columns=columns, dtype=object)


def export_csv(rows: Iterable[Row]) -> bytes:
    """Filtered rows as UTF-8 CSV text with a leading byte-order mark."""
    df = export_frame(list(rows))
    if df.columns.empty:
        return BOM.encode("utf-8")
    text = df.to_csv(index=False, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    return (BOM + text).encode("utf-8")
