"""Canonical cell values.

Every cell read from a workbook is classified once into a :class:`Value`, a tagged
union over ``null | number | date | boolean | string``. Consumers switch on
``Value.kind`` instead of probing Python types at use sites.
"""

from __future__ import annotations

import datetime as dt
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np
import pandas as pd


DATE_SEPARATORS = re.compile(r"[-/T]")

# text dates must carry a full year; codes like "T4" or "1/2" stay strings
DATE_LAYOUTS = (
    (re.compile(r"^\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d{1,9})?)?)?(?:Z|[+-]\d{2}:?\d{2})?$"), "ISO8601"),
    (re.compile(r"^\d{4}-\d{1,2}-\d{1,2}$"), "%Y-%m-%d"),
    (re.compile(r"^\d{4}/\d{1,2}/\d{1,2}$"), "%Y/%m/%d"),
    (re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$"), "%m/%d/%Y"),
    (re.compile(r"^\d{1,2}-\d{1,2}-\d{4}$"), "%m-%d-%Y"),
    (re.compile(r"^\d{1,2}-[A-Za-z]{3}-\d{4}$"), "%d-%b-%Y"),
    (re.compile(r"^\d{4}-\d{2}$"), "%Y-%m"),
)


class Kind(str, Enum):
    NULL = "null"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    STRING = "string"


@dataclass(frozen=True)
class Value:
    kind: Kind
    data: Union[None, int, float, bool, str, pd.Timestamp] = None

    @property
    def is_null(self) -> bool:
        return self.kind is Kind.NULL

    def text(self) -> str:
        """String form used for lexicographic ordering and text export."""
        if self.kind is Kind.NULL:
            return ""
        if self.kind is Kind.NUMBER:
            return format_number(self.data)  # type: ignore[arg-type]
        if self.kind is Kind.DATE:
            return iso_timestamp(self.data)  # type: ignore[arg-type]
        if self.kind is Kind.BOOLEAN:
            return "true" if self.data else "false"
        return str(self.data)

    def to_json(self) -> Any:
        if self.kind is Kind.DATE:
            return iso_timestamp(self.data)  # type: ignore[arg-type]
        return self.data

    def __repr__(self) -> str:
        if self.kind is Kind.NULL:
            return "Null"
        return f"{self.kind.value.capitalize()}({self.text()!r})"


NULL = Value(Kind.NULL)

Row = Dict[str, Value]


def number(value: Union[int, float]) -> Value:
    return Value(Kind.NUMBER, value)


def date(value: object) -> Value:
    return Value(Kind.DATE, _canonical_timestamp(pd.Timestamp(value)))


def boolean(value: bool) -> Value:
    return Value(Kind.BOOLEAN, bool(value))


def string(value: object) -> Value:
    return Value(Kind.STRING, str(value))


def iso_timestamp(ts: pd.Timestamp) -> str:
    return ts.isoformat(timespec="milliseconds")


def format_number(value: Union[int, float]) -> str:
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return str(value)


def _canonical_timestamp(ts: pd.Timestamp) -> pd.Timestamp:
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.floor("ms")


def _is_missing(raw: object) -> bool:
    if raw is None or raw is pd.NaT or raw is pd.NA:
        return True
    if isinstance(raw, float) and math.isnan(raw):
        return True
    if isinstance(raw, np.floating) and np.isnan(raw):
        return True
    if isinstance(raw, np.datetime64) and np.isnat(raw):
        return True
    if isinstance(raw, str) and not raw.strip():
        return True
    return False


def _as_number(raw: object) -> Optional[Union[int, float]]:
    if isinstance(raw, (bool, np.bool_)):
        return None
    if isinstance(raw, (int, np.integer)):
        return int(raw)
    if isinstance(raw, (float, np.floating)):
        out = float(raw)
        return out if math.isfinite(out) else None
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    # float() accepts digit separators and spelled-out specials a spreadsheet never means as numbers
    if "_" in text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        out = float(text)
    except ValueError:
        return None
    return out if math.isfinite(out) else None


def _as_date(raw: object) -> Optional[pd.Timestamp]:
    text = str(raw).strip()
    if not DATE_SEPARATORS.search(text):
        return None
    for pattern, fmt in DATE_LAYOUTS:
        if not pattern.match(text):
            continue
        try:
            ts = pd.to_datetime(text, format=fmt, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
        if ts is None or pd.isna(ts):
            return None
        return _canonical_timestamp(ts)
    return None


def normalize(raw: object) -> Value:
    if isinstance(raw, Value):
        return raw
    if _is_missing(raw):
        return NULL
    if isinstance(raw, (pd.Timestamp, dt.datetime, dt.date, np.datetime64)):
        try:
            return date(raw)
        except (ValueError, OverflowError):
            return string(raw)
    if isinstance(raw, (bool, np.bool_)):
        return boolean(bool(raw))
    num = _as_number(raw)
    if num is not None:
        return number(num)
    ts = _as_date(raw)
    if ts is not None:
        return Value(Kind.DATE, ts)
    return string(raw)


def normalize_row(raw_row: Mapping[Any, object]) -> Row:
    return {str(k): normalize(v) for k, v in raw_row.items()}
