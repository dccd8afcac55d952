from __future__ import annotations

import io
import logging
import os
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from sheetcharts.errors import FileAccessError, NotFound, ParseError
from sheetcharts.export import export_columns
from sheetcharts.values import Row, normalize_row


logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

CSV_SUFFIXES = {".csv", ".txt"}
EXCEL_ENGINES = {".xlsx": "openpyxl", ".xlsm": "openpyxl", ".xls": None}
CSV_SHEET_NAME = "Sheet1"


@dataclass(frozen=True)
class Sheet:
    name: str
    rows: List[Row] = field(default_factory=list)

    def columns(self) -> List[str]:
        return export_columns(self.rows)


@dataclass(frozen=True)
class Workbook:
    path: str
    mtime_ns: int
    sheets: Dict[str, Sheet] = field(default_factory=dict)

    @property
    def sheet_names(self) -> List[str]:
        return list(self.sheets)

    def sheet(self, name: Optional[str] = None) -> Sheet:
        if name is None or name == "":
            if not self.sheets:
                raise NotFound(f"workbook {self.path!r} has no sheets")
            return next(iter(self.sheets.values()))
        try:
            return self.sheets[name]
        except KeyError:
            raise NotFound(f"sheet {name!r} not found in {self.path!r}") from None


def file_mtime_ns(path: PathLike) -> int:
    try:
        return os.stat(path).st_mtime_ns
    except OSError as exc:
        raise FileAccessError(f"cannot stat {os.fspath(path)!r}: {exc.strerror or exc}") from exc


def _read_bytes(path: PathLike) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise FileAccessError(f"cannot read {os.fspath(path)!r}: {exc.strerror or exc}") from exc


def _frame_rows(df: pd.DataFrame) -> List[Row]:
    df.columns = [str(c).strip() for c in df.columns]
    rows: List[Row] = []
    for record in df.to_dict(orient="records"):
        row = normalize_row(record)
        if all(v.is_null for v in row.values()):
            continue
        rows.append(row)
    return rows


def _read_frames(payload: bytes, suffix: str) -> Dict[str, pd.DataFrame]:
    buf = io.BytesIO(payload)
    if suffix in CSV_SUFFIXES:
        df = pd.read_csv(buf, dtype=object, keep_default_na=False, encoding="utf-8-sig", skip_blank_lines=True)
        return {CSV_SHEET_NAME: df}
    engine = EXCEL_ENGINES.get(suffix, "openpyxl")
    frames = pd.read_excel(buf, sheet_name=None, header=0, dtype=object, keep_default_na=False, engine=engine)
    return {str(name): df for name, df in frames.items()}


def parse_workbook(path: PathLike, payload: bytes, mtime_ns: int) -> Workbook:
    suffix = Path(path).suffix.lower()
    try:
        frames = _read_frames(payload, suffix)
    except Exception as exc:
        raise ParseError(f"cannot parse {os.fspath(path)!r} as tabular data: {exc}") from exc
    sheets = {name: Sheet(name=name, rows=_frame_rows(df)) for name, df in frames.items()}
    return Workbook(path=os.fspath(path), mtime_ns=mtime_ns, sheets=sheets)


def load_workbook(path: PathLike) -> Workbook:
    """Read and parse ``path`` without touching any cache."""
    mtime_ns = file_mtime_ns(path)
    return parse_workbook(path, _read_bytes(path), mtime_ns)


class WorkbookCache:
    """Parsed workbooks keyed by path, revalidated against the file's mtime.

    An entry is served only while the recorded mtime equals the file's current one;
    otherwise the whole file is parsed again and the entry replaced. ``max_entries``
    of 0 keeps every path ever loaded; a positive bound evicts the least recently used.
    There is no locking: concurrent cold loads of one path may each parse, the last
    one stored wins.
    """

    def __init__(self, max_entries: int = 0) -> None:
        self.max_entries = max(0, int(max_entries))
        self._entries: "OrderedDict[str, Workbook]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, (str, os.PathLike)) and self._key(path) in self._entries

    @staticmethod
    def _key(path: PathLike) -> str:
        return os.path.abspath(os.fspath(path))

    def get(self, path: PathLike) -> Workbook:
        key = self._key(path)
        mtime_ns = file_mtime_ns(key)
        cached = self._entries.get(key)
        if cached is not None and cached.mtime_ns == mtime_ns:
            logger.debug("workbook cache hit: %s", key)
            self._entries.move_to_end(key)
            return cached

        if cached is None:
            logger.debug("workbook cache miss: %s", key)
        else:
            logger.info("workbook changed on disk, reparsing: %s", key)
        workbook = parse_workbook(key, _read_bytes(key), mtime_ns)
        self._store(key, workbook)
        return workbook

    def _store(self, key: str, workbook: Workbook) -> None:
        self._entries[key] = workbook
        self._entries.move_to_end(key)
        if self.max_entries:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("workbook cache evicted: %s", evicted)

    def invalidate(self, path: PathLike) -> None:
        self._entries.pop(self._key(path), None)

    def clear(self) -> None:
        self._entries.clear()
