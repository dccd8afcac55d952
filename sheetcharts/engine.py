from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from sheetcharts.aggregate import AGG_MODES
from sheetcharts.charts import ChartOptions, ChartSpec, from_series
from sheetcharts.errors import BadInput
from sheetcharts.export import export_csv
from sheetcharts.filters import FilterSpec, apply_filters, normalize_filters
from sheetcharts.series import SeriesResult, build_series
from sheetcharts.values import Row
from sheetcharts.workbook import PathLike, WorkbookCache


logger = logging.getLogger(__name__)

PREVIEW_ROWS_DEFAULT = 10


@dataclass(frozen=True)
class ChartRequest:
    file_path: str
    x_key: str
    y_keys: List[str] = field(default_factory=list)
    sheet_name: Optional[str] = None
    agg: str = "sum"
    group_by: bool = True
    filters: Optional[FilterSpec] = None


def _required_str(raw: Mapping[str, Any], key: str) -> str:
    value = raw.get(key)
    if value is None or not str(value).strip():
        raise BadInput(f"missing required parameter {key!r}")
    return str(value)


def _as_str_list(raw: Mapping[str, Any], key: str) -> List[str]:
    values = raw.get(key)
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, (list, tuple)):
        raise BadInput(f"{key!r} must be a list of column names")
    out = [str(v) for v in values if v is not None and str(v).strip()]
    if not out:
        raise BadInput(f"missing required parameter {key!r}")
    return out


_FLAG_TEXT = {"true": True, "1": True, "false": False, "0": False}


def _as_flag(raw: Mapping[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in _FLAG_TEXT:
        return _FLAG_TEXT[value.strip().lower()]
    raise BadInput(f"{key!r} must be true or false, got {value!r}")


def normalize_request(raw: Union[Mapping[str, Any], ChartRequest]) -> ChartRequest:
    if isinstance(raw, ChartRequest):
        return raw
    agg = str(raw.get("agg") or "sum").strip().lower()
    if agg not in AGG_MODES:
        raise BadInput(f"unknown aggregation {agg!r}; expected one of {', '.join(AGG_MODES)}")
    sheet_name = raw.get("sheet_name")
    return ChartRequest(
        file_path=_required_str(raw, "file_path"),
        sheet_name=str(sheet_name) if sheet_name not in (None, "") else None,
        x_key=_required_str(raw, "x_key"),
        y_keys=_as_str_list(raw, "y_keys"),
        agg=agg,
        group_by=_as_flag(raw, "group_by", True),
        filters=normalize_filters(raw.get("filters")),
    )


def load_rows(request: ChartRequest, cache: WorkbookCache) -> List[Row]:
    """Normalized rows of the requested sheet that pass the request's filters."""
    workbook = cache.get(request.file_path)
    sheet = workbook.sheet(request.sheet_name)
    rows = apply_filters(sheet.rows, request.filters)
    logger.debug("sheet %r: %d of %d rows pass filters", sheet.name, len(rows), len(sheet.rows))
    return rows


def compute_series(request: Union[Mapping[str, Any], ChartRequest], cache: WorkbookCache) -> SeriesResult:
    req = normalize_request(request)
    rows = load_rows(req, cache)
    return build_series(rows, req.x_key, req.y_keys, req.agg, req.group_by)


def compute_chart(
    request: Union[Mapping[str, Any], ChartRequest],
    cache: WorkbookCache,
    options: Union[None, ChartOptions, Mapping[str, Any]] = None,
) -> ChartSpec:
    req = normalize_request(request)
    result = compute_series(req, cache)
    if options is None:
        sheet = req.sheet_name or "sheet"
        options = ChartOptions(title=f"{sheet} - {','.join(req.y_keys)}", x_label=req.x_key)
    return from_series(result, result.x_type, options)


def compute_export(
    file_path: PathLike,
    cache: WorkbookCache,
    *,
    sheet_name: Optional[str] = None,
    filters: Union[None, str, Mapping[str, Any]] = None,
) -> bytes:
    workbook = cache.get(file_path)
    sheet = workbook.sheet(sheet_name)
    return export_csv(apply_filters(sheet.rows, normalize_filters(filters)))


def describe_workbook(file_path: PathLike, cache: WorkbookCache, preview_rows: int = PREVIEW_ROWS_DEFAULT) -> Dict[str, Any]:
    """Sheet names with row counts, columns per sheet, and a JSON preview across sheets."""
    workbook = cache.get(file_path)
    sheets: List[Dict[str, Any]] = []
    columns_by_sheet: Dict[str, List[str]] = {}
    preview: List[Dict[str, Any]] = []
    for name, sheet in workbook.sheets.items():
        sheets.append({"name": name, "rows": len(sheet.rows)})
        columns_by_sheet[name] = sheet.columns()
        for row in sheet.rows[: max(0, preview_rows - len(preview))]:
            preview.append({k: v.to_json() for k, v in row.items()})
    return {"sheets": sheets, "columnsBySheet": columns_by_sheet, "preview": preview}
