from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import ChartRequestModel, ErrorResponse, ExportRequestModel, SeriesRequestModel
from sheetcharts.charts import ChartOptions, to_vega_spec
from sheetcharts.datasets import DirectoryResolver
from sheetcharts.engine import ChartRequest, compute_chart, compute_export, compute_series, describe_workbook, normalize_request
from sheetcharts.errors import BadInput, EngineError, Internal
from sheetcharts.settings import load_settings
from sheetcharts.values import Value, iso_timestamp
from sheetcharts.workbook import WorkbookCache


settings = load_settings()
cache = WorkbookCache(max_entries=settings.cache_max_entries)
resolver = DirectoryResolver(settings.upload_dir)

app = FastAPI(title="Sheet Charts API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

STATUS_BY_KIND = {
    "NotFound": 404,
    "BadInput": 400,
    "ParseError": 422,
    "IOError": 500,
    "Internal": 500,
}
ERROR_RESPONSES = {status: {"model": ErrorResponse} for status in sorted(set(STATUS_BY_KIND.values()))}


def _finite_or_none(value: object) -> Optional[float]:
    out = float(value)  # type: ignore[arg-type]
    return out if math.isfinite(out) else None


# route payloads may still hold cell Values or pandas/numpy scalars
JSON_ENCODERS: Dict[Any, Callable[[Any], Any]] = {
    Value: Value.to_json,
    pd.Timestamp: iso_timestamp,
    type(pd.NA): lambda _: None,
    np.integer: int,
    np.floating: _finite_or_none,
    float: _finite_or_none,
    np.bool_: bool,
}


def _json(data: object, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(data, custom_encoder=JSON_ENCODERS))


def _error(exc: EngineError) -> JSONResponse:
    return _json(exc.to_dict(), status_code=STATUS_BY_KIND.get(exc.kind, 500))


def _unexpected(name: str, exc: Exception) -> JSONResponse:
    logger.exception("%s failed", name)
    return _error(Internal(f"{name} failed: {type(exc).__name__}: {exc}"))


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return _error(BadInput("; ".join(parts) or "invalid request"))


def _chart_request(model: SeriesRequestModel) -> ChartRequest:
    ref = resolver.resolve(model.dataset_id)
    return normalize_request(
        {
            "file_path": str(ref.file_path),
            "sheet_name": model.sheet,
            "x_key": model.x_key,
            "y_keys": model.y_keys,
            "agg": model.agg,
            "group_by": model.group_by,
            "filters": model.filters,
        }
    )


@app.get("/datasets/{dataset_id}/meta", responses=ERROR_RESPONSES)
def dataset_meta(dataset_id: str):
    try:
        ref = resolver.resolve(dataset_id)
        payload: Dict[str, Any] = {"datasetId": ref.dataset_id, "filename": ref.original_filename}
        payload.update(describe_workbook(ref.file_path, cache, preview_rows=settings.preview_rows))
        return _json(payload)
    except EngineError as exc:
        return _error(exc)
    except Exception as exc:
        return _unexpected("dataset_meta", exc)


@app.post("/series", responses=ERROR_RESPONSES)
def series(body: SeriesRequestModel):
    try:
        return _json(compute_series(_chart_request(body), cache).to_dict())
    except EngineError as exc:
        return _error(exc)
    except Exception as exc:
        return _unexpected("series", exc)


def _chart_options(body: ChartRequestModel) -> ChartOptions:
    return ChartOptions(
        chart_type=body.chart_type,
        title=body.title or f"{body.sheet or 'sheet'} - {','.join(body.y_keys)}",
        x_label=body.x_label if body.x_label is not None else body.x_key,
        y_label=body.y_label,
        date_unit=body.date_unit,
    )


@app.post("/chart-config", responses=ERROR_RESPONSES)
def chart_config(body: ChartRequestModel):
    try:
        spec = compute_chart(_chart_request(body), cache, _chart_options(body))
        return _json({"config": spec.to_config(), "xType": spec.x_axis_type})
    except EngineError as exc:
        return _error(exc)
    except Exception as exc:
        return _unexpected("chart_config", exc)


@app.post("/chart-config/vega", responses=ERROR_RESPONSES)
def chart_config_vega(body: ChartRequestModel):
    try:
        spec = compute_chart(_chart_request(body), cache, _chart_options(body))
        return _json(to_vega_spec(spec))
    except EngineError as exc:
        return _error(exc)
    except Exception as exc:
        return _unexpected("chart_config_vega", exc)


@app.post("/export", responses=ERROR_RESPONSES)
def export_rows(body: ExportRequestModel):
    try:
        ref = resolver.resolve(body.dataset_id)
        csv_bytes = compute_export(ref.file_path, cache, sheet_name=body.sheet, filters=body.filters)
    except EngineError as exc:
        return _error(exc)
    except Exception as exc:
        return _unexpected("export_rows", exc)
    filename = f"{ref.dataset_id}.csv"
    return Response(
        content=csv_bytes,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
