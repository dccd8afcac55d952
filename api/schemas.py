from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

FiltersField = Optional[Union[Dict[str, Dict[str, Any]], str]]


class SeriesRequestModel(BaseModel):
    dataset_id: str
    sheet: Optional[str] = None
    x_key: str
    y_keys: List[str] = Field(default_factory=list)
    agg: Literal["sum", "avg", "count", "none", "first"] = "sum"
    group_by: bool = True
    filters: FiltersField = None


class ChartRequestModel(SeriesRequestModel):
    chart_type: Literal["line", "bar", "area", "scatter"] = "line"
    title: Optional[str] = None
    x_label: Optional[str] = None
    y_label: Optional[str] = None
    date_unit: Optional[Literal["day", "month", "year"]] = None


class ExportRequestModel(BaseModel):
    dataset_id: str
    sheet: Optional[str] = None
    filters: FiltersField = None


class ErrorResponse(BaseModel):
    errorKind: str
    message: str
