from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence, Union

import altair as alt
import pandas as pd

from sheetcharts.errors import BadInput
from sheetcharts.series import Series, SeriesResult, XType
from sheetcharts.values import Kind, Value

alt.data_transformers.disable_max_rows()

PALETTE = ["#ef4444", "#10b981", "#3b82f6", "#f59e0b", "#8b5cf6", "#ec4899", "#06b6d4", "#f97316"]
CHART_TYPES = ("line", "bar", "area", "scatter")
DATE_UNITS = ("day", "month", "year")
DATE_DISPLAY_FORMATS = {"day": "YYYY-MM-DD", "month": "YYYY-MM", "year": "YYYY"}
TOOLTIP_DATE_FORMAT = "YYYY-MM-DD"
VEGA_TIME_FORMATS = {"day": "%Y-%m-%d", "month": "%Y-%m", "year": "%Y"}

ChartType = Literal["line", "bar", "area", "scatter"]
DateUnit = Literal["day", "month", "year"]


@dataclass(frozen=True)
class ChartOptions:
    chart_type: ChartType = "line"
    title: Optional[str] = None
    x_label: Optional[str] = None
    y_label: Optional[str] = None
    date_unit: Optional[DateUnit] = None


@dataclass(frozen=True)
class ChartSpec:
    series: List[Series]
    x_axis_type: XType
    rendering_options: Dict[str, Any] = field(default_factory=dict)

    def to_config(self) -> Dict[str, Any]:
        """Chart.js-style descriptor: ``{type, data: {labels, datasets}, options}``."""
        opts = self.rendering_options
        as_points = self.x_axis_type == "number" or opts["chartType"] == "scatter"
        datasets = []
        for ds, s in zip(opts["datasets"], self.series):
            data: List[Any]
            if as_points:
                data = [p.to_dict() for p in s.points]
            else:
                data = [p.to_dict()["y"] for p in s.points]
            datasets.append({**ds, "data": data})
        config: Dict[str, Any] = {
            "type": "line" if opts["chartType"] == "area" else opts["chartType"],
            "data": {"datasets": datasets},
            "options": {
                "plugins": {"title": {"display": bool(opts["title"]), "text": opts["title"] or ""}},
                "scales": {"x": opts["xAxis"], "y": opts["yAxis"]},
            },
        }
        if not as_points:
            first = self.series[0].points if self.series else []
            config["data"]["labels"] = [p.to_dict()["x"] for p in first]
        return config


def _coerce_options(options: Union[None, ChartOptions, Mapping[str, Any]]) -> ChartOptions:
    if options is None:
        return ChartOptions()
    if isinstance(options, ChartOptions):
        opts = options
    else:
        known = set(ChartOptions.__dataclass_fields__)
        opts = ChartOptions(**{k: v for k, v in options.items() if k in known})
    if opts.chart_type not in CHART_TYPES:
        raise BadInput(f"unknown chart type {opts.chart_type!r}")
    if opts.date_unit is not None and opts.date_unit not in DATE_UNITS:
        raise BadInput(f"unknown date unit {opts.date_unit!r}")
    return opts


def infer_date_unit(series: Sequence[Series]) -> DateUnit:
    stamps = [p.x.data for s in series for p in s.points if isinstance(p.x, Value) and p.x.kind is Kind.DATE]
    if len(stamps) < 2:
        return "day"
    span = max(stamps) - min(stamps)  # type: ignore[operator]
    if span > pd.Timedelta(days=730):
        return "year"
    if span > pd.Timedelta(days=62):
        return "month"
    return "day"


def _has_negative(series: Sequence[Series]) -> bool:
    for s in series:
        for p in s.points:
            y = p.y.data if isinstance(p.y, Value) else p.y
            if isinstance(y, (int, float)) and not isinstance(y, bool) and y < 0:
                return True
    return False


def _x_axis(x_axis_type: XType, opts: ChartOptions, series: Sequence[Series]) -> Dict[str, Any]:
    title = {"display": bool(opts.x_label), "text": opts.x_label or ""}
    if x_axis_type == "date":
        unit = opts.date_unit or infer_date_unit(series)
        return {
            "type": "time",
            "title": title,
            "time": {
                "parser": "iso",
                "unit": unit,
                "tooltipFormat": TOOLTIP_DATE_FORMAT,
                "displayFormats": {unit: DATE_DISPLAY_FORMATS[unit]},
            },
            "ticks": {"autoSkip": True, "maxTicksLimit": 12},
        }
    if x_axis_type == "number":
        return {"type": "linear", "position": "bottom", "title": title, "ticks": {"maxTicksLimit": 12}}
    return {"type": "category", "title": title, "ticks": {"autoSkip": True, "maxTicksLimit": 12}}


def from_series(
    series: Union[SeriesResult, Sequence[Series]],
    x_axis_type: Optional[XType] = None,
    options: Union[None, ChartOptions, Mapping[str, Any]] = None,
) -> ChartSpec:
    if isinstance(series, SeriesResult):
        x_axis_type = x_axis_type or series.x_type
        series = series.series
    series = list(series)
    opts = _coerce_options(options)
    axis_type: XType = x_axis_type or "category"

    datasets = []
    for idx, s in enumerate(series):
        color = PALETTE[idx % len(PALETTE)]
        datasets.append(
            {
                "label": s.name,
                "backgroundColor": color if opts.chart_type != "area" else color + "66",
                "borderColor": color,
                "fill": opts.chart_type == "area",
            }
        )

    y_label = opts.y_label if opts.y_label is not None else ", ".join(s.name for s in series)
    rendering = {
        "title": opts.title,
        "chartType": opts.chart_type,
        "datasets": datasets,
        "xAxis": _x_axis(axis_type, opts, series),
        "yAxis": {
            "type": "linear",
            "beginAtZero": not _has_negative(series),
            "title": {"display": bool(y_label), "text": y_label},
        },
    }
    return ChartSpec(series=series, x_axis_type=axis_type, rendering_options=rendering)


def _long_frame(spec: ChartSpec) -> pd.DataFrame:
    records = []
    for s in spec.series:
        for p in s.points:
            point = p.to_dict()
            records.append({"x": point["x"], "y": point["y"], "series": s.name})
    return pd.DataFrame(records, columns=["x", "y", "series"])


def to_vega_spec(spec: ChartSpec) -> Dict[str, Any]:
    """Convert a ChartSpec into a Vega-Lite spec dict (JSON-serializable) through Altair."""
    opts = spec.rendering_options
    df = _long_frame(spec)
    x_axis = opts["xAxis"]
    x_title = x_axis["title"]["text"] or "x"

    x_shorthand = {"date": "x:T", "number": "x:Q"}.get(spec.x_axis_type, "x:N")
    if spec.x_axis_type == "date":
        unit = x_axis["time"]["unit"]
        x = alt.X("x:T", title=x_title, axis=alt.Axis(format=VEGA_TIME_FORMATS[unit]))
    elif spec.x_axis_type == "number":
        x = alt.X("x:Q", title=x_title)
    else:
        x = alt.X("x:N", title=x_title, sort=None)

    names = [s.name for s in spec.series]
    color = alt.Color(
        "series:N",
        title=None,
        scale=alt.Scale(domain=names, range=[PALETTE[i % len(PALETTE)] for i in range(len(names))]),
    )
    base = alt.Chart(df)
    chart_type = opts["chartType"]
    if chart_type == "bar":
        base = base.mark_bar()
    elif chart_type == "area":
        base = base.mark_area(opacity=0.4, line=True)
    elif chart_type == "scatter":
        base = base.mark_point(filled=True)
    else:
        base = base.mark_line(point=True)

    chart = base.encode(
        x=x,
        y=alt.Y("y:Q", title=opts["yAxis"]["title"]["text"] or None, scale=alt.Scale(zero=opts["yAxis"]["beginAtZero"])),
        color=color,
        tooltip=[alt.Tooltip("series:N"), alt.Tooltip(x_shorthand, title=x_title), alt.Tooltip("y:Q")],
    )
    if opts.get("title"):
        chart = chart.properties(title=opts["title"])
    return chart.to_dict()
