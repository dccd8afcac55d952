from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Sequence

from sheetcharts.aggregate import AGG_MODES, aggregate, group_by_key, sort_groups
from sheetcharts.errors import BadInput
from sheetcharts.values import NULL, Kind, Row, Value

XType = Literal["category", "number", "date"]


def _json_scalar(value: object) -> Any:
    if isinstance(value, Value):
        return value.to_json()
    return value


@dataclass(frozen=True)
class Point:
    x: Value
    y: object

    def to_dict(self) -> Dict[str, Any]:
        return {"x": _json_scalar(self.x), "y": _json_scalar(self.y)}


@dataclass
class Series:
    name: str
    points: List[Point] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "data": [p.to_dict() for p in self.points]}


@dataclass
class SeriesResult:
    series: List[Series]
    x_type: XType

    def to_dict(self) -> Dict[str, Any]:
        return {"series": [s.to_dict() for s in self.series], "xType": self.x_type}


def infer_x_type(rows: Sequence[Row], x_key: str) -> XType:
    # sampled from the first row only; later rows of another kind are not reconsidered
    if not rows:
        return "category"
    kind = rows[0].get(x_key, NULL).kind
    if kind is Kind.DATE:
        return "date"
    if kind is Kind.NUMBER:
        return "number"
    return "category"


def build_series(rows: Sequence[Row], x_key: str, y_keys: Sequence[str], agg: str = "sum", grouped: bool = True) -> SeriesResult:
    if agg not in AGG_MODES:
        raise BadInput(f"unknown aggregation {agg!r}")
    x_type = infer_x_type(rows, x_key)
    if not grouped:
        series = [
            Series(name=y, points=[Point(x=row.get(x_key, NULL), y=row.get(y, NULL)) for row in rows])
            for y in y_keys
        ]
        return SeriesResult(series=series, x_type=x_type)

    groups = sort_groups(group_by_key(rows, x_key))
    series = [
        Series(
            name=y,
            points=[Point(x=g.key, y=aggregate([r.get(y, NULL) for r in g.rows], agg)) for g in groups],
        )
        for y in y_keys
    ]
    return SeriesResult(series=series, x_type=x_type)
