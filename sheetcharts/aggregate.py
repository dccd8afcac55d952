from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Literal, Tuple, Union

from sheetcharts.errors import BadInput
from sheetcharts.values import NULL, Kind, Row, Value, normalize


Agg = Literal["sum", "avg", "count", "none", "first"]
AGG_MODES = ("sum", "avg", "count", "none", "first")

# mixed-kind key columns: numbers, then dates, then text-like values, nulls last
_KIND_RANK = {Kind.NUMBER: 0, Kind.DATE: 1, Kind.BOOLEAN: 2, Kind.STRING: 2, Kind.NULL: 3}


@dataclass
class Group:
    key: Value
    rows: List[Row] = field(default_factory=list)


def group_by_key(rows: Iterable[Row], key: str) -> List[Group]:
    """Bucket rows by the exact value of column ``key``, in first-seen order."""
    buckets: Dict[Value, Group] = {}
    for row in rows:
        k = row.get(key, NULL)
        group = buckets.get(k)
        if group is None:
            group = buckets[k] = Group(key=k)
        group.rows.append(row)
    return list(buckets.values())


def _sort_key(group: Group) -> Tuple[int, object]:
    k = group.key
    rank = _KIND_RANK[k.kind]
    if k.kind in (Kind.NUMBER, Kind.DATE):
        return rank, k.data
    return rank, k.text()


def sort_groups(groups: Iterable[Group]) -> List[Group]:
    return sorted(groups, key=_sort_key)


def aggregate(values: Iterable[object], mode: str) -> Union[int, float, object]:
    """Reduce one column of a group.

    ``sum`` and ``avg`` only look at numbers and give 0 when there are none; ``count``
    counts every non-null, non-empty member; ``none``/``first`` hand back the first
    member untouched (``NULL`` for an empty group).
    """
    if mode not in AGG_MODES:
        raise BadInput(f"unknown aggregation {mode!r}; expected one of {', '.join(AGG_MODES)}")
    raw = list(values)

    if mode in ("none", "first"):
        return raw[0] if raw else NULL

    members = [normalize(v) for v in raw]
    if mode == "count":
        return sum(1 for v in members if not v.is_null and v.data != "")

    nums = [v.data for v in members if v.kind is Kind.NUMBER]
    total = sum(nums, 0)
    if mode == "sum":
        return total
    return total / len(nums) if nums else 0
