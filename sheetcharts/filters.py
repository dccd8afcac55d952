from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from sheetcharts.errors import BadInput
from sheetcharts.values import NULL, Kind, Row, Value, normalize


RULE_KEYS = {"eq", "in", "range"}
RANGE_KINDS = (Kind.NUMBER, Kind.DATE)


@dataclass(frozen=True)
class FilterRule:
    eq: Optional[Value] = None
    in_: Optional[FrozenSet[Value]] = None
    range: Optional[Tuple[Value, Value]] = None


FilterSpec = Dict[str, FilterRule]


def _parse_range(column: str, raw: object) -> Tuple[Value, Value]:
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise BadInput(f"filter on {column!r}: 'range' must be a [min, max] pair")
    return normalize(raw[0]), normalize(raw[1])


def _parse_rule(column: str, raw: object) -> FilterRule:
    if not isinstance(raw, Mapping):
        raise BadInput(f"filter on {column!r} must be an object with eq/in/range")
    unknown = set(raw) - RULE_KEYS
    if unknown:
        raise BadInput(f"filter on {column!r} has unknown keys: {', '.join(sorted(map(str, unknown)))}")

    members = None
    if "in" in raw:
        values = raw["in"]
        if not isinstance(values, (list, tuple, set, frozenset)):
            raise BadInput(f"filter on {column!r}: 'in' must be a list")
        members = frozenset(normalize(v) for v in values)

    return FilterRule(
        eq=normalize(raw["eq"]) if "eq" in raw else None,
        in_=members,
        range=_parse_range(column, raw["range"]) if "range" in raw else None,
    )


def normalize_filters(raw: Union[None, str, bytes, Mapping[str, object]]) -> Optional[FilterSpec]:
    """Validate filters given as a mapping or JSON text."""
    if raw is None:
        return None
    if isinstance(raw, (str, bytes)):
        if not raw.strip():
            return None
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise BadInput(f"filters are not valid JSON: {exc}") from exc
        if raw is None:
            return None
    if not isinstance(raw, Mapping):
        raise BadInput("filters must be an object keyed by column name")
    return {str(column): _parse_rule(str(column), rule) for column, rule in raw.items()}


def _in_range(value: Value, bounds: Tuple[Value, Value]) -> bool:
    lo, hi = bounds
    if lo.kind is value.kind and value.data < lo.data:  # type: ignore[operator]
        return False
    if hi.kind is value.kind and value.data > hi.data:  # type: ignore[operator]
        return False
    return True


def passes(row: Row, spec: Optional[FilterSpec]) -> bool:
    if not spec:
        return True
    if not all(isinstance(rule, FilterRule) for rule in spec.values()):
        spec = normalize_filters(spec) or {}
    for column, rule in spec.items():
        value = row.get(column, NULL)
        if rule.eq is not None and value != rule.eq:
            return False
        if rule.in_ is not None and value not in rule.in_:
            return False
        # range only constrains numbers and dates; other kinds pass through untouched
        if rule.range is not None and value.kind in RANGE_KINDS and not _in_range(value, rule.range):
            return False
    return True


def apply_filters(rows: Iterable[Row], spec: Optional[FilterSpec]) -> List[Row]:
    if not spec:
        return list(rows)
    if not all(isinstance(rule, FilterRule) for rule in spec.values()):
        spec = normalize_filters(spec)
    return [row for row in rows if passes(row, spec)]
