"""Metadata filter predicates for vector store queries.

A filter is a mapping of metadata field to either a plain value (equality)
or ``{"$in": [...]}`` (membership). Fields in one mapping must all match.
``{"$or": [filter, ...]}`` matches when any alternative group matches.
List-valued metadata such as ``tags`` or ``projects`` matches when any of
its elements does.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

Where = Mapping[str, Any]

OR_KEY = "$or"
IN_KEY = "$in"


def _value_matches(actual: Any, expected: Any) -> bool:
    if isinstance(actual, list):
        return expected in actual
    return actual == expected


def _field_matches(actual: Any, expected: Any) -> bool:
    if isinstance(expected, Mapping):
        unknown = set(expected) - {IN_KEY}
        if unknown:
            raise ValueError(f"Unsupported filter operator: {', '.join(sorted(unknown))}")
        candidates = expected[IN_KEY]
        if not isinstance(candidates, (list, tuple, set)):
            raise ValueError(f"{IN_KEY} expects a list of values")
        return any(_value_matches(actual, candidate) for candidate in candidates)
    return _value_matches(actual, expected)


def matches_filter(metadata: Mapping[str, Any], where: Optional[Where]) -> bool:
    """Return True when *metadata* satisfies *where*."""
    if not where:
        return True

    for key, expected in where.items():
        if key == OR_KEY:
            if not isinstance(expected, (list, tuple)):
                raise ValueError(f"{OR_KEY} expects a list of filters")
            if expected and not any(matches_filter(metadata, group) for group in expected):
                return False
        elif key.startswith("$"):
            raise ValueError(f"Unsupported filter operator: {key}")
        elif not _field_matches(metadata.get(key), expected):
            return False
    return True


def _membership(values: Optional[Iterable[Any]]) -> Optional[Dict[str, list]]:
    items = list(values or [])
    return {IN_KEY: items} if items else None


def build_filter(
    *,
    types: Optional[Sequence[str]] = None,
    projects: Optional[Sequence[str]] = None,
    tags: Optional[Sequence[str]] = None,
    status: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Compose a filter requiring every given criterion.

    Returns ``None`` when no criterion is given.
    """
    where: Dict[str, Any] = {}
    for key, values in (("type", types), ("projects", projects), ("tags", tags)):
        membership = _membership(values)
        if membership:
            where[key] = membership
    if status:
        where["status"] = status
    return where or None
