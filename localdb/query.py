from __future__ import annotations

import json
from typing import Any, Iterable, Mapping, Sequence

from .errors import QueryOptionsError, UnsupportedFilterError

Document = dict[str, Any]

FIELD_OPERATORS = frozenset(
    {
        "equals",
        "contains",
        "startsWith",
        "endsWith",
        "in",
        "notIn",
        "not",
        "has",
        "gt",
        "gte",
        "lt",
        "lte",
        "mode",
    }
)
LOGICAL_OPERATORS = frozenset({"AND", "OR", "NOT"})
SORT_DIRECTIONS = ("asc", "desc")


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def matches(doc: Mapping[str, Any], where: Mapping[str, Any] | None) -> bool:
    """
    True when every field condition in `where` holds for `doc` (implicit AND).

    A condition is either a plain value (equality, a missing field equals None)
    or a mapping of operators:

      {"name": {"contains": "foo"}, "langUse": {"in": ["English", "Japanese"]}}

    Top-level AND / OR / NOT combine nested where clauses. Any operator not in
    FIELD_OPERATORS raises UnsupportedFilterError rather than being ignored.
    """
    if not where:
        return True
    if not isinstance(where, Mapping):
        raise UnsupportedFilterError(f"where must be a mapping, got {type(where).__name__}")
    for key, cond in where.items():
        if key in LOGICAL_OPERATORS:
            if not _eval_logical(doc, key, cond):
                return False
        elif not _eval_field(doc.get(key), cond):
            return False
    return True


def _as_clauses(op: str, clauses: Any) -> list[Mapping[str, Any]]:
    if isinstance(clauses, Mapping):
        return [clauses]
    if isinstance(clauses, (list, tuple)) and all(isinstance(c, Mapping) for c in clauses):
        return list(clauses)
    raise UnsupportedFilterError(f"{op} expects a where clause or a list of where clauses")


def _eval_logical(doc: Mapping[str, Any], op: str, clauses: Any) -> bool:
    items = _as_clauses(op, clauses)
    if op == "AND":
        return all(matches(doc, c) for c in items)
    if op == "OR":
        return any(matches(doc, c) for c in items)
    # NOT [a, b] means neither a nor b
    return not any(matches(doc, c) for c in items)


def _eval_field(value: Any, cond: Any) -> bool:
    if not isinstance(cond, Mapping):
        return value == cond

    mode = cond.get("mode", "default")
    if mode not in ("default", "insensitive"):
        raise UnsupportedFilterError(f"Unsupported filter mode {mode!r}")
    insensitive = mode == "insensitive"

    for op, arg in cond.items():
        if op not in FIELD_OPERATORS:
            raise UnsupportedFilterError(f"Unsupported filter operator {op!r}")
        if op == "mode":
            continue
        if not _eval_op(value, op, arg, insensitive):
            return False
    return True


def _fold(s: str, insensitive: bool) -> str:
    return s.casefold() if insensitive else s


def _require_list(op: str, arg: Any) -> Sequence[Any]:
    if not isinstance(arg, (list, tuple, set, frozenset)):
        raise QueryOptionsError(f"{op} expects a list, got {type(arg).__name__}")
    return list(arg)


def _eval_op(value: Any, op: str, arg: Any, insensitive: bool) -> bool:
    if op == "equals":
        return value == arg
    if op == "contains":
        # always case-insensitive
        return isinstance(value, str) and isinstance(arg, str) and arg.casefold() in value.casefold()
    if op == "startsWith":
        return isinstance(value, str) and isinstance(arg, str) and _fold(value, insensitive).startswith(_fold(arg, insensitive))
    if op == "endsWith":
        return isinstance(value, str) and isinstance(arg, str) and _fold(value, insensitive).endswith(_fold(arg, insensitive))
    if op == "in":
        return value in _require_list(op, arg)
    if op == "notIn":
        return value not in _require_list(op, arg)
    if op == "not":
        if isinstance(arg, Mapping):
            return not _eval_field(value, arg)
        return value != arg
    if op == "has":
        return isinstance(value, list) and arg in value
    return _compare(value, op, arg)


def _compare(value: Any, op: str, arg: Any) -> bool:
    if value is None or arg is None:
        return False
    try:
        if op == "gt":
            return value > arg
        if op == "gte":
            return value >= arg
        if op == "lt":
            return value < arg
        return value <= arg
    except TypeError:
        return False


# ---------------------------------------------------------------------------
# Sort / paginate / project
# ---------------------------------------------------------------------------


def parse_order_by(order_by: Any) -> tuple[str, bool] | None:
    """Return (field, descending) from {"field": "asc"|"desc"} or a one-element list of it."""
    if order_by is None:
        return None
    if isinstance(order_by, (list, tuple)):
        if not order_by:
            return None
        if len(order_by) > 1:
            raise QueryOptionsError("orderBy supports a single sort field")
        order_by = order_by[0]
    if not isinstance(order_by, Mapping) or len(order_by) != 1:
        raise QueryOptionsError(f"orderBy must map one field to a direction, got {order_by!r}")
    ((field, direction),) = order_by.items()
    if direction not in SORT_DIRECTIONS:
        raise QueryOptionsError(f"Invalid sort direction {direction!r} for {field!r}")
    return field, direction == "desc"


def _sort_key(value: Any) -> tuple[int, Any]:
    # Group by kind so mixed-type fields still sort deterministically.
    if isinstance(value, (int, float)):
        return (0, value)
    if isinstance(value, str):
        return (1, value)
    return (2, json.dumps(value, sort_keys=True, default=str))


def sort_documents(docs: Iterable[Document], order_by: Any) -> list[Document]:
    """
    Stable single-field sort. Documents lacking the field (or holding None)
    keep their input order after every document that has a value, in both
    directions.
    """
    docs = list(docs)
    parsed = parse_order_by(order_by)
    if parsed is None:
        return docs
    field, descending = parsed
    present = [d for d in docs if d.get(field) is not None]
    missing = [d for d in docs if d.get(field) is None]
    present.sort(key=lambda d: _sort_key(d[field]), reverse=descending)
    return present + missing


def _check_non_negative(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise QueryOptionsError(f"{name} must be a non-negative integer, got {value!r}")


def paginate(docs: Sequence[Document], skip: int | None = None, take: int | None = None) -> list[Document]:
    start = 0 if skip is None else skip
    _check_non_negative("skip", start)
    if take is None:
        return list(docs[start:])
    _check_non_negative("take", take)
    return list(docs[start : start + take])


def project(doc: Mapping[str, Any], select: Mapping[str, Any] | None) -> Document:
    """Copy only the fields flagged in `select` that exist on the document."""
    if not select:
        return dict(doc)
    return {key: doc[key] for key, flag in select.items() if flag and key in doc}


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def filter_documents(docs: Iterable[Document], where: Mapping[str, Any] | None) -> list[Document]:
    return [d for d in docs if matches(d, where)]


def find(
    docs: Iterable[Document],
    where: Mapping[str, Any] | None = None,
    select: Mapping[str, Any] | None = None,
    order_by: Any = None,
    skip: int | None = None,
    take: int | None = None,
) -> list[Document]:
    """Filter, then sort, then skip/take, then project."""
    selected = sort_documents(filter_documents(docs, where), order_by)
    page = paginate(selected, skip, take)
    return [project(d, select) for d in page]


def count(docs: Iterable[Document], where: Mapping[str, Any] | None = None) -> int:
    return sum(1 for d in docs if matches(d, where))


def find_index(docs: Sequence[Document], where: Mapping[str, Any]) -> int:
    for pos, doc in enumerate(docs):
        if matches(doc, where):
            return pos
    return -1


def find_unique(docs: Sequence[Document], where: Mapping[str, Any]) -> Document | None:
    if not where:
        raise QueryOptionsError("find_unique requires a non-empty where clause")
    pos = find_index(docs, where)
    return docs[pos] if pos >= 0 else None
