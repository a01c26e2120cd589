from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping

from pydantic import TypeAdapter, ValidationError

_DATETIME = TypeAdapter(datetime)
_DATE = TypeAdapter(date)

# Only these shapes are read back as dates; anything else in a date field
# (legacy "30", free text) is returned as stored.
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ISO_DATETIME = re.compile(
    r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2}(\.\d{1,6})?)?(Z|[+-]\d{2}:?\d{2})?$"
)


def to_iso(value: datetime | date) -> str:
    """
    ISO-8601 text that parse_datetime turns back into an equal value.

    Aware datetimes are written in the remote driver's form: UTC with a "Z"
    suffix, millisecond precision unless the value carries finer microseconds.
    Naive datetimes keep no offset, and plain dates are written as YYYY-MM-DD.
    """
    if not isinstance(value, datetime):
        return value.isoformat()
    timespec = "milliseconds" if value.microsecond % 1000 == 0 else "microseconds"
    if value.tzinfo is None:
        return value.isoformat(timespec=timespec)
    return value.astimezone(timezone.utc).isoformat(timespec=timespec).replace("+00:00", "Z")


def now_iso() -> str:
    # Store-maintained timestamps keep the remote driver's millisecond form.
    now = datetime.now(timezone.utc)
    return to_iso(now.replace(microsecond=now.microsecond // 1000 * 1000))


def to_storage(value: Any) -> Any:
    """Recursively replace datetime/date values with ISO strings."""
    if isinstance(value, (datetime, date)):
        return to_iso(value)
    if isinstance(value, Mapping):
        return {k: to_storage(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_storage(v) for v in value]
    return value


def parse_datetime(value: Any) -> Any:
    """
    date for YYYY-MM-DD, datetime for ISO-8601 date-times (naive when stored
    without an offset), anything else unchanged.
    """
    if not isinstance(value, str):
        return value
    if _ISO_DATE.match(value):
        adapter = _DATE
    elif _ISO_DATETIME.match(value):
        adapter = _DATETIME
    else:
        return value
    try:
        return adapter.validate_python(value)
    except ValidationError:
        return value


def rewrap_dates(doc: Mapping[str, Any], fields: Iterable[str]) -> dict[str, Any]:
    out = dict(doc)
    for name in fields:
        if name in out:
            out[name] = parse_datetime(out[name])
    return out
