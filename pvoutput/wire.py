"""
Wire-format primitives shared by the Output and Status codecs.

PVOutput speaks two request formats and one response format:

- Single record: a form-encoded query string (``d=20200818&g=1200``),
  sorted by key, with unset fields omitted.
- Batch: ``data=<line>;<line>;...`` where each line is a fixed-order list of
  comma-separated values. Unset values leave an empty slot so positions stay
  aligned; trailing empty slots are dropped.
- Responses: comma-separated positional fields.

This module holds the field tables' building block (:class:`WireField`),
value formatting and parsing per field kind, the query-string encoder and
the batch assembler. It performs no I/O.

Optional fields are unset when they hold :data:`UNSET` (``None``); any
other value, zero and the empty string included, is sent.

CHANGELOG:
- 2026-10-19: Reject delimiters in batch values, form-escape batch slots
- 2026-10-19: ASCII-only digits and finite floats when parsing
- 2026-10-12: Accept compact HHMM times in status lines
- 2026-10-09: Initial creation

TODO:
- None
"""

from __future__ import annotations

import datetime as dt
import math
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal, Protocol
from urllib.parse import quote, urlencode

from pvoutput.errors import BatchEncodeError, BatchSizeError, ParseError

UNSET = None
"""Marker held by an optional field that was never provided."""

BATCH_MAX_SIZE = 30
"""Maximum records per batch request for a standard account."""

BATCH_MAX_SIZE_DONATING = 100
"""Maximum records per batch request for a donating account."""

BATCH_PREFIX = "data="

DATE_FORMAT = "%Y%m%d"
TIME_FORMAT = "%H:%M"

FieldKind = Literal["date", "time", "int", "float", "text"]

_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)
_DATE_RE = re.compile(r"\d{8}", re.ASCII)
_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})", re.ASCII)
_COMPACT_TIME_RE = re.compile(r"(\d{2})(\d{2})", re.ASCII)
_FLOAT_RE = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?", re.ASCII)

_BATCH_DELIMITERS = (",", ";")


# ---------------------------------------------------------------------------
# Field definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class WireField:
    """One optional request field.

    Attributes:
        key: Parameter tag used by the service (``"g"``, ``"v1"``, ...).
        attr: Name of the model attribute holding the value.
        kind: How the value is formatted on the wire.
    """

    key: str
    attr: str
    kind: FieldKind


class Encodable(Protocol):
    """Anything that can be turned into a request body."""

    def encode(self) -> str: ...


class SupportsEncodeValues(Protocol):
    """A single record that can produce its ``key -> value`` pairs."""

    def encode_values(self) -> dict[str, str]: ...


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def format_value(kind: FieldKind, value: Any) -> str:
    """Format a set value the way the service expects for *kind*.

    Floats carry one decimal place, integers are plain decimal, dates are
    ``YYYYMMDD`` and times ``HH:MM`` (24h).
    """
    if kind == "int":
        return str(int(value))
    if kind == "float":
        return f"{value:.1f}"
    if kind == "date":
        return value.strftime(DATE_FORMAT)
    if kind == "time":
        return value.strftime(TIME_FORMAT)
    return str(value)


def encode_fields(record: object, fields: Iterable[WireField]) -> dict[str, str]:
    """Collect the wire pairs of every field of *record* that is set."""
    values: dict[str, str] = {}
    for wf in fields:
        value = getattr(record, wf.attr)
        if value is UNSET:
            continue
        values[wf.key] = format_value(wf.kind, value)
    return values


def encode_query(values: Mapping[str, str]) -> str:
    """Serialize pairs as a form-encoded query string sorted by key."""
    return urlencode(sorted(values.items()))


def encode_batch(
    records: Sequence[SupportsEncodeValues],
    keys: Sequence[str],
    *,
    max_size: int = BATCH_MAX_SIZE,
) -> str:
    """Pack *records* into a single ``data=`` batch payload.

    Each record is projected onto *keys* in order; keys the record does not
    emit become empty slots. Trailing empty slots are stripped from each
    line, interior ones are kept. Values are form-escaped (space becomes
    ``%20``, ``&`` becomes ``%26``); digits, dates and ``HH:MM`` times pass
    through unchanged.

    Raises:
        BatchSizeError: If *records* is empty or longer than *max_size*.
        BatchEncodeError: If a value contains ``,`` or ``;``.
        MissingFieldError: If any record lacks its required field. No
            partial payload is produced.
    """
    if not records:
        raise BatchSizeError("empty batch")
    if len(records) > max_size:
        raise BatchSizeError(f"max batch size is {max_size}")

    lines: list[str] = []
    for record in records:
        values = record.encode_values()
        slots = [_batch_slot(key, values.get(key, "")) for key in keys]
        while slots and slots[-1] == "":
            slots.pop()
        lines.append(",".join(slots))

    return BATCH_PREFIX + ";".join(lines)


def _batch_slot(key: str, value: str) -> str:
    """Escape one batch value, refusing the line and record delimiters."""
    for delimiter in _BATCH_DELIMITERS:
        if delimiter in value:
            raise BatchEncodeError(f"{key} value {value!r} contains {delimiter!r}")
    return quote(value, safe=":")


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def split_line(line: str) -> list[str]:
    """Split a response line into its positional fields."""
    return line.strip().split(",")


def parse_date(raw: str, *, line: str, field: str = "date") -> dt.date:
    """Parse a ``YYYYMMDD`` date."""
    if _DATE_RE.fullmatch(raw):
        try:
            return dt.datetime.strptime(raw, DATE_FORMAT).date()
        except ValueError:
            pass
    raise ParseError(f"invalid {field} {raw!r}", line=line, field=field)


def parse_time(
    raw: str,
    *,
    line: str,
    field: str = "time",
    allow_compact: bool = False,
) -> dt.time:
    """Parse an ``HH:MM`` time, or ``HHMM`` when *allow_compact* is set."""
    match = _TIME_RE.fullmatch(raw)
    if match is None and allow_compact:
        match = _COMPACT_TIME_RE.fullmatch(raw)
    if match is not None:
        try:
            return dt.time(int(match.group(1)), int(match.group(2)))
        except ValueError:
            pass
    raise ParseError(f"invalid {field} {raw!r}", line=line, field=field)


def parse_int(raw: str, *, line: str, field: str) -> int:
    """Parse a plain decimal integer, rejecting anything looser."""
    if not _INT_RE.fullmatch(raw):
        raise ParseError(f"invalid {field} {raw!r}", line=line, field=field)
    return int(raw)


def parse_float(raw: str, *, line: str, field: str) -> float:
    """Parse a finite decimal number such as ``5.28`` or ``-3``."""
    if _FLOAT_RE.fullmatch(raw):
        value = float(raw)
        if math.isfinite(value):
            return value
    raise ParseError(f"invalid {field} {raw!r}", line=line, field=field)


def parse_value(kind: FieldKind, raw: str, *, line: str, field: str) -> Any:
    """Parse one positional field according to *kind*."""
    if kind == "int":
        return parse_int(raw, line=line, field=field)
    if kind == "float":
        return parse_float(raw, line=line, field=field)
    if kind == "date":
        return parse_date(raw, line=line, field=field)
    if kind == "time":
        return parse_time(raw, line=line, field=field)
    return raw
