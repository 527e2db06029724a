"""
Live status records: model, encoders and decoder.

A :class:`Status` is a point-in-time snapshot of a PV system (energy so far
today, instantaneous power, temperature, voltage). It is sent to
``addstatus.jsp`` as a query string, to ``addbatchstatus.jsp`` packed in a
:class:`BatchStatus`, and read back from ``getstatus.jsp`` via
:func:`decode_status`.

CHANGELOG:
- 2026-10-19: Reject NaN and infinite floats
- 2026-10-13: Reject status lines with fewer than 9 fields
- 2026-10-10: Add BatchStatus
- 2026-10-09: Initial creation

TODO:
- None
"""

from __future__ import annotations

import datetime as dt
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pvoutput.errors import MissingFieldError, ParseError
from pvoutput.wire import (
    BATCH_MAX_SIZE,
    FieldKind,
    WireField,
    encode_batch,
    encode_fields,
    encode_query,
    format_value,
    parse_date,
    parse_time,
    parse_value,
    split_line,
)


class Cumulative(IntEnum):
    """Which energy values of a status are lifetime totals."""

    ALL = 1
    """Generated and consumed Wh are lifetime values."""
    GENERATING = 2
    """Only generated Wh is a lifetime value."""
    CONSUMING = 3
    """Only consumed Wh is a lifetime value."""


STATUS_FIELDS: tuple[WireField, ...] = (
    WireField("v1", "generated", "int"),
    WireField("v2", "generating", "int"),
    WireField("v3", "consumed", "int"),
    WireField("v4", "consuming", "int"),
    WireField("v5", "temperature", "float"),
    WireField("v6", "voltage", "float"),
    WireField("c1", "cumulative", "int"),
)
"""Optional fields accepted by ``addstatus.jsp``."""

STATUS_BATCH_KEYS: tuple[str, ...] = ("d", "t", "v1", "v2", "v3", "v4", "v5", "v6")
"""Positional layout of one line of an ``addbatchstatus.jsp`` payload."""

# date and time occupy the first two positions.
_REPORT_VALUES: tuple[tuple[str, FieldKind], ...] = (
    ("generated", "int"),
    ("generating", "int"),
    ("consumed", "int"),
    ("consuming", "int"),
    ("output", "float"),
    ("temperature", "float"),
    ("voltage", "float"),
)

STATUS_MIN_FIELDS = 2 + len(_REPORT_VALUES)


class Status(BaseModel):
    """Point-in-time snapshot of a PV system.

    ``Status()`` is the unset baseline; only fields that are set are sent.
    NaN and infinite floats are rejected.

    Attributes:
        date_time: Local date and time of the reading (minute resolution).
            Required to encode.
        generated: Energy generated, Wh.
        generating: Power being generated, W.
        consumed: Energy consumed, Wh.
        consuming: Power being consumed, W.
        output: Normalised output (kW/kW). Decode only.
        temperature: Degrees Celsius.
        voltage: Volts.
        cumulative: Marks energy values as lifetime totals.
    """

    model_config = ConfigDict(validate_assignment=True, allow_inf_nan=False)

    date_time: dt.datetime | None = None
    generated: int | None = None
    generating: int | None = None
    consumed: int | None = None
    consuming: int | None = None
    output: float | None = None
    temperature: float | None = None
    voltage: float | None = None
    cumulative: Cumulative | None = None

    def encode_values(self) -> dict[str, str]:
        """Return the request parameters of this status, unset ones omitted.

        Raises:
            MissingFieldError: If ``date_time`` is unset.
        """
        if self.date_time is None:
            raise MissingFieldError("date_time is required on Status")

        values = {
            "d": format_value("date", self.date_time),
            "t": format_value("time", self.date_time),
        }
        values.update(encode_fields(self, STATUS_FIELDS))
        return values

    def encode(self) -> str:
        """Return the ``addstatus.jsp`` request body."""
        return encode_query(self.encode_values())


class BatchStatus(BaseModel):
    """Up to :data:`~pvoutput.wire.BATCH_MAX_SIZE` statuses sent in one request.

    The cumulative flag is not part of the batch layout and is ignored.
    """

    statuses: list[Status] = Field(default_factory=list)

    @field_validator("statuses", mode="after")
    @classmethod
    def statuses_are_copied(cls, v: list[Status]) -> list[Status]:
        return [status.model_copy() for status in v]

    def __len__(self) -> int:
        return len(self.statuses)

    def append(self, status: Status) -> None:
        """Add a copy of *status* to the end of the batch."""
        self.statuses.append(status.model_copy())

    def encode(self, *, max_size: int = BATCH_MAX_SIZE) -> str:
        """Return the ``addbatchstatus.jsp`` request body.

        Raises:
            BatchSizeError: If the batch is empty or longer than *max_size*.
            MissingFieldError: If any status has no date_time.
        """
        return encode_batch(self.statuses, STATUS_BATCH_KEYS, max_size=max_size)


def decode_status(line: str) -> Status:
    """Parse a ``getstatus.jsp`` line into a :class:`Status`.

    The line starts with ``date,time,v1..v4,output,temperature,voltage``;
    any further fields are ignored. Times may be ``HH:MM`` or ``HHMM``.

    Raises:
        ParseError: If the line has fewer than 9 fields or any of them is
            malformed.
    """
    fields = split_line(line)
    if len(fields) < STATUS_MIN_FIELDS:
        raise ParseError(
            f"expected at least {STATUS_MIN_FIELDS} fields, got {len(fields)}",
            line=line,
        )

    day = parse_date(fields[0], line=line)
    at = parse_time(fields[1], line=line, allow_compact=True)
    values = {
        attr: parse_value(kind, raw, line=line, field=attr)
        for (attr, kind), raw in zip(_REPORT_VALUES, fields[2:], strict=False)
    }
    return Status(date_time=dt.datetime.combine(day, at), **values)
