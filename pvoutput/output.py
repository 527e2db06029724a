"""
Daily output records: model, encoders and decoder.

An :class:`Output` is the end-of-day summary of a PV system. It is sent
to ``addoutput.jsp`` as a form-encoded query string, to
``addbatchoutput.jsp`` packed in a :class:`BatchOutput`, and read back from
``getoutput.jsp`` report lines via :func:`decode_output`.

Report lines come in three progressively richer layouts, selected by the
number of comma-separated fields:

====== =====================================================================
Fields Content
====== =====================================================================
14     date, generated, efficiency, exported, consumed, peak power,
       peak time, condition, min temp, max temp, four import tiers
18     ... plus four export tiers
19     ... plus insolation
====== =====================================================================

CHANGELOG:
- 2026-10-19: Reject NaN and infinite floats
- 2026-10-13: Copy records into BatchOutput instead of aliasing them
- 2026-10-11: Decode time-of-export and insolation layouts
- 2026-10-09: Initial creation

TODO:
- None
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any

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
    parse_value,
    split_line,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Field tables
# ---------------------------------------------------------------------------

OUTPUT_FIELDS: tuple[WireField, ...] = (
    WireField("g", "generated", "int"),
    WireField("e", "exported", "int"),
    WireField("pp", "peak_power", "int"),
    WireField("pt", "peak_time", "time"),
    WireField("cd", "condition", "text"),
    WireField("tm", "min_temp", "float"),
    WireField("tx", "max_temp", "float"),
    WireField("cm", "comments", "text"),
    WireField("ip", "import_peak", "int"),
    WireField("io", "import_off_peak", "int"),
    WireField("is", "import_shoulder", "int"),
    WireField("ih", "import_high_shoulder", "int"),
    WireField("c", "consumed", "int"),
    WireField("ep", "export_peak", "int"),
    WireField("eo", "export_off_peak", "int"),
    WireField("es", "export_shoulder", "int"),
    WireField("eh", "export_high_shoulder", "int"),
)
"""Optional fields accepted by ``addoutput.jsp``."""

OUTPUT_BATCH_KEYS: tuple[str, ...] = (
    "d",  # date
    "g",  # generated
    "e",  # exported
    "c",  # consumed
    "pp",  # peak power
    "pt",  # peak time
    "cd",  # condition
    "tm",  # min temperature
    "tx",  # max temperature
    "cm",  # comments
    "ip",  # import peak
    "io",  # import off-peak
    "is",  # import shoulder
)
"""Positional layout of one line of an ``addbatchoutput.jsp`` payload."""

_REPORT_BASE: tuple[tuple[str, FieldKind], ...] = (
    ("date", "date"),
    ("generated", "int"),
    ("efficiency", "float"),
    ("exported", "int"),
    ("consumed", "int"),
    ("peak_power", "int"),
    ("peak_time", "time"),
    ("condition", "text"),
    ("min_temp", "float"),
    ("max_temp", "float"),
    ("import_peak", "int"),
    ("import_off_peak", "int"),
    ("import_shoulder", "int"),
    ("import_high_shoulder", "int"),
)

_REPORT_EXPORT_TIERS: tuple[tuple[str, FieldKind], ...] = (
    ("export_peak", "int"),
    ("export_off_peak", "int"),
    ("export_shoulder", "int"),
    ("export_high_shoulder", "int"),
)

_REPORT_INSOLATION: tuple[tuple[str, FieldKind], ...] = (("insolation", "int"),)

_REPORT_TIERS = (_REPORT_BASE, _REPORT_EXPORT_TIERS, _REPORT_INSOLATION)
"""Report layouts; each tier is decoded only when all its fields are present."""

OUTPUT_MIN_FIELDS = len(_REPORT_BASE)

# Fields a report line may not carry are zero, never unset.
_REPORT_ZERO: dict[str, Any] = {
    "comments": "",
    "export_peak": 0,
    "export_off_peak": 0,
    "export_shoulder": 0,
    "export_high_shoulder": 0,
    "insolation": 0,
}


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


class Output(BaseModel):
    """Daily summary of a PV system.

    A freshly constructed ``Output()`` is the unset baseline: every field is
    ``None`` and will be left out of the request. Set only what you have;
    an explicit ``0`` is sent as ``0``. Floats must be finite: NaN and
    infinities are rejected on construction and assignment.

    Attributes:
        date: Day the summary covers. Required to encode.
        generated: Energy generated, Wh.
        efficiency: Generated energy per installed kW (kWh/kW). Computed
            by the service; only filled in by :func:`decode_output`.
        exported: Energy exported to the grid, Wh.
        peak_power: Peak output, W.
        peak_time: Time of day of the peak output.
        condition: Weather condition, e.g. ``"Fine"`` or ``"Showers"``.
        min_temp: Minimum temperature, degrees Celsius.
        max_temp: Maximum temperature, degrees Celsius.
        comments: Free text.
        import_peak: Energy imported in the peak tariff period, Wh.
        import_off_peak: Energy imported off-peak, Wh.
        import_shoulder: Energy imported in the shoulder period, Wh.
        import_high_shoulder: Energy imported in the high-shoulder
            period, Wh.
        consumed: Energy consumed, Wh.
        export_peak: Energy exported in the peak period, Wh.
        export_off_peak: Energy exported off-peak, Wh.
        export_shoulder: Energy exported in the shoulder period, Wh.
        export_high_shoulder: Energy exported in the high-shoulder
            period, Wh.
        insolation: Expected energy under clear sky, Wh. Decode only.
    """

    model_config = ConfigDict(validate_assignment=True, allow_inf_nan=False)

    date: dt.date | None = None
    generated: int | None = None
    efficiency: float | None = None
    exported: int | None = None
    peak_power: int | None = None
    peak_time: dt.time | None = None
    condition: str | None = None
    min_temp: float | None = None
    max_temp: float | None = None
    comments: str | None = None
    import_peak: int | None = None
    import_off_peak: int | None = None
    import_shoulder: int | None = None
    import_high_shoulder: int | None = None
    consumed: int | None = None
    export_peak: int | None = None
    export_off_peak: int | None = None
    export_shoulder: int | None = None
    export_high_shoulder: int | None = None
    insolation: int | None = None

    def encode_values(self) -> dict[str, str]:
        """Return the request parameters of this output, unset ones omitted.

        Raises:
            MissingFieldError: If ``date`` is unset.
        """
        if self.date is None:
            raise MissingFieldError("date is required on Output")

        values = {"d": format_value("date", self.date)}
        values.update(encode_fields(self, OUTPUT_FIELDS))
        return values

    def encode(self) -> str:
        """Return the ``addoutput.jsp`` request body."""
        return encode_query(self.encode_values())


class BatchOutput(BaseModel):
    """Up to :data:`~pvoutput.wire.BATCH_MAX_SIZE` outputs sent in one request.

    Records are copied on the way in, so changing an :class:`Output` after
    adding it does not change the batch.
    """

    outputs: list[Output] = Field(default_factory=list)

    @field_validator("outputs", mode="after")
    @classmethod
    def outputs_are_copied(cls, v: list[Output]) -> list[Output]:
        return [output.model_copy() for output in v]

    def __len__(self) -> int:
        return len(self.outputs)

    def append(self, output: Output) -> None:
        """Add a copy of *output* to the end of the batch."""
        self.outputs.append(output.model_copy())

    def encode(self, *, max_size: int = BATCH_MAX_SIZE) -> str:
        """Return the ``addbatchoutput.jsp`` request body.

        Raises:
            BatchSizeError: If the batch is empty or longer than *max_size*.
            MissingFieldError: If any output has no date.
        """
        return encode_batch(self.outputs, OUTPUT_BATCH_KEYS, max_size=max_size)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def decode_output(line: str) -> Output:
    """Parse one ``getoutput.jsp`` report line into an :class:`Output`.

    Raises:
        ParseError: If the line has fewer than 14 fields or any present
            field is malformed.
    """
    fields = split_line(line)
    if len(fields) < OUTPUT_MIN_FIELDS:
        raise ParseError(
            f"expected at least {OUTPUT_MIN_FIELDS} fields, got {len(fields)}",
            line=line,
        )

    values = dict(_REPORT_ZERO)
    position = 0
    for tier in _REPORT_TIERS:
        if len(fields) < position + len(tier):
            break
        for attr, kind in tier:
            values[attr] = parse_value(kind, fields[position], line=line, field=attr)
            position += 1

    return Output(**values)


def decode_outputs(body: str) -> list[Output]:
    """Parse a report body of ``;``-separated lines, one output per line."""
    lines = [line for line in body.strip().split(";") if line.strip()]
    logger.debug("Decoding %d output line(s).", len(lines))
    return [decode_output(line) for line in lines]
