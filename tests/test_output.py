"""
Unit tests for daily output records.

Tests verify:
- Output() is an all-unset baseline; only a date is required to encode.
- Set fields are emitted with the service's tags and formats, zero included.
- Decode-only fields (efficiency, insolation) are never sent.
- BatchOutput packs records positionally and enforces size bounds.
- decode_output handles the 14 / 18 / 19 field layouts and is strict.

CHANGELOG:
- 2026-10-19: Batch delimiters, form escaping, non-finite temperatures
- 2026-10-11: Add time-of-export and insolation layouts
- 2026-10-09: Initial creation

TODO:
- None
"""

from __future__ import annotations

import datetime as dt

import pytest
from pvoutput.errors import (
    BatchEncodeError,
    BatchSizeError,
    MissingFieldError,
    ParseError,
)
from pvoutput.output import (
    OUTPUT_FIELDS,
    BatchOutput,
    Output,
    decode_output,
    decode_outputs,
)
from pvoutput.wire import BATCH_MAX_SIZE
from pydantic import ValidationError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_DATE = dt.date(2020, 8, 18)

_LINE_BASE = "20110327,4413,0.460,1234,21859,2070,11:00,Showers,-3.0,6.0,4220,7308,2030,3888"
_LINE_EXPORT = _LINE_BASE + ",3220,6308,1030,30"
_LINE_INSOLATION = _LINE_EXPORT + ",12910"


def _valid_output(**fields: object) -> Output:
    return Output(date=_DATE, **fields)


# ===========================================================================
# Baseline
# ===========================================================================


class TestOutputBaseline:
    """A new Output has every field unset."""

    def test_all_fields_unset(self) -> None:
        output = Output()
        assert all(value is None for value in output.model_dump().values())

    def test_encode_requires_date(self) -> None:
        with pytest.raises(MissingFieldError, match="date is required"):
            Output(generated=100).encode()

    def test_only_date_when_nothing_else_set(self) -> None:
        assert _valid_output().encode() == "d=20200818"

    def test_assignment_is_validated(self) -> None:
        output = Output()
        with pytest.raises(ValidationError):
            output.generated = "lots"  # type: ignore[assignment]

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_temperature_rejected(self, value: float) -> None:
        with pytest.raises(ValidationError):
            Output(date=dt.date(2015, 1, 1), min_temp=value)
        output = _valid_output(max_temp=20.0)
        with pytest.raises(ValidationError):
            output.max_temp = value
        assert output.encode() == "d=20200818&tx=20.0"


# ===========================================================================
# Single-record encoding
# ===========================================================================


class TestOutputEncode:
    """Set fields are emitted, unset ones are omitted."""

    @pytest.mark.parametrize(
        ("attr", "value", "expected"),
        [
            ("generated", 1, "d=20200818&g=1"),
            ("exported", 2, "d=20200818&e=2"),
            ("peak_power", 3, "d=20200818&pp=3"),
            ("peak_time", dt.time(11, 5), "d=20200818&pt=11%3A05"),
            ("condition", "Showers", "cd=Showers&d=20200818"),
            ("min_temp", -3.04, "d=20200818&tm=-3.0"),
            ("max_temp", 21.56, "d=20200818&tx=21.6"),
            ("comments", "new inverter", "cm=new+inverter&d=20200818"),
            ("import_peak", 4, "d=20200818&ip=4"),
            ("import_off_peak", 5, "d=20200818&io=5"),
            ("import_shoulder", 6, "d=20200818&is=6"),
            ("import_high_shoulder", 7, "d=20200818&ih=7"),
            ("consumed", 8, "c=8&d=20200818"),
            ("export_peak", 9, "d=20200818&ep=9"),
            ("export_off_peak", 10, "d=20200818&eo=10"),
            ("export_shoulder", 11, "d=20200818&es=11"),
            ("export_high_shoulder", 12, "d=20200818&eh=12"),
        ],
    )
    def test_single_field(self, attr: str, value: object, expected: str) -> None:
        assert _valid_output(**{attr: value}).encode() == expected

    def test_every_optional_field_has_a_case(self) -> None:
        assert len(OUTPUT_FIELDS) == 17

    def test_zero_is_sent(self) -> None:
        output = _valid_output(generated=0, min_temp=0.0)
        assert output.encode() == "d=20200818&g=0&tm=0.0"

    def test_empty_text_is_sent(self) -> None:
        assert _valid_output(comments="").encode() == "cm=&d=20200818"

    def test_midnight_peak_time_is_sent(self) -> None:
        assert _valid_output(peak_time=dt.time(0, 0)).encode() == "d=20200818&pt=00%3A00"

    def test_keys_sorted(self) -> None:
        output = _valid_output(generated=1, consumed=2, exported=3)
        assert output.encode() == "c=2&d=20200818&e=3&g=1"

    def test_decode_only_fields_not_sent(self) -> None:
        output = _valid_output(efficiency=4.5, insolation=12000)
        assert output.encode() == "d=20200818"

    def test_encoding_is_deterministic(self) -> None:
        output = _valid_output(generated=1, condition="Fine", max_temp=30)
        assert output.encode() == output.encode()

    def test_encode_values(self) -> None:
        values = _valid_output(generated=1200, max_temp=30).encode_values()
        assert values == {"d": "20200818", "g": "1200", "tx": "30.0"}


# ===========================================================================
# Batch encoding
# ===========================================================================


class TestBatchOutput:
    """BatchOutput packs outputs into one positional payload."""

    def test_three_days_generated_only(self) -> None:
        batch = BatchOutput(
            outputs=[
                Output(date=dt.date(2015, 1, 1), generated=1239),
                Output(date=dt.date(2015, 1, 2), generated=1523),
                Output(date=dt.date(2015, 1, 3), generated=2190),
            ]
        )
        assert batch.encode() == "data=20150101,1239;20150102,1523;20150103,2190"

    def test_interior_gaps_kept(self) -> None:
        batch = BatchOutput(outputs=[_valid_output(consumed=500, peak_power=2100)])
        assert batch.encode() == "data=20200818,,,500,2100"

    def test_full_positional_layout(self) -> None:
        output = _valid_output(
            generated=1,
            exported=2,
            consumed=3,
            peak_power=4,
            peak_time=dt.time(13, 45),
            condition="Fine",
            min_temp=5,
            max_temp=6,
            comments="ok",
            import_peak=7,
            import_off_peak=8,
            import_shoulder=9,
            import_high_shoulder=10,
            export_peak=11,
        )
        batch = BatchOutput(outputs=[output])
        assert batch.encode() == "data=20200818,1,2,3,4,13:45,Fine,5.0,6.0,ok,7,8,9"

    def test_empty_batch(self) -> None:
        with pytest.raises(BatchSizeError, match="empty batch"):
            BatchOutput().encode()

    def test_oversized_batch(self) -> None:
        batch = BatchOutput(outputs=[Output()] * (BATCH_MAX_SIZE + 1))
        with pytest.raises(BatchSizeError) as exc_info:
            batch.encode()
        assert str(exc_info.value) == "max batch size is 30"

    def test_donating_size(self) -> None:
        batch = BatchOutput(outputs=[_valid_output(generated=1)] * 31)
        assert batch.encode(max_size=100).count(";") == 30

    def test_member_without_date_aborts(self) -> None:
        batch = BatchOutput(outputs=[_valid_output(generated=1), Output(generated=2)])
        with pytest.raises(MissingFieldError):
            batch.encode()

    def test_append_and_len(self) -> None:
        batch = BatchOutput()
        batch.append(_valid_output(generated=1))
        batch.append(_valid_output(generated=2))
        assert len(batch) == 2
        assert batch.encode() == "data=20200818,1;20200818,2"

    def test_members_are_copied(self) -> None:
        output = _valid_output(generated=1)
        batch = BatchOutput(outputs=[output])
        batch.append(output)
        output.generated = 99
        assert batch.encode() == "data=20200818,1;20200818,1"

    def test_comma_in_condition_rejected(self) -> None:
        batch = BatchOutput(outputs=[_valid_output(generated=1, condition="Fine, cool")])
        with pytest.raises(BatchEncodeError, match="cd value"):
            batch.encode()

    def test_semicolon_in_comments_rejected(self) -> None:
        output = _valid_output(generated=1, comments="panels cleaned; inverter reset")
        batch = BatchOutput(outputs=[_valid_output(generated=2), output])
        with pytest.raises(BatchEncodeError, match="cm value"):
            batch.encode()

    def test_text_values_form_escaped(self) -> None:
        output = _valid_output(condition="Partly Cloudy", comments="sun & rain +5%")
        assert BatchOutput(outputs=[output]).encode() == (
            "data=20200818,,,,,,Partly%20Cloudy,,,sun%20%26%20rain%20%2B5%25"
        )


# ===========================================================================
# Decoding
# ===========================================================================


class TestDecodeOutput:
    """decode_output parses report lines of increasing richness."""

    def test_base_layout(self) -> None:
        output = decode_output(_LINE_BASE)
        assert output.date == dt.date(2011, 3, 27)
        assert output.generated == 4413
        assert output.efficiency == 0.46
        assert output.exported == 1234
        assert output.consumed == 21859
        assert output.peak_power == 2070
        assert output.peak_time == dt.time(11, 0)
        assert output.condition == "Showers"
        assert output.min_temp == -3.0
        assert output.max_temp == 6.0
        assert output.import_peak == 4220
        assert output.import_off_peak == 7308
        assert output.import_shoulder == 2030
        assert output.import_high_shoulder == 3888

    def test_base_layout_zero_fills_missing_tiers(self) -> None:
        output = decode_output(_LINE_BASE)
        assert output.export_peak == 0
        assert output.export_off_peak == 0
        assert output.export_shoulder == 0
        assert output.export_high_shoulder == 0
        assert output.insolation == 0
        assert output.comments == ""

    def test_time_of_export_layout(self) -> None:
        output = decode_output(_LINE_EXPORT)
        assert output.export_peak == 3220
        assert output.export_off_peak == 6308
        assert output.export_shoulder == 1030
        assert output.export_high_shoulder == 30
        assert output.insolation == 0

    def test_insolation_layout(self) -> None:
        output = decode_output(_LINE_INSOLATION)
        assert output.export_high_shoulder == 30
        assert output.insolation == 12910

    def test_incomplete_tier_ignored(self) -> None:
        output = decode_output(_LINE_BASE + ",3220,6308")
        assert output.import_high_shoulder == 3888
        assert output.export_peak == 0

    def test_surrounding_whitespace_trimmed(self) -> None:
        assert decode_output(f"  {_LINE_INSOLATION}\n").insolation == 12910

    def test_too_few_fields(self) -> None:
        line = _LINE_BASE.rsplit(",", 1)[0]
        with pytest.raises(ParseError, match="at least 14 fields") as exc_info:
            decode_output(line)
        assert exc_info.value.line == line

    @pytest.mark.parametrize(
        ("index", "raw", "field"),
        [
            (0, "2011-03-27", "date"),
            (1, "4413.5", "generated"),
            (2, "high", "efficiency"),
            (6, "1100", "peak_time"),
            (8, "cold", "min_temp"),
            (13, "", "import_high_shoulder"),
        ],
    )
    def test_malformed_field(self, index: int, raw: str, field: str) -> None:
        parts = _LINE_INSOLATION.split(",")
        parts[index] = raw
        with pytest.raises(ParseError) as exc_info:
            decode_output(",".join(parts))
        assert exc_info.value.field == field

    def test_malformed_later_tier(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            decode_output(_LINE_EXPORT + ",lots")
        assert exc_info.value.field == "insolation"

    def test_decoded_record_reencodes(self) -> None:
        output = decode_output(_LINE_BASE)
        assert output.encode_values()["d"] == "20110327"
        assert output.encode_values()["pt"] == "11:00"
        assert output.encode_values()["tm"] == "-3.0"


class TestDecodeOutputs:
    """decode_outputs splits a report body into lines."""

    def test_multiple_lines(self) -> None:
        second = _LINE_BASE.replace("20110327", "20110326", 1)
        outputs = decode_outputs(f"{_LINE_BASE};{second}")
        assert [o.date for o in outputs] == [dt.date(2011, 3, 27), dt.date(2011, 3, 26)]

    def test_empty_body(self) -> None:
        assert decode_outputs("") == []
