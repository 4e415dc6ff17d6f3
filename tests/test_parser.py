"""Tests for src.ingest.parser — block-based BMS log parsing."""

from __future__ import annotations

import pytest

from src.contracts.record import MeasurementRecord
from src.contracts.thresholds import ValidRanges
from src.ingest.parser import (
    order_series,
    parse,
    parse_block,
    parse_document,
    split_blocks,
)
from src.shared.errors import ParseError, StructuralInputError
from tests.conftest import BASE_SEC, make_block, make_record

# ═══════════════════════════════════════════════════════════════════════════
#  Document splitting
# ═══════════════════════════════════════════════════════════════════════════


class TestSplitBlocks:
    def test_drops_empty_fragments(self):
        text = "---\n---\nvoltage: 1\n---\n\n---\nsoc: 2\n"
        assert [b.strip() for b in split_blocks(text)] == ["voltage: 1", "soc: 2"]

    def test_crlf_and_padded_separators(self):
        text = "  ---  \r\nvoltage: 1\r\n-----\r\nsoc: 2\r\n"
        blocks = split_blocks(text)
        assert len(blocks) == 2
        assert "\r" not in blocks[0]

    def test_text_without_separator_is_one_block(self):
        assert len(split_blocks("voltage: 1\nsoc: 2\n")) == 1


# ═══════════════════════════════════════════════════════════════════════════
#  Single block
# ═══════════════════════════════════════════════════════════════════════════


class TestParseBlock:
    def test_full_block(self):
        block = make_block(
            sec=BASE_SEC, nanosec=250_000_000, voltage=52.31, current=-4.2, soc=81.0,
            cells=[3.27, 3.28], temps=[24.5],
            extra="remaining_ah: 80.5\ncharge_fet: 1\ndischarge_fet: 0",
        )
        rec = parse_block(block)
        assert isinstance(rec, MeasurementRecord)
        assert rec.seconds_epoch == BASE_SEC
        assert rec.nanoseconds == 250_000_000
        assert rec.timestamp == pytest.approx(BASE_SEC + 0.25)
        assert rec.voltage == 52.31
        assert rec.current == -4.2
        assert rec.soc == 81.0
        assert rec.remaining_ah == 80.5
        assert rec.charge_fet == 1 and rec.discharge_fet == 0
        assert rec.cell_voltages == [3.27, 3.28]
        assert rec.cell_temperatures == [24.5]

    def test_missing_sec_is_skipped(self):
        assert parse_block(make_block(sec=None)) == (make_block(sec=None), "no_timestamp")

    def test_sec_not_taken_from_nanosec(self):
        block = "header:\n  stamp:\n    nanosec: 5\nvoltage: 50\n"
        assert parse_block(block)[1] == "no_timestamp"

    def test_nanosec_defaults_to_zero(self):
        rec = parse_block(make_block(nanosec=None))
        assert rec.nanoseconds == 0
        assert rec.timestamp == float(BASE_SEC)

    def test_nanosec_overflow_carried_into_seconds(self):
        rec = parse_block(make_block(sec=10, nanosec=1_500_000_000))
        assert rec.seconds_epoch == 11
        assert rec.nanoseconds == 500_000_000
        assert rec.timestamp == pytest.approx(11.5)

    def test_timestamp_without_measurement_is_skipped(self):
        block = make_block(voltage=None, current=None, soc=None)
        assert parse_block(block)[1] == "no_measurement"

    def test_cells_alone_count_as_measurement(self):
        block = make_block(voltage=None, current=None, soc=None, cells=[3.3])
        rec = parse_block(block)
        assert isinstance(rec, MeasurementRecord)
        assert rec.voltage is None

    def test_empty_block(self):
        assert parse_block("   \n")[1] == "empty_block"

    def test_malformed_value_leaves_field_absent(self):
        block = make_block(soc=None, extra="soc: full")
        rec = parse_block(block)
        assert rec.soc is None
        assert rec.voltage == 52.0

    def test_exponent_and_signs(self):
        block = make_block(voltage=None, current=None, extra="voltage: 5.2e1\ncurrent: +3")
        rec = parse_block(block)
        assert rec.voltage == 52.0
        assert rec.current == 3.0


class TestPowerDerivation:
    def test_power_derived_when_absent(self):
        rec = parse_block(make_block(voltage=50.0, current=-2.0))
        assert rec.power == -100.0

    def test_logged_power_kept(self):
        rec = parse_block(make_block(voltage=50.0, current=-2.0, power=-99.0))
        assert rec.power == -99.0

    def test_power_left_absent_without_current(self):
        rec = parse_block(make_block(current=None))
        assert rec.power is None


class TestCellLists:
    def test_eighteen_cells_truncated_to_sixteen(self):
        rec = parse_block(make_block(cells=[3.3] * 18))
        assert len(rec.cell_voltages) == 16

    def test_temperatures_truncated_to_sensor_count(self):
        rec = parse_block(make_block(temps=[25.0] * 7))
        assert len(rec.cell_temperatures) == 5

    def test_out_of_range_cell_keeps_its_slot(self):
        rec = parse_block(make_block(cells=[3.3, 9.9, 3.31], temps=[25.0, -80.0]))
        assert rec.cell_voltages == [3.3, None, 3.31]
        assert rec.cell_temperatures == [25.0, None]

    def test_unparseable_item_keeps_its_slot(self):
        rec = parse_block(make_block(cells=[3.3, "n/a", 3.31]))
        assert rec.cell_voltages == [3.3, None, 3.31]

    def test_inline_list(self):
        rec = parse_block(make_block(extra="cell_voltages: [3.3, 3.31, 3.32]"))
        assert rec.cell_voltages == [3.3, 3.31, 3.32]

    def test_empty_inline_list(self):
        rec = parse_block(make_block(extra="cell_temperatures: []"))
        assert rec.cell_temperatures == []

    def test_list_ends_at_next_key(self):
        block = "sec: 5\ncell_voltages:\n- 3.3\n- 3.4\nvoltage: 50\n- 3.5\n"
        rec = parse_block(block)
        assert rec.cell_voltages == [3.3, 3.4]

    def test_list_ends_at_line_that_is_not_a_key(self):
        block = "sec: 1\nvoltage: 50\ncell_voltages:\n- 3.3\nBMS Status: ok\n- 3.9\n"
        rec = parse_block(block)
        assert rec.cell_voltages == [3.3]

    def test_indented_non_item_line_does_not_end_list(self):
        block = "sec: 1\nvoltage: 50\ncell_voltages:\n  - 3.3\n  # pack A\n  - 3.4\n"
        rec = parse_block(block)
        assert rec.cell_voltages == [3.3, 3.4]

    def test_custom_capacity(self):
        rec = parse_block(make_block(cells=[3.3] * 6), ranges=ValidRanges(cell_count=4))
        assert len(rec.cell_voltages) == 4


class TestInvertCurrent:
    def test_current_and_logged_power_flipped(self):
        rec = parse_block(make_block(current=5.0, power=260.0), invert_current=True)
        assert rec.current == -5.0
        assert rec.power == -260.0

    def test_derived_power_follows_flipped_current(self):
        rec = parse_block(make_block(voltage=50.0, current=2.0), invert_current=True)
        assert rec.power == -100.0


# ═══════════════════════════════════════════════════════════════════════════
#  Whole document
# ═══════════════════════════════════════════════════════════════════════════


class TestParseDocument:
    def test_sample_log(self, sample_log):
        result = parse_document(sample_log)
        assert len(result.records) == 5
        assert result.skipped == 1
        assert result.quarantine[0]["reason"] == "no_timestamp"
        assert result.quarantine[0]["block_no"] == 4

    def test_records_sorted_with_relative_time(self, sample_log):
        records = parse(sample_log)
        assert [r.relative_time for r in records] == [0.0, 10.0, 20.0, 30.0, 40.0]
        assert records[0].relative_time == 0.0

    def test_order_invariance(self):
        blocks = [make_block(sec=BASE_SEC + i, voltage=50.0 + i) for i in range(5)]
        forward = parse("".join(blocks))
        backward = parse("".join(reversed(blocks)))
        assert [r.voltage for r in forward] == [r.voltage for r in backward]
        assert [r.relative_time for r in forward] == [r.relative_time for r in backward]

    def test_empty_text(self):
        assert parse("") == []

    def test_garbage_text(self):
        result = parse_document("this is not a log\n---\n:::\n")
        assert result.records == []
        assert result.skipped == 2

    def test_non_string_raises(self):
        with pytest.raises(ParseError) as exc_info:
            parse_document(b"sec: 1\nvoltage: 50\n")
        assert isinstance(exc_info.value, StructuralInputError)
        assert exc_info.value.details["input_type"] == "bytes"

    def test_quarantine_raw_block_truncated(self):
        result = parse_document("---\n" + "x" * 500 + "\n")
        assert len(result.quarantine[0]["raw_block"]) == 200


class TestOrderSeries:
    def test_equal_timestamps_ordered_by_readings(self):
        a = make_record(t=5.0, voltage=50.0)
        b = make_record(t=5.0, voltage=51.0)
        c = make_record(t=1.0, voltage=52.0)
        records = [a, b, c]
        order_series(records)
        assert [r.voltage for r in records] == [52.0, 50.0, 51.0]
        assert [r.relative_time for r in records] == [0.0, 4.0, 4.0]

    def test_empty(self):
        assert order_series([]) == []

    def test_tied_timestamps_independent_of_fragment_order(self):
        a = make_block(sec=BASE_SEC, voltage=51.0)
        b = make_block(sec=BASE_SEC, voltage=50.0)
        c = make_block(sec=BASE_SEC + 1, voltage=52.0)
        expected = [50.0, 51.0, 52.0]
        for text in (a + b + c, b + c + a, c + a + b):
            assert [r.voltage for r in parse(text)] == expected

    def test_absent_reading_sorts_after_present(self):
        records = [make_record(t=5.0, voltage=None), make_record(t=5.0, voltage=49.0)]
        order_series(records)
        assert [r.voltage for r in records] == [49.0, None]
