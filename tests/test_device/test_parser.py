"""Tests for the router syslog parser."""

from __future__ import annotations

import math
from datetime import datetime, timezone

import pytest

from signal_watch.device.info import GEN_2G, GEN_3G, GEN_4G, Info
from signal_watch.device.parser import (
    MAX_TEXT_LENGTH,
    UNKNOWN_FREQUENCY,
    extract_fields,
    parse,
    scan_numbers,
)


class TestScanNumbers:
    def test_four_fields(self) -> None:
        assert scan_numbers("-95,-10,-70,12.3", "dddf") == [-95, -10, -70, 12.3]

    def test_int_slot_stops_at_decimal_point(self) -> None:
        # "-7.5" reads as -7, then the separator check fails on "."
        assert scan_numbers("-85,-7.5", "dddf") == [-85, -7]

    def test_stops_at_garbage(self) -> None:
        assert scan_numbers("-71,abc", "dddf") == [-71]

    def test_nothing_numeric(self) -> None:
        assert scan_numbers("n/a", "dddf") == []

    def test_whitespace_tolerated(self) -> None:
        assert scan_numbers(" -95 , -10", "dd") == [-95, -10]


class TestEndToEnd:
    def test_lte_batch_from_zeroed_snapshot(self, lte_batch: str) -> None:
        result = parse(lte_batch, Info())
        info = result.info

        assert result.was_reset is False
        assert info.network_type == "LTE"
        assert info.network_type_as_int() == GEN_4G
        assert info.rsrp == -95
        assert info.rsrq == -10
        assert info.rssi == -70
        assert info.sinr == pytest.approx(12.3)
        assert info.csq == 20
        assert info.lac == 0x1A2B
        assert info.global_cell_id == 0xFF00FF
        assert info.got_network_type
        assert info.got_signal_strength
        assert info.got_csq
        assert info.got_lac
        assert info.got_cell_id
        assert info.n == 1
        assert info.last_update is not None

    def test_sequence_number_increments(self, lte_batch: str) -> None:
        first = parse(lte_batch, Info()).info
        second = parse(lte_batch, first).info
        assert second.n == first.n + 1

    def test_timestamp_uses_now(self, lte_batch: str) -> None:
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert parse(lte_batch, Info(), now=now).info.last_update == now

    def test_empty_text_still_counts_as_update(self) -> None:
        result = parse("", Info(n=4))
        assert result.was_reset is False
        assert result.info.n == 5
        assert not result.info.got_network_type
        assert not result.info.got_signal_strength


class TestSignalStrength:
    def test_2g_single_field_goes_to_rssi(self) -> None:
        fields = extract_fields(" +ZRSSI: -71\n")
        assert fields["rssi"] == -71
        assert fields["rsrp"] is None
        assert fields["rscp"] is None

    def test_3g_two_fields(self) -> None:
        fields = extract_fields(" +ZRSSI: -85,-7.5\n")
        assert fields["rscp"] == -85
        assert fields["ecio"] == pytest.approx(-7.5)
        assert fields["rsrp"] is None
        assert fields["rssi"] is None

    def test_3g_integer_ecio(self) -> None:
        fields = extract_fields(" +ZRSSI: -85,-7\n")
        assert fields["rscp"] == -85
        assert fields["ecio"] == -7.0

    def test_4g_three_fields_leaves_sinr_absent(self) -> None:
        fields = extract_fields(" +ZRSSI: -95,-10,-70\n")
        assert (fields["rsrp"], fields["rsrq"], fields["rssi"]) == (-95, -10, -70)
        assert fields["sinr"] is None

    def test_no_numbers_is_not_a_match(self) -> None:
        info = parse(" +ZRSSI: ,\n", Info()).info
        assert not info.got_signal_strength

    def test_previous_generation_values_do_not_leak(self, lte_batch: str) -> None:
        first = parse(lte_batch, Info()).info
        second = parse(" +ZRSSI: -70,-3,-60\n", first).info
        assert second.rsrp == -70
        assert second.sinr is None

    def test_sinr_is_never_nan(self) -> None:
        info = parse(" +ZRSSI: -95,-10,-70\n", Info()).info
        assert info.sinr is None or not math.isnan(info.sinr)


class TestCsq:
    @pytest.mark.parametrize("text", ["12,5", "12.5"])
    def test_locale_tolerant(self, text: str) -> None:
        info = parse(f" +CSQ: {text}\n", Info()).info
        assert info.csq == pytest.approx(12.5)
        assert info.got_csq

    def test_garbage_leaves_flag_false(self) -> None:
        info = parse(" +CSQ: ??\n", Info()).info
        assert not info.got_csq


class TestLocation:
    def test_lac_without_cell_id(self) -> None:
        info = parse(" LAC=00FF\n", Info()).info
        assert info.lac == 0xFF
        assert not info.got_cell_id

    def test_cell_id_requires_lac(self) -> None:
        info = parse(" LAC=zz CELL_ID=FF00FF\n", Info()).info
        assert not info.got_lac
        assert not info.got_cell_id

    def test_lowercase_hex(self) -> None:
        info = parse(" LAC=1a2b CELL_ID=abc\n", Info()).info
        assert info.lac == 0x1A2B
        assert info.global_cell_id == 0xABC


class TestProvider:
    def test_description_and_mcc_mnc(self) -> None:
        info = parse(' +ZDON: "  A1 Telekom",232,1\n', Info()).info
        assert info.provider_desc == "A1 Telekom"
        assert info.mcc_mnc == 23201
        assert info.got_provider_info

    def test_description_without_codes(self) -> None:
        info = parse(' +ZDON: "Drei"\n', Info()).info
        assert info.provider_desc == "Drei"
        assert not info.got_provider_info

    def test_description_truncated(self) -> None:
        long_name = "X" * 100
        info = parse(f' +ZDON: "{long_name}",232,5\n', Info()).info
        assert info.provider_desc == "X" * MAX_TEXT_LENGTH
        assert info.mcc_mnc == 23205

    def test_signed_mnc_leaves_codes_unset(self) -> None:
        text = (
            " ProcAtZrssiRes network_type = LTE, \n"
            " +ZRSSI: -95,-10,-70,12.3\n"
            ' +ZDON: "A1",232,-1\n'
        )
        info = parse(text, Info()).info
        assert info.provider_desc == "A1"
        assert not info.got_provider_info
        assert info.network_type == "LTE"
        assert info.rsrp == -95
        assert info.sinr == pytest.approx(12.3)

    def test_unquoted_is_ignored(self) -> None:
        info = parse(" +ZDON: A1,232,1\n", Info()).info
        assert info.provider_desc is None


class TestCellInfo:
    @pytest.mark.parametrize(
        ("band", "frequency"),
        [("B3", 1800), ("B7", 2600), ("B20", 800), ("B1", UNKNOWN_FREQUENCY)],
    )
    def test_lte_bands(self, band: str, frequency: int) -> None:
        info = parse(f" +ZCELLINFO: 12345, 101, LTE {band}, 6300\n", Info()).info
        assert info.frequency == frequency
        assert info.channel == 6300
        assert info.got_frequency
        assert info.got_channel

    def test_non_lte_frequency_only(self) -> None:
        info = parse(" +ZCELLINFO: 12345, 22, UMTS 2100\n", Info()).info
        assert info.frequency == 2100
        assert not info.got_channel

    def test_malformed(self) -> None:
        info = parse(" +ZCELLINFO: garbage\n", Info()).info
        assert not info.got_frequency


class TestNetworkType:
    def test_label_captured_up_to_comma(self) -> None:
        info = parse(" ProcAtZrssiRes network_type = No Service, foo\n", Info()).info
        assert info.network_type == "No Service"
        assert info.network_type_as_int() == 0

    def test_label_capped(self) -> None:
        info = parse(f" ProcAtZrssiRes network_type = {'Y' * 80}\n", Info()).info
        assert info.network_type == "Y" * MAX_TEXT_LENGTH

    def test_marker_required(self) -> None:
        info = parse(" network_type = LTE,\n", Info()).info
        assert not info.got_network_type


class TestBatchRules:
    def test_first_match_per_category_wins(self) -> None:
        text = " +CSQ: 10\n +CSQ: 25\n"
        assert parse(text, Info()).info.csq == 10

    def test_failed_match_does_not_block_later_line(self) -> None:
        text = " +CSQ: n/a\n +CSQ: 25\n"
        assert parse(text, Info()).info.csq == 25

    def test_line_order_does_not_matter_across_categories(self, lte_batch: str) -> None:
        reversed_batch = "\n".join(reversed(lte_batch.splitlines())) + "\n"
        a = parse(lte_batch, Info()).info
        b = parse(reversed_batch, Info()).info
        assert (a.rsrp, a.csq, a.lac, a.network_type) == (b.rsrp, b.csq, b.lac, b.network_type)

    def test_presence_reflects_latest_batch_only(self, lte_batch: str) -> None:
        first = parse(lte_batch, Info()).info
        second = parse(" ProcAtZrssiRes network_type = LTE,\n +CSQ: 7\n", first).info
        assert second.got_csq
        assert not second.got_signal_strength
        assert not second.got_lac
        assert not second.got_cell_id


class TestGenerationReset:
    def test_transition_resets_snapshot(self, lte_batch: str, umts_batch: str) -> None:
        first = parse(lte_batch, Info()).info
        result = parse(umts_batch, first)

        assert result.was_reset is True
        info = result.info
        assert info.n == first.n
        assert info.last_update == first.last_update
        assert not info.got_network_type
        assert not info.got_signal_strength
        assert not info.got_csq
        assert not info.got_lac
        assert not info.got_cell_id
        assert not info.got_provider_info
        assert not info.got_frequency
        assert not info.got_channel

    def test_batch_after_reset_is_accepted(self, lte_batch: str, umts_batch: str) -> None:
        first = parse(lte_batch, Info()).info
        cleared = parse(umts_batch, first).info
        result = parse(umts_batch, cleared)
        assert result.was_reset is False
        assert result.info.network_type_as_int() == GEN_3G
        assert result.info.n == first.n + 1

    def test_same_generation_different_label_no_reset(self) -> None:
        first = parse(" ProcAtZrssiRes network_type = GSM,\n", Info()).info
        result = parse(" ProcAtZrssiRes network_type = EDGE,\n", first)
        assert result.was_reset is False
        assert result.info.network_type_as_int() == GEN_2G

    def test_missing_network_type_no_reset(self, lte_batch: str) -> None:
        first = parse(lte_batch, Info()).info
        result = parse(" +CSQ: 3\n", first)
        assert result.was_reset is False

    def test_no_service_is_a_generation(self, lte_batch: str) -> None:
        first = parse(lte_batch, Info()).info
        result = parse(" ProcAtZrssiRes network_type = Limited Service,\n", first)
        assert result.was_reset is True
