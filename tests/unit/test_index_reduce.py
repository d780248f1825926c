"""
Unit tests for index reduce phase functions
"""

import logging
import re

import pytest

from kv_mapreduce import (BKey, ExtractIntegerArgs, IndexEntry, KeepPolicy,
                          MaxArgs, RangeArgs, check_cai, reduce_index_by_range,
                          reduce_index_extract_integer, reduce_index_identity,
                          reduce_index_max, reduce_index_regex)
from kv_mapreduce.verify import canonical


def int_term(prefix: int, value: int, width: int, suffix: int = 0) -> bytes:
    """Binary term: prefix zero bytes, a big-endian integer, suffix zero bytes"""
    return bytes(prefix) + value.to_bytes(width, 'big') + bytes(suffix)


class TestReduceIndexIdentity:
    """Tests for reduce_index_identity"""

    A = ((b"B1", b"K1"), [("term", b"KD1")])
    B = ((b"B2", b"K2"), [("term", b"KD2")])
    C = ((b"B3", b"K3"), [("term", b"KD3"), ("extract", 4)])
    D = ((b"B4", b"K4"), None)
    E = (b"B5", b"K5")

    def test_cai_with_missing_term_list(self):
        """Test that a record without terms becomes its bucket/key"""
        result = check_cai(reduce_index_identity, None, self.A, self.B, self.C, self.D)

        assert result == canonical([self.A, self.B, self.C, (b"B4", b"K4")])

    def test_cai_with_bare_bucket_key(self):
        result = check_cai(reduce_index_identity, None, self.A, self.B, self.C, self.E)

        assert result == canonical([self.A, self.B, self.C, self.E])

    def test_cai_with_only_missing_term_lists(self):
        records = [((b"B%d" % n, b"K%d" % n), None) for n in (4, 6, 7, 8)]

        result = check_cai(reduce_index_identity, None, *records)

        assert result == [(b"B4", b"K4"), (b"B6", b"K6"), (b"B7", b"K7"), (b"B8", b"K8")]
        assert all(isinstance(r, BKey) for r in result)

    def test_drops_and_reports_unknown_entries(self):
        """Test that unknown shapes are reported, not raised"""
        seen = []

        result = reduce_index_identity([self.A, (b"E5",), 42, self.E], None, report=seen.append)

        assert result == [self.A, self.E]
        assert seen == [(b"E5",), 42]

    def test_logs_unknown_entries_by_default(self, caplog, monkeypatch):
        monkeypatch.delenv("KV_MAPREDUCE_REPORT_UNHANDLED", raising=False)

        with caplog.at_level(logging.WARNING):
            assert reduce_index_identity([42], None) == []

        assert "Unhandled entry: 42" in caplog.text

    def test_reporting_can_be_disabled(self, caplog, monkeypatch):
        monkeypatch.setenv("KV_MAPREDUCE_REPORT_UNHANDLED", "false")

        with caplog.at_level(logging.WARNING):
            assert reduce_index_identity([42], None) == []

        assert "Unhandled entry" not in caplog.text

    def test_failing_report_does_not_abort(self, caplog):
        """Test that an exception from the sink is logged and the fold continues"""
        def broken_report(entry):
            raise RuntimeError("sink down")

        with caplog.at_level(logging.ERROR):
            result = reduce_index_identity([42, self.A], None, report=broken_report)

        assert result == [self.A]
        assert "Diagnostic report failed" in caplog.text


class TestReduceIndexExtractInteger:
    """Tests for reduce_index_extract_integer"""

    A = ((b"B1", b"K1"), [("term", int_term(1, 1, 4, 1))])
    B = ((b"B2", b"K2"), [("term", int_term(1, 2, 4)), ("extract", 26)])
    C = ((b"B3", b"K3"), [("extract", 99), ("term", int_term(1, 3, 4, 2))])
    D = ((b"B4", b"K4"), None)
    E = ((b"EB5", b"EK5"), b"\x00")

    def test_keep_all(self):
        """Test that the new term is added in front of the existing terms"""
        result = check_cai(reduce_index_extract_integer, ("term", "extint", "all", 1, 32),
                           self.A, self.B, self.C, self.D)

        assert result == canonical([
            ((b"B1", b"K1"), [("extint", 1), ("term", int_term(1, 1, 4, 1))]),
            ((b"B2", b"K2"), [("extint", 2), ("term", int_term(1, 2, 4)), ("extract", 26)]),
            ((b"B3", b"K3"), [("extint", 3), ("extract", 99), ("term", int_term(1, 3, 4, 2))]),
        ])

    def test_keep_this(self):
        """Test that only the new term is kept"""
        arg = ExtractIntegerArgs("term", "extint", KeepPolicy.THIS, 1, 32)

        result = check_cai(reduce_index_extract_integer, arg, self.A, self.B, self.C, self.E)

        assert result == canonical([
            ((b"B1", b"K1"), [("extint", 1)]),
            ((b"B2", b"K2"), [("extint", 2)]),
            ((b"B3", b"K3"), [("extint", 3)]),
        ])

    def test_existing_output_term_passes_through(self):
        """Test that an already extracted record is left alone"""
        record = ((b"B1", b"K1"), [("extint", 7), ("term", int_term(1, 1, 4))])

        assert reduce_index_extract_integer([record], ("term", "extint", "this", 1, 32)) == [record]

    def test_narrow_bit_width(self):
        """Test extraction of an integer that is not a whole number of bytes"""
        record = ((b"B1", b"K1"), [("term", b"\xab\xcd\xef")])

        [result] = reduce_index_extract_integer([record], ("term", "n", "this", 0, 12))

        assert result == IndexEntry((b"B1", b"K1"), [("n", 0xabc)])

    @pytest.mark.parametrize("terms", [
        [("term", b"\x00\x00\x01")],
        [("term", "not bytes")],
        [("other", int_term(1, 1, 4))],
        [],
    ])
    def test_drops_short_or_missing_terms(self, terms):
        record = ((b"B1", b"K1"), terms)

        assert reduce_index_extract_integer([record], ("term", "extint", "all", 1, 32)) == []

    def test_rejects_invalid_layout(self):
        with pytest.raises(ValueError):
            reduce_index_extract_integer([self.A], ("term", "extint", "all", 1, 0))


class TestReduceIndexByRange:
    """Tests for reduce_index_by_range"""

    A = ((b"B1", b"K1"), [("extint", 1)])
    B = ((b"B2", b"K2"), [("extint", 2)])
    C = ((b"B3", b"K3"), [("extint", 3)])
    D = ((b"B4", b"K4"), [("extint", 4)])
    E = ((b"E5",),)
    F = ((b"F6", b"F7"), None)

    def test_half_open_range(self):
        """Test that the upper bound is excluded"""
        result = check_cai(reduce_index_by_range, ("extint", "all", 2, 4), self.A, self.B, self.C, self.D)

        assert result == canonical([self.B, self.C])

    def test_malformed_entries_are_dropped(self):
        assert check_cai(reduce_index_by_range, RangeArgs("extint", "this", 2, 4),
                         self.A, self.B, self.C, self.E) == canonical([self.B, self.C])
        assert check_cai(reduce_index_by_range, RangeArgs("extint", "all", 2, 4),
                         self.A, self.B, self.C, self.F) == canonical([self.B, self.C])

    def test_keep_this_discards_other_terms(self):
        record = ((b"B1", b"K1"), [("other", "x"), ("extint", 2)])

        assert reduce_index_by_range([record], ("extint", "this", 2, 4)) == [((b"B1", b"K1"), [("extint", 2)])]
        assert reduce_index_by_range([record], ("extint", "all", 2, 4)) == [record]

    def test_incomparable_values_are_dropped(self):
        """Test that a value of another type is treated as malformed"""
        record = ((b"B1", b"K1"), [("extint", b"3")])

        assert reduce_index_by_range([record, self.B], ("extint", "all", 2, 4)) == [self.B]

    def test_bytes_range(self):
        records = [((b"B%d" % n, b"K"), [("name", value)]) for n, value in enumerate([b"apple", b"kiwi", b"zebra"])]

        result = reduce_index_by_range(records, ("name", "all", b"b", b"l"))

        assert result == [records[1]]


class TestReduceIndexRegex:
    """Tests for reduce_index_regex"""

    A = ((b"B1", b"K1"), [("term", b"v99a")])
    B = ((b"B2", b"K2"), [("term", b"v99b")])
    C = ((b"B3", b"K3"), [("term", b"v98a")])
    D = ((b"B4", b"K4"), [("term", b"v99d")])
    E = ((b"E5",),)
    F = ((b"F6", b"F7"), None)

    def test_keeps_matching_records(self):
        pattern = re.compile(".*99.*")

        result = check_cai(reduce_index_regex, ("term", "this", pattern), self.A, self.B, self.C, self.D)

        assert result == canonical([self.A, self.B, self.D])

    def test_malformed_entries_are_dropped(self):
        pattern = re.compile(b"99")

        assert check_cai(reduce_index_regex, ("term", "this", pattern),
                         self.A, self.B, self.C, self.E) == canonical([self.A, self.B])
        assert check_cai(reduce_index_regex, ("term", "all", pattern),
                         self.A, self.B, self.C, self.F) == canonical([self.A, self.B])

    def test_pattern_is_searched_not_anchored(self):
        assert reduce_index_regex([self.A, self.C], ("term", "all", "9a")) == [self.A]

    def test_bytes_pattern_on_str_values(self):
        record = ((b"B1", b"K1"), [("term", "v99a")])

        assert reduce_index_regex([record], ("term", "all", re.compile(b"99"))) == [record]

    def test_pattern_flags_carry_over(self):
        pattern = re.compile("V99", re.IGNORECASE)

        assert reduce_index_regex([self.A, self.C], ("term", "all", pattern)) == [self.A]

    def test_locale_bytes_pattern_on_str_values(self):
        """Test that a flag only valid for bytes is dropped when converting"""
        record = ((b"B1", b"K1"), [("term", "v99")])
        pattern = re.compile(b"99", re.LOCALE)

        assert reduce_index_regex([record], ("term", "all", pattern)) == [record]

    def test_unconvertible_pattern_never_matches(self, caplog):
        """Test that a pattern unusable for a value type drops those records"""
        record = ((b"B1", b"K1"), [("term", b"v99")])
        pattern = re.compile("\u00e9|99")

        with caplog.at_level(logging.WARNING):
            assert reduce_index_regex([record, self.A], ("term", "all", "\\d+\udc80")) == []

        assert "cannot be applied" in caplog.text
        assert reduce_index_regex([record], ("term", "all", pattern)) == [record]

    def test_non_text_values_are_dropped(self):
        record = ((b"B1", b"K1"), [("term", 99)])

        assert reduce_index_regex([record], ("term", "all", "99")) == []


class TestReduceIndexMax:
    """Tests for reduce_index_max"""

    A = ((b"B1", b"K1"), [("int", 5)])
    B = ((b"B2", b"K2"), [("int", 7), ("term", b"v7")])
    C = ((b"B3", b"K3"), [("int", 8)])
    D = ((b"B4", b"K4"), [("term", 9)])

    def test_selects_greatest(self):
        """Test that the record without the term is ignored"""
        result = check_cai(reduce_index_max, ("int", "this"), self.A, self.B, self.C, self.D)

        assert result == [self.C]

    def test_keep_all(self):
        result = check_cai(reduce_index_max, MaxArgs("int", "all"), self.C, self.D, self.B, self.A)

        assert result == [self.C]

    def test_keep_this(self):
        assert reduce_index_max([self.A, self.B], ("int", "this")) == [((b"B2", b"K2"), [("int", 7)])]

    def test_no_matching_records(self):
        assert reduce_index_max([self.D], ("int", "this")) == []
        assert reduce_index_max([], ("int", "this")) == []

    def test_flattens_nested_results(self):
        assert reduce_index_max([[[self.A]], [self.C, [self.B]], []], ("int", "all")) == [self.C]

    def test_ties_keep_first_folded(self):
        """Test that of equal maxima the first encountered wins"""
        first = ((b"B1", b"K1"), [("int", 5)])
        second = ((b"B2", b"K2"), [("int", 5)])

        assert reduce_index_max([first, second], ("int", "all")) == [first]
        assert reduce_index_max([second, first], ("int", "all")) == [second]

    def test_mixed_types_rank_by_type(self):
        """Test that a string outranks every number in either order"""
        other = ((b"B9", b"K9"), [("int", "x")])

        assert reduce_index_max([self.A, other], ("int", "all")) == [other]
        assert reduce_index_max([other, self.A], ("int", "all")) == [other]

    def test_mixed_types_are_order_independent(self):
        other = ((b"B9", b"K9"), [("int", "x")])
        low = ((b"B0", b"K0"), [("int", 1)])

        assert check_cai(reduce_index_max, ("int", "all"), self.A, self.B, other, low) == [other]

    @pytest.mark.parametrize("value", [None, {"n": 9}, float("nan"), (1, None), [2, object()]])
    def test_unordered_values_are_dropped(self, value):
        """Test that a value with no rank is dropped wherever it appears"""
        other = ((b"B9", b"K9"), [("int", value)])

        assert reduce_index_max([self.A, other], ("int", "all")) == [self.A]
        assert reduce_index_max([other, self.A], ("int", "all")) == [self.A]

    def test_unordered_value_does_not_break_rereduce(self):
        other = ((b"B9", b"K9"), [("int", {"n": 9})])
        low = ((b"B0", b"K0"), [("int", 1)])

        assert check_cai(reduce_index_max, ("int", "all"), self.A, self.B, other, low) == [self.B]

    def test_tuples_compare_by_length_first(self):
        short = ((b"B1", b"K1"), [("int", (9,))])
        long = ((b"B2", b"K2"), [("int", (1, 1))])

        assert reduce_index_max([short, long], ("int", "all")) == [long]
        assert reduce_index_max([long, short], ("int", "all")) == [long]

    def test_reports_unknown_entries(self):
        seen = []

        assert reduce_index_max([self.A, "junk"], ("int", "all"), report=seen.append) == [self.A]
        assert seen == ["junk"]
