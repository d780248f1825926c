"""
Reduce phase functions for secondary-index query results.

Inputs are IndexEntry records ``((bucket, key), terms)`` and bare
``(bucket, key)`` pairs. A list among the inputs is the output of an earlier
invocation and is spliced into the result. Every function here gives the
same result however its input is partitioned, repeated or re-reduced (ties
in ``reduce_index_max`` excepted), and none of them raises on a malformed
entry: the entry is dropped and handed to the ``report`` callable.
"""

import re
import logging
from typing import Any, Callable, NamedTuple, Optional, Union

from .config import get_settings
from .records import (MISSING, BKey, IndexEntry, KeepPolicy, as_index_entry,
                      find_term, flatten, is_bkey)

logger = logging.getLogger(__name__)

Report = Callable[[Any], None]


class ExtractIntegerArgs(NamedTuple):
    input_term: Any
    output_term: Any
    keep: KeepPolicy
    prefix_bytes: int
    int_bits: int


class RangeArgs(NamedTuple):
    """Keep records whose term lies in ``low <= value < high``"""
    input_term: Any
    keep: KeepPolicy
    low: Any
    high: Any


class RegexArgs(NamedTuple):
    input_term: Any
    keep: KeepPolicy
    pattern: Union[str, bytes, re.Pattern]


class MaxArgs(NamedTuple):
    input_term: Any
    keep: KeepPolicy


def reduce_index_identity(entries, arg=None, *, report: Optional[Report] = None) -> list:
    """
    Pass index records through, normalizing ``(bkey, None)`` to ``bkey``

    Unlike ``reduce_identity``, unrecognized entries are dropped.
    """
    report = _reporter(report)
    results = []
    for entry in entries:
        if isinstance(entry, list):
            results.extend(entry)
            continue
        record = as_index_entry(entry)
        if record is not None:
            if record.terms is None:
                results.append(BKey(*record.bkey))
            else:
                results.append(record)
        elif is_bkey(entry):
            results.append(BKey(*entry))
        else:
            report(entry)
    return results


def reduce_index_extract_integer(entries, arg, *, report: Optional[Report] = None) -> list:
    """
    Decode an integer from a binary term and add it as a new term

    Args:
        entries: Index records and earlier results
        arg: ExtractIntegerArgs ``(input_term, output_term, keep,
            prefix_bytes, int_bits)``. The input term's value is read as
            ``prefix_bytes`` ignored bytes, then an ``int_bits`` wide
            big-endian unsigned integer, then anything. A width that is not
            a whole number of bytes takes the leading bits of the bytes
            covering it, where a strict bit-level match would drop the
            record.
        report: Called with each unrecognized entry

    Returns:
        Records carrying ``output_term``. A record that already has it is
        passed through untouched; one whose input term is missing or too
        short is dropped.
    """
    input_term, output_term, keep, prefix_bytes, int_bits = arg
    keep = KeepPolicy(keep)
    if prefix_bytes < 0 or int_bits <= 0:
        raise ValueError(f"Invalid integer layout: prefix={prefix_bytes}, bits={int_bits}")
    report = _reporter(report)
    results = []
    for entry in entries:
        if isinstance(entry, list):
            results.extend(entry)
            continue
        record = _index_record(entry, report)
        if record is None:
            continue
        if find_term(record.terms, output_term) is not MISSING:
            results.append(record)
            continue
        number = _extract_integer(find_term(record.terms, input_term), prefix_bytes, int_bits)
        if number is None:
            continue
        if keep is KeepPolicy.ALL:
            terms = [(output_term, number)] + record.terms
        else:
            terms = [(output_term, number)]
        results.append(IndexEntry(record.bkey, terms))
    return results


def reduce_index_by_range(entries, arg, *, report: Optional[Report] = None) -> list:
    """Keep records whose ``input_term`` satisfies ``low <= value < high``"""
    input_term, keep, low, high = arg
    keep = KeepPolicy(keep)
    report = _reporter(report)
    results = []
    for entry in entries:
        if isinstance(entry, list):
            results.extend(entry)
            continue
        record = _index_record(entry, report)
        if record is None:
            continue
        value = find_term(record.terms, input_term)
        if value is MISSING:
            continue
        try:
            in_range = low <= value < high
        except TypeError:
            continue
        if in_range:
            results.append(_kept(record, keep, input_term, value))
    return results


def reduce_index_regex(entries, arg, *, report: Optional[Report] = None) -> list:
    """
    Keep records whose ``input_term`` contains a match for ``pattern``

    The pattern is searched for, not anchored. A str pattern applies to
    bytes values (and the reverse) by UTF-8 conversion of the pattern.
    """
    input_term, keep, pattern = arg
    keep = KeepPolicy(keep)
    matcher = _Matcher(pattern)
    report = _reporter(report)
    results = []
    for entry in entries:
        if isinstance(entry, list):
            results.extend(entry)
            continue
        record = _index_record(entry, report)
        if record is None:
            continue
        value = find_term(record.terms, input_term)
        if value is not MISSING and matcher.search(value):
            results.append(_kept(record, keep, input_term, value))
    return results


def reduce_index_max(entries, arg, *, report: Optional[Report] = None) -> list:
    """
    The single record with the greatest ``input_term``

    Returns an empty list if no record has the term. Values are ranked by
    type before value (see ``_order_key``), so numbers and strings can be
    mixed; a record whose value has no rank is dropped. Of records sharing
    the greatest value, the first one folded wins; which one that is depends
    on how the pipeline partitioned the input.
    """
    input_term, keep = arg
    keep = KeepPolicy(keep)
    report = _reporter(report)
    best = None
    best_key = None
    # earlier results must be flattened first or the fold would skip them
    for entry in flatten(entries):
        record = _index_record(entry, report)
        if record is None:
            continue
        value = find_term(record.terms, input_term)
        if value is MISSING:
            continue
        key = _order_key(value)
        if key is None:
            continue
        if best is None or key > best_key:
            best = _kept(record, keep, input_term, value)
            best_key = key
    return [] if best is None else [best]


def _order_key(value):
    """
    Sort key giving a total order over term values, or None if value has none

    Numbers < booleans < str < bytes < tuples < lists. Tuples compare by
    length first. NaN is not ordered.
    """
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float)):
        if value != value:
            return None
        return (0, value)
    if isinstance(value, str):
        return (2, value)
    if isinstance(value, (bytes, bytearray)):
        return (3, bytes(value))
    if isinstance(value, (tuple, list)):
        keys = [_order_key(item) for item in value]
        if None in keys:
            return None
        if isinstance(value, tuple):
            return (4, len(keys), keys)
        return (5, keys)
    return None


def _index_record(entry, report: Report) -> Optional[IndexEntry]:
    """entry as an IndexEntry with a term-list, reporting shapes that are not records"""
    record = as_index_entry(entry)
    if record is None:
        if not is_bkey(entry):
            report(entry)
        return None
    if record.terms is None:
        return None
    return record


def _kept(record: IndexEntry, keep: KeepPolicy, name, value) -> IndexEntry:
    if keep is KeepPolicy.ALL:
        return record
    return IndexEntry(record.bkey, [(name, value)])


def _extract_integer(value, prefix_bytes: int, int_bits: int) -> Optional[int]:
    if not isinstance(value, (bytes, bytearray)):
        return None
    width = (int_bits + 7) // 8
    chunk = bytes(value[prefix_bytes:prefix_bytes + width])
    if len(chunk) < width:
        return None
    return int.from_bytes(chunk, 'big') >> (width * 8 - int_bits)


class _Matcher:
    """Searches str or bytes values with one pattern"""

    def __init__(self, pattern):
        if isinstance(pattern, (str, bytes)):
            pattern = re.compile(pattern)
        self.pattern = pattern
        self._compiled = {type(pattern.pattern): pattern}

    def search(self, value) -> bool:
        if isinstance(value, bytearray):
            value = bytes(value)
        kind = type(value)
        if kind not in (str, bytes):
            return False
        if kind not in self._compiled:
            self._compiled[kind] = self._convert(kind)
        compiled = self._compiled[kind]
        return compiled is not None and compiled.search(value) is not None

    def _convert(self, kind):
        source = self.pattern.pattern
        try:
            if kind is bytes:
                return re.compile(source.encode('utf-8'), self.pattern.flags & ~re.UNICODE)
            return re.compile(source.decode('utf-8'), self.pattern.flags & ~re.LOCALE)
        except (ValueError, re.error) as e:
            logger.warning(f"Pattern {source!r} cannot be applied to {kind.__name__} values: {e}")
            return None


def _log_unhandled(entry):
    logger.warning(f"Unhandled entry: {entry!r}")


def _ignore(entry):
    pass


def _reporter(report: Optional[Report]) -> Report:
    """Wrap report so that a failing sink never aborts the fold"""
    if report is None:
        report = _log_unhandled if get_settings().report_unhandled else _ignore

    def safe_report(entry):
        try:
            report(entry)
        except Exception:
            logger.exception("Diagnostic report failed")

    return safe_report
