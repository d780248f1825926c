"""
General-purpose reduce phase functions.

Every function takes ``(entries, arg)`` and returns a list. The pipeline may
call a reducer on any slice of its input and later call it again on the
concatenated outputs, so each function accepts its own output as input.
"""

import re
import logging
from typing import Any, List

from .errors import IntegerConversionError, UnhandledEntryError
from .notfound import not_found_filter
from .records import BKey, flatten, is_bkey

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r'[+-]?[0-9]+')


def reduce_identity(entries, arg=None) -> list:
    """
    Normalize bucket/key inputs to ``(bucket, key)`` or ``(bucket, key, keydata)``

    Accepts ``(bucket, key)``, ``((bucket, key), keydata)`` and the 2- and
    3-element sequences this function itself produces.

    Raises:
        UnhandledEntryError: On any other shape
    """
    results = []
    for entry in entries:
        if isinstance(entry, tuple) and len(entry) == 2 and is_bkey(entry[0]):
            (bucket, key), keydata = entry
            if keydata is None:
                results.append(BKey(bucket, key))
            else:
                results.append((bucket, key, keydata))
        elif isinstance(entry, (tuple, list)) and len(entry) == 2:
            results.append(BKey(*entry))
        elif isinstance(entry, (tuple, list)) and len(entry) == 3:
            results.append(tuple(entry))
        else:
            logger.error(f"Unhandled entry: {entry!r}")
            raise UnhandledEntryError(entry)
    return results


def reduce_set_union(entries, arg=None) -> list:
    """Unique inputs, in no particular order: [a, a, b, c, b] -> [a, b, c]"""
    seen = set()
    unhashable = []
    results = []
    for entry in entries:
        try:
            if entry in seen:
                continue
            seen.add(entry)
        except TypeError:
            # index entries carry term lists and cannot be hashed
            if entry in unhashable:
                continue
            unhashable.append(entry)
        results.append(entry)
    return results


def reduce_sort(entries, arg=None) -> list:
    """Inputs in ascending order"""
    return sorted(entries)


def reduce_sum(entries, arg=None) -> list:
    """``[total]`` of the inputs, ignoring not-found placeholders"""
    return [sum(not_found_filter(entries), 0)]


def reduce_plist_sum(entries, arg=None) -> List[tuple]:
    """
    Merge ``(key, number)`` pairs, summing the numbers of duplicate keys

    Input is either a list of pairs or a list of lists of pairs. Output is
    a list of pairs in the order each key was first seen.
    """
    if not entries:
        return []
    pairs = entries if isinstance(entries[0], tuple) else flatten(entries)
    totals = {}
    for key, value in pairs:
        if key in totals:
            totals[key] = totals[key] + value
        else:
            totals[key] = value
    return list(totals.items())


def reduce_count_inputs(entries, arg=None) -> List[int]:
    """
    ``[count]`` of the inputs

    An integer input is taken to be an earlier count and adds its value
    rather than 1. Inputs that are genuinely integers will therefore be
    miscounted.
    """
    count = 0
    for entry in entries:
        if _is_integer(entry):
            count += entry
        else:
            count += 1
    return [count]


def reduce_string_to_integer(entries, arg=None) -> List[int]:
    """
    Convert str, bytes or int inputs to int, ignoring not-found placeholders

    Raises:
        IntegerConversionError: If an input is not an optionally signed
            run of decimal digits
    """
    return [_value_to_integer(value) for value in not_found_filter(entries)]


def _is_integer(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _value_to_integer(value: Any) -> int:
    if _is_integer(value):
        return value
    text = value
    if isinstance(value, (bytes, bytearray)):
        try:
            text = value.decode('ascii')
        except UnicodeDecodeError:
            raise IntegerConversionError(value) from None
    if isinstance(text, str) and _INTEGER_RE.fullmatch(text):
        return int(text)
    raise IntegerConversionError(value)
