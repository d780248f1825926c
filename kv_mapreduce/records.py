"""
Record shapes flowing through map and reduce phases.

Tuples are records; lists are partial results from an earlier reduce
invocation. Reducers rely on this distinction to splice re-reduced output
back into their input.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, NamedTuple, Optional, Tuple


class BKey(NamedTuple):
    bucket: Any
    key: Any


class IndexEntry(NamedTuple):
    """A secondary-index match: ``(bkey, terms)``, terms being None or a term-list"""
    bkey: Tuple[Any, Any]
    terms: Optional[List[Tuple[Any, Any]]]


@dataclass(frozen=True)
class StoredObject:
    """A stored value as handed to a map phase"""
    bucket: Any
    key: Any
    value: Any

    @property
    def bkey(self) -> BKey:
        return BKey(self.bucket, self.key)


@dataclass(frozen=True)
class NotFound:
    """Placeholder for a lookup that found nothing"""
    bkey: Optional[Tuple[Any, Any]] = None
    keydata: Any = None


class KeepPolicy(str, Enum):
    """Which terms survive on a record that passes an index filter"""
    ALL = "all"
    THIS = "this"


MISSING = object()


def is_bkey(entry) -> bool:
    """True for a bare ``(bucket, key)`` pair"""
    return isinstance(entry, tuple) and len(entry) == 2


def as_index_entry(entry) -> Optional[IndexEntry]:
    """
    Interpret entry as an index record

    Returns:
        IndexEntry if entry is ``((bucket, key), terms)`` with terms a list
        or None, otherwise None
    """
    if not (isinstance(entry, tuple) and len(entry) == 2):
        return None
    bkey, terms = entry
    if not is_bkey(bkey):
        return None
    if terms is not None and not isinstance(terms, list):
        return None
    return IndexEntry(bkey, terms)


def find_term(terms, name):
    """Value of the first ``(name, value)`` pair in terms, or MISSING"""
    for item in terms:
        if isinstance(item, tuple) and len(item) == 2 and item[0] == name:
            return item[1]
    return MISSING


def flatten(entries) -> list:
    """Flatten nested lists, leaving tuples and other values intact"""
    flat = []
    stack = [iter(entries)]
    while stack:
        for entry in stack[-1]:
            if isinstance(entry, list):
                stack.append(iter(entry))
                break
            flat.append(entry)
        else:
            stack.pop()
    return flat
