"""
Checks that a reduce function tolerates arbitrary partitioning and re-reduce
"""

import logging
from typing import Any, Callable

from .errors import CAIViolation

logger = logging.getLogger(__name__)


def plain(value):
    """Copy of value with named tuples turned into plain tuples, recursively"""
    if isinstance(value, tuple):
        return tuple(plain(item) for item in value)
    if isinstance(value, list):
        return [plain(item) for item in value]
    return value


def canonical_key(record) -> str:
    """Sort key that orders records of mixed shapes and types"""
    return repr(plain(record))


def canonical(records, key: Callable[[Any], Any] = canonical_key) -> list:
    return sorted(records, key=key)


def check_cai(fn, arg, a, b, c, d, key: Callable[[Any], Any] = canonical_key) -> list:
    """
    Verify fn is commutative, associative and idempotent over four inputs

    Evaluates fn over ``[a, b, c, d]``, over ``[a, d]`` joined with the
    result for ``[c, b]``, and over the four single-input results. It then
    re-reduces the first result. All must agree as multisets.

    Args:
        fn: Reduce function taking ``(entries, arg)``
        arg: Phase argument passed to every call
        a, b, c, d: Input entries
        key: Sort key used to compare results irrespective of order

    Returns:
        The common result, sorted by key

    Raises:
        CAIViolation: If any two evaluations disagree
    """
    whole = canonical(fn([a, b, c, d], arg), key)
    groupings = {
        "partial re-reduce": fn([a, d] + fn([c, b], arg), arg),
        "nested single-input results": fn([fn([a], arg), fn([b], arg),
                                           fn([c], arg), fn([d], arg)], arg),
        "re-reduce of own output": fn(fn([a, b, c, d], arg), arg),
    }
    for description, result in groupings.items():
        result = canonical(result, key)
        if result != whole:
            logger.error(f"{getattr(fn, '__name__', fn)} failed {description} check")
            raise CAIViolation(description, whole, result)
    return whole
