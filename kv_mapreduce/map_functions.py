"""
Map phase functions.

Each takes ``(record, keydata, action)`` and returns a list of outputs.
``action`` only matters when the record is a NotFound placeholder; see
``notfound.parse_not_found_action`` for the accepted values. Any other
value, None included, raises UnhandledActionError for a missing object.
"""

from .notfound import apply_not_found_action, parse_not_found_action
from .records import NotFound


def map_identity(record, keydata, action) -> list:
    """Return the record unchanged"""
    return [record]


def map_object_value(record, keydata, action) -> list:
    """
    Return the value of a stored object

    Args:
        record: StoredObject, or NotFound if the lookup failed
        keydata: Per-input data supplied alongside the key
        action: Not-found action

    Returns:
        ``[value]``, or the not-found action's output for a missing object
    """
    if isinstance(record, NotFound):
        return _not_found(record, keydata, action)
    return [record.value]


def map_object_value_list(record, keydata, action) -> list:
    """
    Return the elements of a stored object whose value is a list

    Values [a, b], [c, d] across two objects produce a, b, c, d overall
    rather than two boxed lists.
    """
    if isinstance(record, NotFound):
        return _not_found(record, keydata, action)
    return list(record.value)


def _not_found(record, keydata, action):
    return apply_not_found_action(record, keydata, parse_not_found_action(action))
