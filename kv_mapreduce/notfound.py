"""
Not-found handling shared by map and reduce phases
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .errors import UnhandledActionError
from .records import NotFound


def is_datum(value) -> bool:
    """False for a not-found placeholder, True for anything else"""
    return not isinstance(value, NotFound)


def not_found_filter(values) -> list:
    """Drop not-found placeholders from values"""
    return [value for value in values if is_datum(value)]


class NotFoundAction(Enum):
    FILTER = "filter_notfound"
    INCLUDE_NOTFOUND = "include_notfound"
    INCLUDE_KEYDATA = "include_keydata"


@dataclass(frozen=True)
class Substitute:
    """Emit ``value`` as-is in place of a missing object"""
    value: Any


Action = Union[NotFoundAction, Substitute]


def parse_not_found_action(raw) -> Action:
    """
    Convert a query-layer action value into an Action

    Accepts an Action, one of the literal tags (str or bytes), or the
    structured form ``{"sub": value}`` that JSON queries use.

    Raises:
        UnhandledActionError: If raw is none of the above
    """
    if isinstance(raw, (NotFoundAction, Substitute)):
        return raw
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise UnhandledActionError(raw) from None
    if isinstance(raw, str):
        try:
            return NotFoundAction(raw)
        except ValueError:
            raise UnhandledActionError(raw) from None
    if isinstance(raw, dict) and len(raw) == 1:
        (name, value), = raw.items()
        if name in ("sub", b"sub"):
            return Substitute(value)
    raise UnhandledActionError(raw)


def apply_not_found_action(missing: NotFound, keydata, action: Action):
    """Output of a map phase for a missing object under the given action"""
    if action is NotFoundAction.FILTER:
        return []
    if action is NotFoundAction.INCLUDE_NOTFOUND:
        return [missing]
    if action is NotFoundAction.INCLUDE_KEYDATA:
        return [keydata]
    if isinstance(action, Substitute):
        return action.value
    raise UnhandledActionError(action)
