"""
Exceptions raised by map/reduce phase functions
"""


class PhaseError(Exception):
    """Base class for all phase function failures"""


class UnhandledEntryError(PhaseError):
    """A strict reducer was handed a record shape it does not understand"""

    def __init__(self, entry):
        super().__init__(f"Unhandled entry: {entry!r}")
        self.entry = entry


class UnhandledActionError(PhaseError):
    """A map phase was configured with an unknown not-found action"""

    def __init__(self, action):
        super().__init__(f"Unhandled not-found action: {action!r}")
        self.action = action


class IntegerConversionError(PhaseError, ValueError):
    """A value could not be converted to an integer"""

    def __init__(self, value):
        super().__init__(f"Cannot convert to integer: {value!r}")
        self.value = value


class FunctionLoadError(PhaseError):
    """A phase function reference could not be resolved"""


class CAIViolation(PhaseError, AssertionError):
    """A reducer gave different results for different groupings of its input"""

    def __init__(self, description: str, expected, actual):
        super().__init__(f"{description}: expected {expected!r}, got {actual!r}")
        self.expected = expected
        self.actual = actual
