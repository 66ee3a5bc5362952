"""Exception types raised by the shift claims core."""


class ShiftError(Exception):
    """Base class for all errors raised by shiftlib."""


class ShiftNotFound(ShiftError, LookupError):
    """The referenced shift does not exist."""

    def __init__(self, shift_id: int):
        self.shift_id = shift_id
        super().__init__(f"Shift ID {shift_id} not found.")


class InvalidStateTransition(ShiftError):
    """claim on a claimed shift, or cancel on an unclaimed one."""

    def __init__(self, shift_id: int, action: str, state):
        self.shift_id = shift_id
        self.action = action
        self.state = state
        super().__init__(f"Cannot {action} shift ID {shift_id}: shift is {state.value}.")


class PreconditionFailed(ShiftError):
    """A conditional update found the record in a different state than expected."""

    def __init__(self, record_id: int, field: str, expected, actual):
        self.record_id = record_id
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Record {record_id}: expected {field}={expected!r}, found {actual!r}"
        )


class TransportFailure(ShiftError):
    """A page fetch failed: network error, non-success status or malformed body."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class ConfigError(ShiftError, ValueError):
    """Missing or invalid configuration value."""
