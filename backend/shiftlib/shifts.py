"""
Claim/cancel state machine for shifts.

The persisted shape is two optional fields, ``workerId`` and ``cancelledAt``.
The state is derived from them:

    UNCLAIMED  workerId is None, cancelledAt is None
    CLAIMED    workerId is set
    CANCELLED  workerId is None, cancelledAt is set

Transitions:

    UNCLAIMED --claim-->  CLAIMED
    CLAIMED   --cancel--> CANCELLED
    CANCELLED --claim-->  CLAIMED     (clears cancelledAt)

Every other (state, action) pair raises InvalidStateTransition. Each
transition is written as one conditional update on ``workerId``, so two
callers racing on the same shift cannot both succeed. A caller whose write
loses re-reads the shift and tries again while the new state still allows
the action; PreconditionFailed escapes only after ``_MAX_ATTEMPTS`` losses.
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from .database import ShiftDatabase
from .errors import InvalidStateTransition, PreconditionFailed, ShiftNotFound
from .types import ShiftRecord

_logger = logging.getLogger('shiftlib.shifts')

# Conditional writes attempted before a contended transition gives up
_MAX_ATTEMPTS = 3


class ShiftState(str, Enum):
    UNCLAIMED = 'unclaimed'
    CLAIMED = 'claimed'
    CANCELLED = 'cancelled'


class ShiftAction(str, Enum):
    CLAIM = 'claim'
    CANCEL = 'cancel'


TRANSITIONS = {
    (ShiftState.UNCLAIMED, ShiftAction.CLAIM): ShiftState.CLAIMED,
    (ShiftState.CANCELLED, ShiftAction.CLAIM): ShiftState.CLAIMED,
    (ShiftState.CLAIMED, ShiftAction.CANCEL): ShiftState.CANCELLED,
}


def shift_state(shift: ShiftRecord) -> ShiftState:
    """Derive the lifecycle state from the persisted fields."""
    if shift.get('workerId') is not None:
        return ShiftState.CLAIMED
    if shift.get('cancelledAt') is not None:
        return ShiftState.CANCELLED
    return ShiftState.UNCLAIMED


def next_state(state: ShiftState, action: ShiftAction) -> Optional[ShiftState]:
    """Return the target state, or None when *action* is not allowed in *state*."""
    return TRANSITIONS.get((state, action))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_ts(ts: datetime) -> str:
    return ts.strftime('%Y-%m-%dT%H:%M:%S.') + f"{ts.microsecond // 1000:03d}Z"


class ShiftLifecycle:
    """Applies claim/cancel transitions against a ShiftDatabase."""

    def __init__(self, db: ShiftDatabase, clock: Callable[[], datetime] = _utcnow):
        self.db = db
        self.clock = clock

    def _load(self, shift_id: int) -> ShiftRecord:
        shift = self.db.get_shift(shift_id)
        if shift is None:
            raise ShiftNotFound(shift_id)
        return shift

    def _transition(self, shift_id: int, action: ShiftAction, changes: dict) -> ShiftRecord:
        shift = self._load(shift_id)
        for attempt in range(1, _MAX_ATTEMPTS + 1):
            state = shift_state(shift)
            if next_state(state, action) is None:
                raise InvalidStateTransition(shift_id, action.value, state)
            # Optimistic lock on the field the precondition was checked against
            try:
                updated = self.db.update_shift(
                    shift_id, changes, expect={'workerId': shift.get('workerId')}
                )
            except PreconditionFailed:
                if attempt == _MAX_ATTEMPTS:
                    raise
                _logger.info("%s retry | shift=%s attempt=%s", action.name, shift_id, attempt)
                shift = self._load(shift_id)
                continue
            if updated is None:
                raise ShiftNotFound(shift_id)
            return updated

    def claim(self, shift_id: int, worker_id: int) -> ShiftRecord:
        """Assign *worker_id* to an unclaimed or cancelled shift."""
        if worker_id is None:
            raise ValueError("worker_id must not be None")
        updated = self._transition(
            shift_id, ShiftAction.CLAIM, {'workerId': worker_id, 'cancelledAt': None}
        )
        _logger.info("CLAIM | shift=%s worker=%s", shift_id, worker_id)
        return updated

    def cancel(self, shift_id: int) -> ShiftRecord:
        """Release a claimed shift and record the cancellation time."""
        updated = self._transition(
            shift_id, ShiftAction.CANCEL,
            {'workerId': None, 'cancelledAt': _format_ts(self.clock())},
        )
        _logger.info("CANCEL | shift=%s", shift_id)
        return updated
