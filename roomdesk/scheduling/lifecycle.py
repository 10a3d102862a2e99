"""Client-side view of a booking's lifecycle.

The booking itself belongs to the remote API; this only tracks where the
user's form is: drafting, submitting, confirmed, rejected, editing or canceled.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from roomdesk.core.exceptions import InvalidTransitionError, RoomdeskError


class BookingState(str, Enum):
    DRAFT = "draft"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    EDITING = "editing"
    CANCELED = "canceled"


_TRANSITIONS: Dict[BookingState, FrozenSet[BookingState]] = {
    BookingState.DRAFT: frozenset({BookingState.SUBMITTING}),
    BookingState.SUBMITTING: frozenset({BookingState.CONFIRMED, BookingState.REJECTED}),
    BookingState.CONFIRMED: frozenset({BookingState.EDITING, BookingState.CANCELED}),
    BookingState.REJECTED: frozenset({BookingState.DRAFT}),
    BookingState.EDITING: frozenset({BookingState.SUBMITTING, BookingState.CONFIRMED}),
    BookingState.CANCELED: frozenset(),
}


@dataclass
class BookingFlow:
    """State of one booking form, plus the booking id once the API confirms it."""
    state: BookingState = BookingState.DRAFT
    booking_id: Optional[str] = None
    rejection: Optional[RoomdeskError] = None
    editing: bool = field(default=False, repr=False)

    def _move(self, target: BookingState) -> "BookingFlow":
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Cannot go from {self.state.value} to {target.value}",
                details={"from": self.state.value, "to": target.value},
            )
        self.state = target
        return self

    def submit(self) -> "BookingFlow":
        self.rejection = None
        return self._move(BookingState.SUBMITTING)

    def confirm(self, booking_id: Optional[str] = None) -> "BookingFlow":
        self._move(BookingState.CONFIRMED)
        self.editing = False
        if booking_id is not None:
            self.booking_id = booking_id
        return self

    def reject(self, reason: RoomdeskError) -> "BookingFlow":
        """Rejected flows return straight to draft (or editing) with the reason kept."""
        self._move(BookingState.REJECTED)
        self.rejection = reason
        if self.editing:
            self.state = BookingState.EDITING
        else:
            self._move(BookingState.DRAFT)
        return self

    def edit(self) -> "BookingFlow":
        self._move(BookingState.EDITING)
        self.editing = True
        return self

    def cancel(self) -> "BookingFlow":
        return self._move(BookingState.CANCELED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "booking_id": self.booking_id,
            "rejection": self.rejection.to_dict() if self.rejection else None,
        }
