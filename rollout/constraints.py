"""
Hard Constraint Validation for session expansion.

This module answers the binary question: "Can Group X meet at Slot Y?"
A slot is a (date, start time, venue) triple, and one venue holds one group
at a time.
"""

from datetime import date as date_type, time as time_type
from typing import Dict, Iterable, Optional, Set
from dataclasses import dataclass

from models import Session, SlotKey


@dataclass(frozen=True)
class SessionConflict:
    """Detailed reason a candidate session was not emitted."""
    date: date_type
    start_time: time_type
    venue: str
    group_id: str           # group the expander was generating for
    booked_group_id: str    # group already holding the slot

    @property
    def groups(self):
        return (self.group_id, self.booked_group_id)

    def describe(self) -> str:
        return (
            f"{self.venue} on {self.date.isoformat()} at {self.start_time:%H:%M} "
            f"is booked by {self.booked_group_id}; cannot schedule {self.group_id}"
        )


class ConflictChecker:
    """
    Tracks which slots are already taken while an expansion runs.
    Seeded from the repository; updated as sessions are accepted.
    """

    ACCEPT = "accept"
    EXISTING = "existing"
    CONFLICT = "conflict"

    def __init__(self, group_id: str, existing_keys: Iterable[SlotKey], bookings: Optional[Dict[SlotKey, str]] = None):
        self.group_id = group_id
        # Slots this group already holds (idempotent re-run)
        self.own_slots: Set[SlotKey] = set(existing_keys)
        # Slot -> group for every other booking on record
        self.bookings: Dict[SlotKey, str] = dict(bookings or {})

    def check(self, session: Session) -> str:
        slot = session.slot
        if slot in self.own_slots:
            return self.EXISTING
        holder = self.bookings.get(slot)
        if holder is not None and holder != self.group_id:
            return self.CONFLICT
        if holder == self.group_id:
            # Booking recorded for this group but not in existing_keys; still a duplicate.
            return self.EXISTING
        return self.ACCEPT

    def conflict_for(self, session: Session) -> SessionConflict:
        return SessionConflict(
            date=session.date,
            start_time=session.start_time,
            venue=session.venue,
            group_id=self.group_id,
            booked_group_id=self.bookings[session.slot],
        )

    def book(self, session: Session) -> None:
        self.own_slots.add(session.slot)
        self.bookings[session.slot] = self.group_id
