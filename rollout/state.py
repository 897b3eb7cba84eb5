"""
Expansion Result.

Collects what one (or several merged) expansion runs produced:
1. New sessions to insert.
2. Conflicts with other groups' bookings.
3. How many candidates were already on record.
"""

from datetime import date as date_type
from typing import List, Dict, Any, Optional, Tuple
from collections import defaultdict

from models import Session
from .constraints import SessionConflict
from .errors import ConflictError


class ExpansionResult:
    """
    Outcome of session expansion. Partial success is the norm: valid sessions
    are kept even when some candidates conflicted.
    """

    def __init__(self, group_id: str = ""):
        self.group_id = group_id
        self.sessions: List[Session] = []
        self.conflicts: List[SessionConflict] = []
        self.skipped_existing: int = 0

    def add_session(self, session: Session) -> None:
        self.sessions.append(session)

    def record_conflict(self, conflict: SessionConflict) -> None:
        self.conflicts.append(conflict)

    def record_existing(self) -> None:
        self.skipped_existing += 1

    def merge(self, other: "ExpansionResult") -> "ExpansionResult":
        self.sessions.extend(other.sessions)
        self.conflicts.extend(other.conflicts)
        self.skipped_existing += other.skipped_existing
        return self

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def raise_for_conflicts(self) -> None:
        if self.conflicts:
            raise ConflictError(self.conflicts)

    # --- Query Methods ---

    def get_sessions_for_date(self, day: date_type) -> List[Session]:
        return [s for s in self.sessions if s.date == day]

    def get_date_range(self) -> Optional[Tuple[date_type, date_type]]:
        if not self.sessions:
            return None
        dates = [s.date for s in self.sessions]
        return min(dates), max(dates)

    # --- Reporting Methods ---

    def get_statistics(self) -> Dict[str, Any]:
        """Summary numbers for the run report."""
        per_module: Dict[str, int] = defaultdict(int)
        per_venue: Dict[str, int] = defaultdict(int)
        for s in self.sessions:
            per_module[s.module_label] += 1
            per_venue[s.venue] += 1

        return {
            "group_id": self.group_id,
            "total_sessions": len(self.sessions),
            "skipped_existing": self.skipped_existing,
            "conflict_count": len(self.conflicts),
            "sessions_per_module": dict(per_module),
            "sessions_per_venue": dict(per_venue),
            "date_range": self.get_date_range(),
        }

    def get_conflict_report(self) -> List[Dict]:
        """One row per conflict, ordered by date then time."""
        report = [
            {
                "date": c.date.isoformat(),
                "start_time": c.start_time.strftime("%H:%M"),
                "venue": c.venue,
                "groups": list(c.groups),
                "reason": c.describe(),
            }
            for c in self.conflicts
        ]
        report.sort(key=lambda x: (x["date"], x["start_time"], x["venue"]))
        return report
