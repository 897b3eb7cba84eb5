"""
Repository contracts the engine consumes, plus in-memory implementations.

The engine never talks to a database directly. Whatever backs these
protocols must serialize plan/session writes per group.
"""

import logging
from collections import defaultdict
from datetime import date as date_type
from typing import Dict, Iterable, List, Optional, Protocol, Set, Tuple

from models import AssessmentFact, CurriculumDefinition, RolloutPlan, Session, SessionKey, SlotKey
from .constraints import SessionConflict
from .errors import ConflictError

logger = logging.getLogger(__name__)

DateRange = Tuple[date_type, date_type]


class PlanRepository(Protocol):
    def get(self, group_id: str) -> Optional[RolloutPlan]: ...

    def upsert(self, group_id: str, plan: RolloutPlan) -> None: ...


class SessionRepository(Protocol):
    def existing_keys(self, group_id: str, date_range: DateRange) -> Set[SlotKey]: ...

    def bookings(self, date_range: DateRange) -> Dict[SlotKey, str]: ...

    def insert_many(self, sessions: Iterable[Session]) -> int: ...


class AssessmentFactSource(Protocol):
    def facts_for(self, student_id: str) -> List[AssessmentFact]: ...


class CurriculumSource(Protocol):
    def current(self) -> CurriculumDefinition: ...


class InMemoryPlanRepository:
    def __init__(self):
        self.plans: Dict[str, RolloutPlan] = {}

    def get(self, group_id: str) -> Optional[RolloutPlan]:
        return self.plans.get(group_id)

    def upsert(self, group_id: str, plan: RolloutPlan) -> None:
        # Wholesale replacement; a copy so callers cannot mutate stored state
        self.plans[group_id] = plan.model_copy(deep=True)


class InMemorySessionRepository:
    """Unique on (group_id, date, start_time, venue) and on (date, start_time, venue)."""

    def __init__(self):
        self.sessions: Dict[SessionKey, Session] = {}

    def existing_keys(self, group_id: str, date_range: DateRange) -> Set[SlotKey]:
        start, end = date_range
        return {
            s.slot for s in self.sessions.values()
            if s.group_id == group_id and start <= s.date <= end
        }

    def bookings(self, date_range: DateRange) -> Dict[SlotKey, str]:
        start, end = date_range
        return {
            s.slot: s.group_id for s in self.sessions.values()
            if start <= s.date <= end
        }

    def insert_many(self, sessions: Iterable[Session]) -> int:
        """All-or-nothing insert. Any key or slot collision rejects the batch."""
        batch = list(sessions)
        taken = {s.slot: s.group_id for s in self.sessions.values()}
        conflicts = []
        for s in batch:
            holder = taken.get(s.slot)
            if holder is not None:
                conflicts.append(SessionConflict(
                    date=s.date,
                    start_time=s.start_time,
                    venue=s.venue,
                    group_id=s.group_id,
                    booked_group_id=holder,
                ))
            taken[s.slot] = s.group_id
        if conflicts:
            raise ConflictError(conflicts, f"{len(conflicts)} session(s) collide with existing bookings")

        for s in batch:
            self.sessions[s.key] = s
        logger.debug(f"Inserted {len(batch)} sessions")
        return len(batch)

    def for_group(self, group_id: str) -> List[Session]:
        return sorted(
            (s for s in self.sessions.values() if s.group_id == group_id),
            key=lambda s: (s.date, s.start_time, s.venue),
        )


class InMemoryAssessmentFactSource:
    def __init__(self, facts: Iterable[AssessmentFact] = ()):
        self.facts: Dict[str, List[AssessmentFact]] = defaultdict(list)
        for fact in facts:
            self.add(fact)

    def add(self, fact: AssessmentFact) -> None:
        self.facts[fact.student_id].append(fact)

    def facts_for(self, student_id: str) -> List[AssessmentFact]:
        return list(self.facts.get(student_id, []))


class StaticCurriculumSource:
    def __init__(self, curriculum: CurriculumDefinition):
        self.curriculum = curriculum

    def current(self) -> CurriculumDefinition:
        return self.curriculum
