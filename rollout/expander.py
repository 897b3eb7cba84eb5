"""
The Session Expander.

Turns a weekly template (or an explicit cadence) into concrete dated class
sessions, bounded by the plan's module windows.
Regenerating the same range is always safe: slots already on record are
skipped and slots held by other groups are reported as conflicts.
"""

import logging
from datetime import date as date_type
from typing import Dict, Iterable, Iterator, Optional, Union

from models import (
    Cadence,
    GroupSchedule,
    RolloutPlan,
    ScheduleTemplate,
    Session,
    SlotKey,
)
from .calendar_math import HolidayPredicate, is_working_day, iter_days
from .constraints import ConflictChecker
from .errors import ValidationError
from .state import ExpansionResult

logger = logging.getLogger(__name__)

TemplateLike = Union[ScheduleTemplate, Cadence]


def as_template(template: TemplateLike) -> ScheduleTemplate:
    if isinstance(template, Cadence):
        return template.to_template()
    return template


class SessionExpander:
    """
    Deterministic session generator. No randomness, no stored results.
    """

    WORKPLACE_NOTE = "Workplace activity"

    def __init__(self, holidays: Optional[HolidayPredicate] = None):
        self.holidays = holidays

    def iter_sessions(
        self,
        group_id: str,
        window_start: date_type,
        window_end: date_type,
        template: TemplateLike,
        module_label: str = ""
    ) -> Iterator[Session]:
        """
        Lazily yield every candidate session in [window_start, window_end].
        Calling again restarts from window_start.
        """
        template = as_template(template)
        for day in iter_days(window_start, window_end):
            if not is_working_day(day, self.holidays):
                continue
            for entry in template.entries_for(day.weekday()):
                yield Session(
                    group_id=group_id,
                    date=day,
                    start_time=entry.start_time,
                    end_time=entry.end_time,
                    venue=entry.venue,
                    module_label=module_label,
                    activity_kind=entry.activity_kind,
                )

    def expand(
        self,
        group_id: str,
        window_start: date_type,
        window_end: date_type,
        template: TemplateLike,
        existing_keys: Iterable[SlotKey],
        bookings: Optional[Dict[SlotKey, str]] = None,
        module_label: str = ""
    ) -> ExpansionResult:
        """
        Expand one window into the sessions that still need inserting.
        """
        checker = ConflictChecker(group_id, existing_keys, bookings)
        return self._expand_window(group_id, window_start, window_end, template, checker, module_label)

    def _expand_window(
        self,
        group_id: str,
        window_start: date_type,
        window_end: date_type,
        template: TemplateLike,
        checker: ConflictChecker,
        module_label: str = ""
    ) -> ExpansionResult:
        if window_end < window_start:
            raise ValidationError("window_end", f"{window_end} is before window_start {window_start}")

        result = ExpansionResult(group_id)

        for session in self.iter_sessions(group_id, window_start, window_end, template, module_label):
            verdict = checker.check(session)
            if verdict == ConflictChecker.EXISTING:
                result.record_existing()
            elif verdict == ConflictChecker.CONFLICT:
                conflict = checker.conflict_for(session)
                logger.warning(f"Conflict: {conflict.describe()}")
                result.record_conflict(conflict)
            else:
                checker.book(session)
                result.add_session(session)

        return result

    def expand_plan(
        self,
        group_id: str,
        plan: RolloutPlan,
        template: TemplateLike,
        existing_keys: Iterable[SlotKey],
        bookings: Optional[Dict[SlotKey, str]] = None,
        schedule: Optional[GroupSchedule] = None
    ) -> ExpansionResult:
        """
        One bounded expansion per module, concatenated in module order.
        Each module is bounded by [module start, workplace-activity end].
        """
        template = as_template(template)
        checker = ConflictChecker(group_id, existing_keys, bookings)
        result = ExpansionResult(group_id)

        for module in plan.modules:
            start, end = module.start_date, module.workplace_activity_end
            if schedule is not None:
                start = max(start, schedule.start_date)
                if schedule.end_date is not None:
                    end = min(end, schedule.end_date)
                if end < start:
                    logger.debug(f"{module.label} lies outside schedule {schedule.template_id}; skipped")
                    continue

            module_result = self._expand_window(group_id, start, end, template, checker, module.label)
            for session in module_result.sessions:
                if module.in_workplace_activity(session.date):
                    session.notes = self.WORKPLACE_NOTE
            result.merge(module_result)

        logger.info(
            f"Expanded {len(result.sessions)} sessions for '{group_id}' "
            f"({result.skipped_existing} already on record, {len(result.conflicts)} conflicts)"
        )
        return result
