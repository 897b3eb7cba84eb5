"""
Rollout Service.

The surface the rest of the application calls: plan calculation, session
generation and progress snapshots, wired to the repository protocols.
"""

import logging
from datetime import date as date_type
from typing import Dict, Iterable, List, Optional

from models import GroupSchedule, ProgressSnapshot, RolloutPlan
from .calendar_math import HolidayCalendar, HolidayPredicate
from .config import RolloutSettings, get_settings
from .errors import DriftWarning, PlanNotFoundError
from .expander import SessionExpander, TemplateLike
from .planner import RolloutPlanCalculator
from .reconciler import ClassificationPolicy, ProgressReconciler
from .repositories import AssessmentFactSource, CurriculumSource, PlanRepository, SessionRepository
from .state import ExpansionResult

logger = logging.getLogger(__name__)


class RolloutService:
    """
    Orchestrates the calculator, expander and reconciler.
    Callers serialize plan/session mutation per group.
    """

    def __init__(
        self,
        plans: PlanRepository,
        sessions: SessionRepository,
        facts: AssessmentFactSource,
        curriculum: CurriculumSource,
        settings: Optional[RolloutSettings] = None,
        holidays: Optional[HolidayPredicate] = None
    ):
        self.plans = plans
        self.sessions = sessions
        self.facts = facts
        self.curriculum = curriculum
        self.settings = settings or get_settings()

        if holidays is None and self.settings.year_end_closure:
            holidays = HolidayCalendar(include_year_end_closure=True)
        self.holidays = holidays

        self.calculator = RolloutPlanCalculator(
            days_per_credit=self.settings.days_per_credit,
            workplace_buffer_days=self.settings.workplace_buffer_days,
            induction_lead_days=self.settings.induction_lead_days,
            holidays=holidays,
        )
        self.expander = SessionExpander(holidays=holidays)
        self.reconciler = ProgressReconciler(ClassificationPolicy.from_settings(self.settings), holidays=holidays)

    # --- Plans ---

    def compute_rollout_plan(self, group_id: str, start_date: date_type) -> RolloutPlan:
        """Pure calculation; nothing is persisted."""
        return self.calculator.calculate(start_date, self.curriculum.current(), group_id=group_id)

    def schedule_rollout(self, group_id: str, start_date: date_type) -> RolloutPlan:
        """Compute and persist (replace) the group's plan."""
        plan = self.compute_rollout_plan(group_id, start_date)
        self.plans.upsert(group_id, plan)
        return plan

    def get_plan(self, group_id: str) -> RolloutPlan:
        plan = self.plans.get(group_id)
        if plan is None:
            raise PlanNotFoundError(group_id)
        return plan

    def check_drift(self, group_id: str) -> List[DriftWarning]:
        return self.calculator.detect_drift(self.get_plan(group_id), self.curriculum.current())

    # --- Sessions ---

    def generate_sessions(
        self,
        group_id: str,
        template: TemplateLike,
        schedule: Optional[GroupSchedule] = None
    ) -> ExpansionResult:
        """
        New sessions for the group's plan. Only the delta is returned; slots the
        group already holds are skipped and other groups' slots are reported.
        """
        plan = self.get_plan(group_id)
        date_range = (plan.start_date, plan.end_date)
        return self.expander.expand_plan(
            group_id,
            plan,
            template,
            existing_keys=self.sessions.existing_keys(group_id, date_range),
            bookings=self.sessions.bookings(date_range),
            schedule=schedule,
        )

    def commit_sessions(self, result: ExpansionResult) -> int:
        inserted = self.sessions.insert_many(result.sessions)
        logger.info(f"Committed {inserted} sessions for '{result.group_id}'")
        return inserted

    # --- Progress ---

    def get_progress_snapshot(
        self,
        student_id: str,
        group_id: str,
        as_of: Optional[date_type] = None,
        reference_start: Optional[date_type] = None
    ) -> ProgressSnapshot:
        return self.reconciler.reconcile(
            self.get_plan(group_id),
            self.curriculum.current(),
            self.facts.facts_for(student_id),
            as_of or date_type.today(),
            reference_start=reference_start,
            student_id=student_id,
        )

    def reconcile_group(
        self,
        student_ids: Iterable[str],
        group_id: str,
        as_of: Optional[date_type] = None,
        reference_starts: Optional[Dict[str, date_type]] = None
    ) -> List[ProgressSnapshot]:
        plan = self.get_plan(group_id)
        as_of = as_of or date_type.today()
        facts = {sid: self.facts.facts_for(sid) for sid in student_ids}
        return self.reconciler.reconcile_many(plan, self.curriculum.current(), facts, as_of, reference_starts)
