"""
Progress Reconciliation.

Compares what a learner has actually earned with what the rollout plan says
they should have earned by a given date, and classifies the learner.
Nothing here is stored: every snapshot is re-derived from the current plan,
curriculum and assessment facts.
"""

import logging
from dataclasses import dataclass
from datetime import date as date_type
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from models import (
    AssessmentFact,
    Classification,
    CurriculumDefinition,
    ModuleProgress,
    ProgressSnapshot,
    RolloutPlan,
    Severity,
)
from .calendar_math import HolidayPredicate, working_days_between
from .errors import StaleDataWarning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationPolicy:
    """Thresholds for the ordered classification rules."""
    stalled_no_activity_days: int = 30
    stalled_medium_days: int = 30
    stalled_high_days: int = 60
    onboarding_days: int = 60
    at_risk_medium_gap: float = 10
    at_risk_high_gap: float = 20
    behind_gap: float = 5

    @classmethod
    def from_settings(cls, settings) -> "ClassificationPolicy":
        return cls(
            stalled_no_activity_days=settings.stalled_no_activity_days,
            stalled_medium_days=settings.stalled_medium_days,
            stalled_high_days=settings.stalled_high_days,
            onboarding_days=settings.onboarding_days,
            at_risk_medium_gap=settings.at_risk_medium_gap,
            at_risk_high_gap=settings.at_risk_high_gap,
            behind_gap=settings.behind_gap,
        )


@dataclass(frozen=True)
class Verdict:
    classification: Classification
    severity: Severity
    message: str
    days_stalled: Optional[int] = None


def classify(
    earned_credits: float,
    expected_credits: float,
    days_enrolled: int,
    days_since_last_competent: Optional[int],
    policy: ClassificationPolicy = ClassificationPolicy()
) -> Verdict:
    """
    Ordered rules, first match wins:
    1. STALLED  - no competent result for too long.
    2. AT_RISK  - credit gap too wide, once onboarding is over.
    3. BEHIND   - a smaller but real credit gap.
    4. ON_TRACK
    """
    # 1. Stalled
    if days_since_last_competent is None:
        if days_enrolled > policy.stalled_no_activity_days:
            return Verdict(
                Classification.STALLED, Severity.HIGH,
                f"No assessments completed in {days_enrolled} days", days_enrolled
            )
    elif days_since_last_competent > policy.stalled_high_days:
        return Verdict(
            Classification.STALLED, Severity.HIGH,
            f"No progress in {days_since_last_competent} days", days_since_last_competent
        )
    elif days_since_last_competent > policy.stalled_medium_days:
        return Verdict(
            Classification.STALLED, Severity.MEDIUM,
            f"No progress in {days_since_last_competent} days", days_since_last_competent
        )

    gap = expected_credits - earned_credits

    # 2. At risk (suppressed during onboarding)
    if days_enrolled >= policy.onboarding_days:
        if gap > policy.at_risk_high_gap:
            return Verdict(Classification.AT_RISK, Severity.HIGH, f"{gap:g} credits behind schedule")
        if gap > policy.at_risk_medium_gap:
            return Verdict(Classification.AT_RISK, Severity.MEDIUM, f"{gap:g} credits behind schedule")

    # 3. Behind
    if gap >= policy.behind_gap:
        return Verdict(Classification.BEHIND, Severity.LOW, f"{gap:g} credits behind schedule")

    return Verdict(Classification.ON_TRACK, Severity.LOW, "On track")


class ProgressReconciler:
    """
    Pure reconciliation of one learner against one plan.
    """

    def __init__(
        self,
        policy: ClassificationPolicy = ClassificationPolicy(),
        holidays: Optional[HolidayPredicate] = None
    ):
        self.policy = policy
        self.holidays = holidays

    def reconcile(
        self,
        plan: RolloutPlan,
        curriculum: CurriculumDefinition,
        facts: Sequence[AssessmentFact],
        as_of: date_type,
        reference_start: Optional[date_type] = None,
        student_id: Optional[str] = None
    ) -> ProgressSnapshot:
        """
        Build the progress snapshot for one learner on as_of.
        reference_start is the learner's enrollment date; the plan start when omitted.
        """
        facts = list(facts)
        student_id = student_id or (facts[0].student_id if facts else "")
        reference_start = reference_start or plan.start_date
        stale = self.find_stale_data(student_id, plan, facts, as_of, reference_start)

        credit_map = curriculum.credit_map()
        passed, last_competent = self._passed_units(facts, as_of, credit_map, student_id, stale)

        earned = sum(credit_map[uid] for uid in passed)
        earned = max(0, min(earned, curriculum.required_credits))
        # earned and expected share the required-credit ceiling
        expected = round(min(self.expected_credits(plan, as_of, credit_map), curriculum.required_credits), 2)

        days_enrolled = max(0, (as_of - reference_start).days)
        days_since_last = (as_of - last_competent).days if last_competent else None
        verdict = classify(earned, expected, days_enrolled, days_since_last, self.policy)

        module_progress = self._module_progress(curriculum, passed)
        actual_modules = [m.module_number for m in module_progress if m.units_passed]
        projected = plan.module_on(as_of)

        for w in stale:
            logger.warning(str(w))

        return ProgressSnapshot(
            student_id=student_id,
            as_of=as_of,
            earned_credits=earned,
            unique_units_passed=len(passed),
            expected_credits=expected,
            credit_gap=round(expected - earned, 2),
            overall_progress=round(earned / curriculum.required_credits * 100, 1) if curriculum.required_credits else 0.0,
            classification=verdict.classification,
            severity=verdict.severity,
            message=verdict.message,
            days_stalled=verdict.days_stalled,
            projected_module=projected.module_number if projected else None,
            actual_module=max(actual_modules) if actual_modules else None,
            module_progress=module_progress,
            warnings=[w.reason for w in stale],
        )

    def reconcile_many(
        self,
        plan: RolloutPlan,
        curriculum: CurriculumDefinition,
        facts_by_student: Mapping[str, Sequence[AssessmentFact]],
        as_of: date_type,
        reference_starts: Optional[Mapping[str, date_type]] = None
    ) -> List[ProgressSnapshot]:
        """Independent reconciliation per learner; order follows facts_by_student."""
        reference_starts = reference_starts or {}
        return [
            self.reconcile(plan, curriculum, facts, as_of, reference_starts.get(sid), student_id=sid)
            for sid, facts in facts_by_student.items()
        ]

    def expected_credits(self, plan: RolloutPlan, as_of: date_type, credit_map: Optional[Dict[str, int]] = None) -> float:
        """
        Credits the plan expects to be earned by as_of, interpolating linearly
        through the unit standard in progress.
        """
        credit_map = credit_map or {}
        windows = list(plan.iter_unit_windows())

        def weight(w) -> int:
            return credit_map.get(w.unit_standard_id, w.credits)

        if as_of < plan.start_date:
            return 0.0
        if as_of > plan.end_date:
            return float(sum(weight(w) for w in windows))

        expected = 0.0
        for w in windows:
            if w.end_date <= as_of:
                expected += weight(w)
            elif w.start_date <= as_of:
                elapsed = working_days_between(w.start_date, as_of, self.holidays)
                expected += weight(w) * min(1.0, elapsed / w.duration_days)
        return expected

    def find_stale_data(
        self,
        student_id: str,
        plan: RolloutPlan,
        facts: Iterable[AssessmentFact],
        as_of: date_type,
        reference_start: Optional[date_type] = None
    ) -> List[StaleDataWarning]:
        """Inputs that fall outside the plan's timeline. Informational only."""
        warnings = []
        if as_of < plan.start_date:
            warnings.append(StaleDataWarning(
                student_id, f"as_of {as_of} is before the plan start {plan.start_date}", as_of
            ))
        if reference_start and reference_start > as_of:
            warnings.append(StaleDataWarning(
                student_id, f"reference start {reference_start} is after as_of {as_of}", reference_start
            ))
        for fact in facts:
            if fact.assessed_date > as_of:
                warnings.append(StaleDataWarning(
                    student_id,
                    f"assessment of {fact.unit_standard_id} on {fact.assessed_date} is after as_of {as_of}; ignored",
                    fact.assessed_date,
                ))
            elif not (plan.start_date <= fact.assessed_date <= plan.end_date):
                warnings.append(StaleDataWarning(
                    student_id,
                    f"assessment of {fact.unit_standard_id} on {fact.assessed_date} is outside the plan "
                    f"({plan.start_date} - {plan.end_date})",
                    fact.assessed_date,
                ))
        return warnings

    # --- Helpers ---

    def _passed_units(
        self,
        facts: Iterable[AssessmentFact],
        as_of: date_type,
        credit_map: Dict[str, int],
        student_id: str,
        stale: List[StaleDataWarning]
    ) -> Tuple[Set[str], Optional[date_type]]:
        """Unit standards with at least one competent result, and the latest such date."""
        passed: Set[str] = set()
        last_competent: Optional[date_type] = None
        unknown: Set[str] = set()

        for fact in facts:
            if not fact.is_competent or fact.assessed_date > as_of:
                continue
            if fact.unit_standard_id not in credit_map:
                unknown.add(fact.unit_standard_id)
                continue
            passed.add(fact.unit_standard_id)
            if last_competent is None or fact.assessed_date > last_competent:
                last_competent = fact.assessed_date

        for uid in sorted(unknown):
            stale.append(StaleDataWarning(student_id, f"unit standard {uid} is not in the curriculum; ignored"))
        return passed, last_competent

    @staticmethod
    def _module_progress(curriculum: CurriculumDefinition, passed: Set[str]) -> List[ModuleProgress]:
        rows = []
        for module in curriculum.modules:
            done = [us for us in module.unit_standards if us.id in passed]
            rows.append(ModuleProgress(
                module_number=module.module_number,
                name=module.name,
                earned_credits=sum(us.credits for us in done),
                total_credits=module.credits,
                units_passed=len(done),
                total_units=len(module.unit_standards),
            ))
        return rows
