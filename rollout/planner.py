"""
The Rollout Plan Calculator.

Turns one start date and the fixed curriculum into a full calendar of dated
milestones. The calculation walks the curriculum with a single cursor date:
1. Each unit standard gets ceil(credits * days_per_credit) working days.
2. Each module is followed by a fixed workplace-activity buffer.
3. The next module starts on the working day after that buffer.

Same start date + same curriculum always yields an identical plan, which is
what drift detection relies on.
"""

import json
import logging
from datetime import date as date_type
from typing import List, Optional, Any

from pydantic import ValidationError as ModelValidationError

from models import CurriculumDefinition, RolloutPlan, ModuleWindow, UnitStandardWindow
from .calendar_math import (
    DAYS_PER_CREDIT,
    HolidayPredicate,
    add_working_days,
    credits_to_duration_days,
)
from .errors import ValidationError, DriftWarning

logger = logging.getLogger(__name__)

WORKPLACE_BUFFER_DAYS = 5
INDUCTION_LEAD_DAYS = 3


class RolloutPlanCalculator:
    """
    Pure plan calculator. Holds configuration only, never results.
    """

    def __init__(
        self,
        days_per_credit: float = DAYS_PER_CREDIT,
        workplace_buffer_days: int = WORKPLACE_BUFFER_DAYS,
        induction_lead_days: int = INDUCTION_LEAD_DAYS,
        holidays: Optional[HolidayPredicate] = None
    ):
        if days_per_credit <= 0:
            raise ValidationError("days_per_credit", "must be positive")
        if workplace_buffer_days < 1:
            raise ValidationError("workplace_buffer_days", "must be at least 1 working day")
        if induction_lead_days < 0:
            raise ValidationError("induction_lead_days", "cannot be negative")

        self.days_per_credit = days_per_credit
        self.workplace_buffer_days = workplace_buffer_days
        self.induction_lead_days = induction_lead_days
        self.holidays = holidays

    def calculate(self, start_date: date_type, curriculum: CurriculumDefinition, group_id: str = "") -> RolloutPlan:
        """
        Compute the full rollout plan for a group starting on start_date.
        """
        self.validate_curriculum(curriculum)

        start = add_working_days(start_date, 0, self.holidays)
        cursor = start
        modules: List[ModuleWindow] = []

        for module in curriculum.modules:
            windows: List[UnitStandardWindow] = []

            for us in module.unit_standards:
                duration = credits_to_duration_days(us.credits, self.days_per_credit)
                unit_start = cursor
                unit_end = add_working_days(unit_start, duration - 1, self.holidays)

                windows.append(UnitStandardWindow(
                    unit_standard_id=us.id,
                    title=us.title,
                    credits=us.credits,
                    start_date=unit_start,
                    end_date=unit_end,
                    summative_date=unit_end,
                    assessing_date=add_working_days(unit_end, 1, self.holidays),
                    duration_days=duration,
                ))
                cursor = add_working_days(unit_end, 1, self.holidays)

            workplace_start = cursor
            workplace_end = add_working_days(workplace_start, self.workplace_buffer_days - 1, self.holidays)
            cursor = add_working_days(workplace_end, 1, self.holidays)

            modules.append(ModuleWindow(
                module_number=module.module_number,
                name=module.name,
                credits=module.credits,
                start_date=windows[0].start_date,
                end_date=workplace_end,
                workplace_activity_start=workplace_start,
                workplace_activity_end=workplace_end,
                summative_date=windows[-1].summative_date,
                assessing_date=windows[-1].assessing_date,
                unit_standards=windows,
            ))
            logger.debug(
                f"Module {module.module_number} ({module.name}): "
                f"{windows[0].start_date} -> {workplace_end}, {len(windows)} unit standards"
            )

        plan = RolloutPlan(
            group_id=group_id,
            requested_start_date=start_date,
            start_date=start,
            induction_date=add_working_days(start, -self.induction_lead_days, self.holidays),
            end_date=modules[-1].workplace_activity_end,
            total_credits=curriculum.total_credits,
            required_credits=curriculum.required_credits,
            modules=modules,
        )
        logger.info(f"Calculated rollout plan for '{group_id}': {plan.start_date} -> {plan.end_date}")
        return plan

    @staticmethod
    def validate_curriculum(curriculum: CurriculumDefinition) -> None:
        """Reject curricula that cannot be laid out on a calendar."""
        if not curriculum.modules:
            raise ValidationError("modules", "curriculum must contain at least one module")

        for i, module in enumerate(curriculum.modules):
            if not module.unit_standards:
                raise ValidationError(
                    f"modules[{i}].unit_standards",
                    f"module {module.module_number} ({module.name}) has no unit standards"
                )
            for j, us in enumerate(module.unit_standards):
                if us.credits <= 0:
                    raise ValidationError(
                        f"modules[{i}].unit_standards[{j}].credits",
                        f"unit standard {us.id} has {us.credits} credits; must be positive"
                    )

    # --- Drift Detection ---

    def detect_drift(self, persisted: RolloutPlan, curriculum: CurriculumDefinition) -> List[DriftWarning]:
        """
        Compare a persisted plan with what its own requested start date produces
        against the current curriculum. Reports only; nothing is corrected.
        """
        expected = self.calculate(persisted.requested_start_date, curriculum, group_id=persisted.group_id)
        warnings = compare_plans(persisted, expected)
        for w in warnings:
            logger.warning(str(w))
        return warnings

    def detect_cache_divergence(self, plan: RolloutPlan, cached_json: str) -> List[DriftWarning]:
        """
        Compare a JSON copy of a plan (e.g. one embedded in a notes field)
        with the canonical plan. The canonical plan always wins.
        """
        try:
            cached = RolloutPlan.model_validate_json(cached_json)
        except (ModelValidationError, json.JSONDecodeError) as exc:
            warning = DriftWarning(plan.group_id, "cache", "unparseable", type(exc).__name__)
            logger.warning(str(warning))
            return [warning]

        warnings = compare_plans(cached, plan)
        for w in warnings:
            logger.warning(f"Cached copy diverges: {w}")
        return warnings


_PLAN_FIELDS = ("start_date", "induction_date", "end_date", "total_credits", "required_credits")
_MODULE_FIELDS = (
    "name", "credits", "start_date", "end_date",
    "workplace_activity_start", "workplace_activity_end",
    "summative_date", "assessing_date",
)
_UNIT_FIELDS = (
    "unit_standard_id", "credits", "start_date", "end_date",
    "summative_date", "assessing_date", "duration_days",
)


def _diff(group_id: str, prefix: str, left: Any, right: Any, fields) -> List[DriftWarning]:
    return [
        DriftWarning(group_id, f"{prefix}{name}", getattr(left, name), getattr(right, name))
        for name in fields
        if getattr(left, name) != getattr(right, name)
    ]


def compare_plans(persisted: RolloutPlan, expected: RolloutPlan) -> List[DriftWarning]:
    """Field-by-field differences between two plans, in plan order."""
    group_id = persisted.group_id or expected.group_id
    warnings = _diff(group_id, "", persisted, expected, _PLAN_FIELDS)

    if len(persisted.modules) != len(expected.modules):
        warnings.append(DriftWarning(group_id, "modules", len(persisted.modules), len(expected.modules)))

    for i, (pm, em) in enumerate(zip(persisted.modules, expected.modules)):
        warnings.extend(_diff(group_id, f"modules[{i}].", pm, em, _MODULE_FIELDS))

        if len(pm.unit_standards) != len(em.unit_standards):
            warnings.append(DriftWarning(
                group_id, f"modules[{i}].unit_standards", len(pm.unit_standards), len(em.unit_standards)
            ))
        for j, (pu, eu) in enumerate(zip(pm.unit_standards, em.unit_standards)):
            warnings.extend(_diff(group_id, f"modules[{i}].unit_standards[{j}].", pu, eu, _UNIT_FIELDS))

    return warnings
