from datetime import date, time
from typing import List, Sequence

import pytest

from generators.curriculum_factory import CurriculumFactory
from models import CurriculumDefinition, ScheduleTemplate, TemplateEntry
from rollout import RolloutPlanCalculator

SATURDAY = date(2025, 11, 29)
MONDAY = date(2025, 12, 1)


def make_curriculum(modules: Sequence[Sequence[int]], required_credits=None) -> CurriculumDefinition:
    """One module per entry, one unit standard per credit value."""
    return CurriculumDefinition(
        name="Test Qualification",
        required_credits=required_credits,
        modules=[
            {
                "module_number": m,
                "name": f"Module {m}",
                "unit_standards": [
                    {"id": f"US{m}{u}", "title": f"Unit {m}.{u}", "credits": credits}
                    for u, credits in enumerate(unit_credits, start=1)
                ],
            }
            for m, unit_credits in enumerate(modules, start=1)
        ],
    )


def monday_template(venue: str = "Lecture Room") -> ScheduleTemplate:
    return ScheduleTemplate(
        id="tpl_monday",
        name="Monday morning",
        entries=[TemplateEntry(weekday=0, start_time=time(9, 0), end_time=time(12, 0), venue=venue)],
    )


@pytest.fixture
def nvc_curriculum() -> CurriculumDefinition:
    return CurriculumFactory.nvc_level2()


@pytest.fixture
def calculator() -> RolloutPlanCalculator:
    return RolloutPlanCalculator()


@pytest.fixture
def nvc_plan(calculator, nvc_curriculum):
    return calculator.calculate(MONDAY, nvc_curriculum, group_id="grp_alpha")


def unit_ids(plan) -> List[str]:
    return [w.unit_standard_id for w in plan.iter_unit_windows()]
