"""
Curriculum and demo-data factory for the Rollout Scheduler.
STRATEGY: one built-in qualification (NVC Level 2), any other curriculum
loaded from JSON, plus deterministic demo templates and assessment facts.
"""

import json
import logging
from datetime import date, time, timedelta
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from models import (
    ActivityKind,
    AssessmentFact,
    AssessmentOutcome,
    AssessmentType,
    CurriculumDefinition,
    RolloutPlan,
    ScheduleTemplate,
    TemplateEntry,
)

logger = logging.getLogger(__name__)

# New Venture Creation (SMME) NQF Level 2: module -> [(code, title, credits)]
NVC_L2_MODULES = [
    ("Numeracy", [
        ("7480", "Demonstrate understanding of rational and irrational numbers and number systems", 2),
        ("9008", "Identify, describe, compare, classify, explore shape and motion in 2- and 3-dimensional shapes", 3),
        ("9007", "Work with a range of patterns and functions and solve problems", 5),
        ("7469", "Use mathematics to investigate and monitor the financial aspects of personal and community life", 3),
        ("9009", "Apply basic knowledge of statistics and probability to influence the use of data", 3),
    ]),
    ("HIV/AIDS & Communications", [
        ("13915", "Demonstrate knowledge and understanding of HIV/AIDS in a workplace", 4),
        ("8963", "Access and use information from texts", 5),
        ("8964", "Write for a defined context", 5),
        ("8962", "Maintain and adapt oral communication", 5),
        ("8967", "Use language and communication in occupational learning programmes", 5),
    ]),
    ("Market Requirements", [
        ("119673", "Identify and demonstrate entrepreneurial ideas and opportunities", 7),
        ("119669", "Match new venture opportunity to market needs", 6),
        ("119672", "Manage marketing and selling processes of a new venture", 7),
        ("114974", "Apply the basic skills of customer service", 2),
    ]),
    ("Business Sector & Industry", [
        ("119667", "Identify the composition of a selected new venture's industry/sector", 8),
        ("119712", "Tender for business or work in a selected new venture", 8),
        ("119671", "Administer contracts for a selected new venture", 10),
    ]),
    ("Financial Requirements", [
        ("119666", "Determine financial requirements of a new venture", 8),
        ("119670", "Produce a business plan for a new venture", 8),
        ("119674", "Manage finances of a new venture", 10),
    ]),
    ("Business Operations", [
        ("119668", "Manage business operations", 8),
        ("13932", "Prepare and process documents for financial and banking processes", 5),
        ("13929", "Co-ordinate meetings, minor events and travel arrangements", 3),
        ("13930", "Monitor and control the receiving and satisfaction of visitors", 4),
        ("114959", "Behave in a professional manner in a business environment", 4),
        ("113924", "Apply basic business ethics in a work environment", 2),
    ]),
]

NVC_L2_REQUIRED_CREDITS = 138


class CurriculumFactory:
    """Builds curricula and deterministic demo inputs."""

    @staticmethod
    def nvc_level2() -> CurriculumDefinition:
        return CurriculumDefinition(
            name="NVC: New Venture Creation (SMME) NQF Level 2",
            required_credits=NVC_L2_REQUIRED_CREDITS,
            modules=[
                {
                    "module_number": number,
                    "name": name,
                    "unit_standards": [
                        {"id": code, "title": title, "credits": credits}
                        for code, title, credits in standards
                    ],
                }
                for number, (name, standards) in enumerate(NVC_L2_MODULES, start=1)
            ],
        )

    @staticmethod
    def load(path: Union[str, Path]) -> CurriculumDefinition:
        """
        Load a curriculum from a JSON file. Accepts either the curriculum object
        itself or a {"curriculum": {...}} wrapper.
        """
        raw = Path(path).read_text(encoding="utf-8")
        data = json.loads(raw)
        if isinstance(data, dict) and isinstance(data.get("curriculum"), dict):
            data = data["curriculum"]
        try:
            curriculum = CurriculumDefinition.model_validate(data)
        except ValidationError:
            logger.error(f"Curriculum file {path} failed validation")
            raise
        logger.info(f"Loaded curriculum '{curriculum.name}' ({len(curriculum.modules)} modules) from {path}")
        return curriculum

    @staticmethod
    def demo_template(venue: str = "Lecture Room", template_id: str = "tpl_mon_wed") -> ScheduleTemplate:
        """Monday and Wednesday mornings in class, Thursday afternoon practical."""
        return ScheduleTemplate(
            id=template_id,
            name=f"{venue} Mon/Wed + Thu practical",
            entries=[
                TemplateEntry(weekday=0, start_time=time(9, 0), end_time=time(12, 0), venue=venue),
                TemplateEntry(weekday=2, start_time=time(9, 0), end_time=time(12, 0), venue=venue),
                TemplateEntry(
                    weekday=3, start_time=time(13, 0), end_time=time(16, 0),
                    venue="Computer Lab", activity_kind=ActivityKind.PRACTICAL
                ),
            ],
        )

    @staticmethod
    def demo_facts(
        student_id: str,
        plan: RolloutPlan,
        units_passed: int,
        retries: int = 0,
        lag_days: int = 2
    ) -> List[AssessmentFact]:
        """
        Competent results for the first units_passed unit standards of the plan,
        each dated lag_days after its summative date. retries adds that many
        extra NOT_YET_COMPETENT attempts before each pass.
        """
        facts = []
        for window in list(plan.iter_unit_windows())[:units_passed]:
            passed_on = window.summative_date + timedelta(days=lag_days)
            for attempt in range(retries):
                facts.append(AssessmentFact(
                    student_id=student_id,
                    unit_standard_id=window.unit_standard_id,
                    type=AssessmentType.FORMATIVE,
                    result=AssessmentOutcome.NOT_YET_COMPETENT,
                    assessed_date=passed_on - timedelta(days=retries - attempt),
                ))
            facts.append(AssessmentFact(
                student_id=student_id,
                unit_standard_id=window.unit_standard_id,
                type=AssessmentType.SUMMATIVE,
                result=AssessmentOutcome.COMPETENT,
                assessed_date=passed_on,
            ))
        return facts


class JsonCurriculumSource:
    """CurriculumSource backed by a JSON file, read once."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = path
        self._curriculum: Optional[CurriculumDefinition] = None

    def current(self) -> CurriculumDefinition:
        if self._curriculum is None:
            self._curriculum = (
                CurriculumFactory.load(self.path) if self.path else CurriculumFactory.nvc_level2()
            )
        return self._curriculum
