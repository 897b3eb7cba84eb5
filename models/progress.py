"""
Assessment and progress data models.

AssessmentFact is read-only input owned by the assessment system;
ProgressSnapshot is a derived projection that is never persisted by the core.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict
from datetime import date


class AssessmentType(str, Enum):
    FORMATIVE = "Formative"
    SUMMATIVE = "Summative"
    WORKPLACE = "Workplace"


class AssessmentOutcome(str, Enum):
    """Result recorded by the assessor."""
    COMPETENT = "Competent"
    NOT_YET_COMPETENT = "Not Yet Competent"
    PENDING = "Pending"


class AssessmentFact(BaseModel):
    """One recorded assessment of a learner against a unit standard."""
    model_config = ConfigDict(frozen=True)

    student_id: str
    unit_standard_id: str
    type: AssessmentType = Field(default=AssessmentType.FORMATIVE)
    result: AssessmentOutcome
    assessed_date: date

    @property
    def is_competent(self) -> bool:
        return self.result == AssessmentOutcome.COMPETENT


class Classification(str, Enum):
    ON_TRACK = "On Track"
    BEHIND = "Behind"
    AT_RISK = "At Risk"
    STALLED = "Stalled"


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ModuleProgress(BaseModel):
    """Earned versus available credits for one module."""
    module_number: int
    name: str
    earned_credits: int = Field(ge=0)
    total_credits: int = Field(ge=0)
    units_passed: int = Field(ge=0)
    total_units: int = Field(ge=0)

    @property
    def is_complete(self) -> bool:
        return self.units_passed == self.total_units


class ProgressSnapshot(BaseModel):
    """
    Reconciled view of one learner at one date.
    A pure function of plan, curriculum and assessment facts.
    """

    student_id: str
    as_of: date

    # --- Credits ---
    earned_credits: int = Field(ge=0)
    unique_units_passed: int = Field(ge=0)
    expected_credits: float = Field(ge=0)
    credit_gap: float = Field(description="expected_credits - earned_credits (negative when ahead)")
    overall_progress: float = Field(ge=0, description="Percentage of required credits earned")

    # --- Classification ---
    classification: Classification
    severity: Severity
    message: str = Field(default="")
    days_stalled: Optional[int] = Field(default=None)

    # --- Position in the plan ---
    projected_module: Optional[int] = Field(default=None, description="Module the plan expects on as_of")
    actual_module: Optional[int] = Field(default=None, description="Highest module with a passed unit standard")
    module_progress: List[ModuleProgress] = Field(default_factory=list)

    warnings: List[str] = Field(default_factory=list, description="Stale-data notes")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "student_id": "stu_0042",
            "as_of": "2026-03-02",
            "earned_credits": 10,
            "unique_units_passed": 3,
            "expected_credits": 34.0,
            "credit_gap": 24.0,
            "overall_progress": 7.2,
            "classification": "At Risk",
            "severity": "High",
            "message": "24 credits behind schedule"
        }
    })
