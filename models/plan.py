"""
Rollout plan data models for the Rollout Scheduler.

This module defines the calendar 'Output' of plan calculation:
dated windows for every module and unit standard of one group's run.
"""

from typing import List, Optional, Iterator
from pydantic import BaseModel, Field, ConfigDict
from datetime import date as date_type


class UnitStandardWindow(BaseModel):
    """Dated delivery window for one unit standard."""

    unit_standard_id: str = Field(description="Curriculum unit standard code")
    title: str = Field(default="")
    credits: int = Field(ge=1)
    start_date: date_type = Field(description="First teaching day")
    end_date: date_type = Field(description="Last teaching day (inclusive)")
    summative_date: date_type = Field(description="Summative assessment day")
    assessing_date: date_type = Field(description="Day the facilitator assesses the evidence")
    duration_days: int = Field(ge=1, description="Working days between start_date and end_date inclusive")

    def contains(self, day: date_type) -> bool:
        return self.start_date <= day <= self.end_date


class ModuleWindow(BaseModel):
    """
    Dated window for one module: its unit standards followed by the
    workplace-activity buffer.
    """

    module_number: int = Field(ge=1)
    name: str
    credits: int = Field(ge=1)
    start_date: date_type = Field(description="Equals the first unit standard's start")
    end_date: date_type = Field(description="Equals the workplace-activity end")
    workplace_activity_start: date_type
    workplace_activity_end: date_type
    summative_date: date_type = Field(description="Summative date of the last unit standard")
    assessing_date: date_type = Field(description="Assessing date of the last unit standard")
    unit_standards: List[UnitStandardWindow] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return f"Module {self.module_number}: {self.name}"

    def in_workplace_activity(self, day: date_type) -> bool:
        return self.workplace_activity_start <= day <= self.workplace_activity_end


class RolloutPlan(BaseModel):
    """
    The full calendar of one group's run through the curriculum.
    Owned by exactly one group and always recomputed wholesale.
    """

    group_id: str = Field(default="", description="Owning group")
    requested_start_date: date_type = Field(description="Start date as chosen by the caller")
    start_date: date_type = Field(description="Requested start normalized to a working day")
    induction_date: date_type = Field(description="Induction day ahead of the first module")
    end_date: date_type = Field(description="Last module's workplace-activity end")
    total_credits: int = Field(ge=0)
    required_credits: int = Field(ge=0)
    modules: List[ModuleWindow] = Field(default_factory=list)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "group_id": "grp_montzelity_26",
            "requested_start_date": "2025-11-29",
            "start_date": "2025-12-01",
            "induction_date": "2025-11-26",
            "end_date": "2026-10-09",
            "total_credits": 140,
            "required_credits": 138,
            "modules": []
        }
    })

    def iter_unit_windows(self) -> Iterator[UnitStandardWindow]:
        """All unit standard windows in plan order."""
        for module in self.modules:
            yield from module.unit_standards

    def module_on(self, day: date_type) -> Optional[ModuleWindow]:
        """
        The module in progress on the given day: the last module started on or
        before it. Non-working days between two modules belong to the earlier one.
        None before the plan start or after the plan end.
        """
        if not self.modules or day < self.start_date or day > self.end_date:
            return None
        current = None
        for module in self.modules:
            if module.start_date > day:
                break
            current = module
        return current
