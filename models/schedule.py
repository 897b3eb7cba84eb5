"""
Schedule data models for the Rollout Scheduler.

This module defines both the recurrence 'Input' (weekly templates, cadences,
group assignments) and the 'Output' of the session expander:
concrete dated class sessions.
"""

from typing import List, Optional, Tuple
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, model_validator
from datetime import date as date_type, time as time_type, datetime

# (date, start_time, venue): the bookable unit of a venue
SlotKey = Tuple[date_type, time_type, str]
# (group_id, date, start_time, venue): unique identity of a session
SessionKey = Tuple[str, date_type, time_type, str]


class ActivityKind(str, Enum):
    """What happens during a session."""
    CLASS = "Class"
    PRACTICAL = "Practical"
    WORKPLACE = "Workplace"
    ASSESSMENT = "Assessment"


class TemplateEntry(BaseModel):
    """A weekly recurring booking: one weekday, one venue, one time block."""
    weekday: int = Field(ge=0, le=6, description="0=Monday, 6=Sunday")
    start_time: time_type
    end_time: time_type
    venue: str = Field(min_length=1)
    activity_kind: ActivityKind = Field(default=ActivityKind.CLASS)

    @model_validator(mode='after')
    def validate_times(self):
        if self.start_time >= self.end_time:
            raise ValueError("End time must be strictly after start time")
        return self


class ScheduleTemplate(BaseModel):
    """
    Named weekly recurrence pattern, independent of any plan.
    Many groups may share one template through GroupSchedule.
    """
    id: str = Field(description="Unique identifier")
    name: str = Field(min_length=1)
    entries: List[TemplateEntry] = Field(default_factory=list)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "tpl_lecture_mon_wed",
            "name": "Lecture Room Mon/Wed",
            "entries": [
                {"weekday": 0, "start_time": "09:00:00", "end_time": "12:00:00", "venue": "Lecture Room"},
                {"weekday": 2, "start_time": "09:00:00", "end_time": "12:00:00", "venue": "Lecture Room"}
            ]
        }
    })

    def entries_for(self, weekday: int) -> List[TemplateEntry]:
        return [e for e in self.entries if e.weekday == weekday]


class Cadence(BaseModel):
    """
    Explicit, deterministic session cadence used when a group has no template,
    e.g. "every working day" or "Mon/Wed/Fri".
    """
    weekdays: List[int] = Field(min_length=1, description="Weekdays to meet on (0=Monday)")
    start_time: time_type = Field(default=time_type(9, 0))
    end_time: time_type = Field(default=time_type(16, 0))
    venue: str = Field(min_length=1)
    activity_kind: ActivityKind = Field(default=ActivityKind.CLASS)

    @model_validator(mode='after')
    def validate_weekdays(self):
        if any(d < 0 or d > 6 for d in self.weekdays):
            raise ValueError("Weekdays must be between 0 (Monday) and 6 (Sunday)")
        if len(set(self.weekdays)) != len(self.weekdays):
            raise ValueError("Weekdays must not repeat")
        return self

    @classmethod
    def every_working_day(cls, venue: str, **kwargs) -> "Cadence":
        return cls(weekdays=[0, 1, 2, 3, 4], venue=venue, **kwargs)

    @classmethod
    def mon_wed_fri(cls, venue: str, **kwargs) -> "Cadence":
        return cls(weekdays=[0, 2, 4], venue=venue, **kwargs)

    def to_template(self) -> ScheduleTemplate:
        days = "/".join(str(d) for d in sorted(self.weekdays))
        return ScheduleTemplate(
            id=f"cadence_{days}_{self.start_time:%H%M}_{self.venue}",
            name=f"Cadence {days} @ {self.venue}",
            entries=[
                TemplateEntry(
                    weekday=d,
                    start_time=self.start_time,
                    end_time=self.end_time,
                    venue=self.venue,
                    activity_kind=self.activity_kind,
                )
                for d in sorted(self.weekdays)
            ],
        )


class GroupSchedule(BaseModel):
    """Assignment of a template to a group over a bounded date range."""
    group_id: str
    template_id: str
    start_date: date_type
    end_date: Optional[date_type] = Field(default=None, description="Open-ended when None")

    @model_validator(mode='after')
    def validate_dates(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("Schedule end date cannot be before start date")
        return self

    def covers(self, day: date_type) -> bool:
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date


class Session(BaseModel):
    """
    A single class occurrence. Identified by (group_id, date, start_time, venue).
    Produced only by the session expander.
    """

    # --- Identity ---
    group_id: str = Field(description="Group attending the session")
    date: date_type = Field(description="Calendar date")
    start_time: time_type
    venue: str

    # --- Details ---
    end_time: time_type
    module_label: str = Field(default="", description="e.g. 'Module 1: Numeracy'")
    activity_kind: ActivityKind = Field(default=ActivityKind.CLASS)
    notes: str = Field(default="")

    @property
    def key(self) -> SessionKey:
        return (self.group_id, self.date, self.start_time, self.venue)

    @property
    def slot(self) -> SlotKey:
        return (self.date, self.start_time, self.venue)

    @property
    def duration_minutes(self) -> int:
        start = datetime.combine(self.date, self.start_time)
        end = datetime.combine(self.date, self.end_time)
        return int((end - start).total_seconds() // 60)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "group_id": "grp_montzelity_26",
            "date": "2025-12-01",
            "start_time": "09:00:00",
            "venue": "Lecture Room",
            "end_time": "12:00:00",
            "module_label": "Module 1: Numeracy",
            "activity_kind": "Class",
            "notes": ""
        }
    })
