"""Tests for session expansion, conflicts and idempotent regeneration."""

from datetime import date, time

import pytest

from conftest import SATURDAY, make_curriculum, monday_template
from models import ActivityKind, Cadence, GroupSchedule, ScheduleTemplate, TemplateEntry
from rollout import ConflictError, ExpansionResult, SessionExpander, ValidationError
from rollout.calendar_math import HolidayCalendar

WEEK_START = date(2026, 3, 2)   # Monday
WEEK_END = date(2026, 3, 6)     # Friday


@pytest.fixture
def expander() -> SessionExpander:
    return SessionExpander()


@pytest.fixture
def scenario_plan(calculator):
    # 8 credits from a Saturday: teaching 2025-12-01..12-12, workplace 12-15..12-19
    return calculator.calculate(SATURDAY, make_curriculum([[8]]), group_id="grp_a")


def test_weekly_template_yields_one_session_per_matching_weekday(expander) -> None:
    result = expander.expand("grp_a", WEEK_START, WEEK_END, monday_template(), existing_keys=set())

    assert len(result.sessions) == 1
    session = result.sessions[0]
    assert session.key == ("grp_a", WEEK_START, time(9, 0), "Lecture Room")
    assert session.end_time == time(12, 0)
    assert session.duration_minutes == 180
    assert not result.has_conflicts


def test_slot_held_by_another_group_is_reported(expander) -> None:
    first = expander.expand("grp_a", WEEK_START, WEEK_END, monday_template(), existing_keys=set())
    bookings = {s.slot: s.group_id for s in first.sessions}

    second = expander.expand("grp_b", WEEK_START, WEEK_END, monday_template(), existing_keys=set(), bookings=bookings)

    assert second.sessions == []
    assert len(second.conflicts) == 1
    conflict = second.conflicts[0]
    assert conflict.group_id == "grp_b"
    assert conflict.booked_group_id == "grp_a"
    assert conflict.date == WEEK_START
    assert set(conflict.groups) == {"grp_a", "grp_b"}
    with pytest.raises(ConflictError):
        second.raise_for_conflicts()


def test_rerun_with_existing_keys_emits_nothing(expander) -> None:
    first = expander.expand("grp_a", WEEK_START, date(2026, 3, 20), monday_template(), existing_keys=set())
    existing = {s.slot for s in first.sessions}

    rerun = expander.expand("grp_a", WEEK_START, date(2026, 3, 20), monday_template(), existing_keys=existing)

    assert rerun.sessions == []
    assert rerun.skipped_existing == len(first.sessions) == 3
    assert rerun.conflicts == []


def test_own_bookings_are_not_conflicts(expander) -> None:
    first = expander.expand("grp_a", WEEK_START, WEEK_END, monday_template(), existing_keys=set())
    bookings = {s.slot: "grp_a" for s in first.sessions}

    rerun = expander.expand("grp_a", WEEK_START, WEEK_END, monday_template(), existing_keys=set(), bookings=bookings)
    assert rerun.sessions == []
    assert rerun.conflicts == []


def test_superset_window_adds_only_the_new_dates(expander) -> None:
    first = expander.expand("grp_a", WEEK_START, WEEK_END, monday_template(), existing_keys=set())
    existing = {s.slot for s in first.sessions}

    wider = expander.expand("grp_a", WEEK_START, date(2026, 3, 13), monday_template(), existing_keys=existing)
    assert [s.date for s in wider.sessions] == [date(2026, 3, 9)]


def test_expansion_is_deterministic(expander) -> None:
    template = Cadence.mon_wed_fri("Lecture Room")
    first = expander.expand("grp_a", WEEK_START, date(2026, 3, 27), template, existing_keys=set())
    second = expander.expand("grp_a", WEEK_START, date(2026, 3, 27), template, existing_keys=set())
    assert [s.model_dump() for s in first.sessions] == [s.model_dump() for s in second.sessions]
    assert len(first.sessions) == 12


def test_reversed_window_is_rejected(expander) -> None:
    with pytest.raises(ValidationError) as exc:
        expander.expand("grp_a", WEEK_END, WEEK_START, monday_template(), existing_keys=set())
    assert exc.value.field == "window_end"


def test_weekend_and_holiday_entries_are_skipped() -> None:
    template = ScheduleTemplate(
        id="tpl_all_week",
        name="Every day",
        entries=[
            TemplateEntry(weekday=d, start_time=time(9, 0), end_time=time(10, 0), venue="Hall")
            for d in range(7)
        ],
    )
    expander = SessionExpander(holidays=HolidayCalendar([date(2026, 3, 4)]))
    result = expander.expand("grp_a", WEEK_START, date(2026, 3, 8), template, existing_keys=set())

    assert [s.date.day for s in result.sessions] == [2, 3, 5, 6]


def test_iter_sessions_is_lazy_and_restartable(expander) -> None:
    cadence = Cadence.every_working_day("Hall")
    sessions = expander.iter_sessions("grp_a", WEEK_START, WEEK_END, cadence)
    assert next(sessions).date == WEEK_START
    assert next(sessions).date == date(2026, 3, 3)

    again = list(expander.iter_sessions("grp_a", WEEK_START, WEEK_END, cadence))
    assert len(again) == 5
    assert again[0].date == WEEK_START


def test_template_activity_kind_is_carried(expander) -> None:
    template = ScheduleTemplate(
        id="tpl_lab",
        name="Lab",
        entries=[TemplateEntry(weekday=3, start_time=time(13, 0), end_time=time(16, 0),
                               venue="Computer Lab", activity_kind=ActivityKind.PRACTICAL)],
    )
    result = expander.expand("grp_a", WEEK_START, WEEK_END, template, existing_keys=set())
    assert [s.activity_kind for s in result.sessions] == [ActivityKind.PRACTICAL]


# --- Plan-bounded expansion ---

def test_plan_expansion_covers_teaching_and_workplace_days(expander, scenario_plan) -> None:
    result = expander.expand_plan("grp_a", scenario_plan, Cadence.every_working_day("Hall"), existing_keys=set())

    assert len(result.sessions) == 15
    assert result.get_date_range() == (date(2025, 12, 1), date(2025, 12, 19))
    assert all(s.module_label == "Module 1: Module 1" for s in result.sessions)
    assert [s.notes for s in result.sessions[-5:]] == [SessionExpander.WORKPLACE_NOTE] * 5
    assert all(s.notes == "" for s in result.sessions[:10])


def test_group_schedule_clips_the_plan_window(expander, scenario_plan) -> None:
    schedule = GroupSchedule(group_id="grp_a", template_id="cadence", start_date=date(2025, 12, 8))
    result = expander.expand_plan(
        "grp_a", scenario_plan, Cadence.every_working_day("Hall"), existing_keys=set(), schedule=schedule
    )
    assert len(result.sessions) == 10
    assert result.sessions[0].date == date(2025, 12, 8)


def test_schedule_outside_the_plan_yields_nothing(expander, scenario_plan) -> None:
    schedule = GroupSchedule(group_id="grp_a", template_id="cadence", start_date=date(2026, 6, 1))
    result = expander.expand_plan(
        "grp_a", scenario_plan, Cadence.every_working_day("Hall"), existing_keys=set(), schedule=schedule
    )
    assert result.sessions == []


def test_plan_expansion_is_partial_on_conflict(expander, scenario_plan) -> None:
    bookings = {(date(2025, 12, 3), time(9, 0), "Hall"): "grp_b"}
    result = expander.expand_plan(
        "grp_a", scenario_plan, Cadence.every_working_day("Hall"), existing_keys=set(), bookings=bookings
    )
    assert len(result.sessions) == 14
    assert len(result.conflicts) == 1
    assert result.get_statistics()["conflict_count"] == 1
    assert result.get_conflict_report()[0]["date"] == "2025-12-03"


def test_expansion_result_merge_and_queries() -> None:
    left = ExpansionResult("grp_a")
    right = ExpansionResult("grp_a")
    right.record_existing()
    left.merge(right)

    assert left.skipped_existing == 1
    assert left.get_date_range() is None
    assert left.get_statistics()["total_sessions"] == 0


def test_expand_has_no_external_checker_argument(expander) -> None:
    with pytest.raises(TypeError):
        expander.expand("grp_a", WEEK_START, WEEK_END, monday_template(), existing_keys=set(), checker=None)


def test_plan_expansion_honours_existing_keys_and_bookings(expander, scenario_plan) -> None:
    existing = {(date(2025, 12, 1), time(9, 0), "Hall")}
    bookings = {(date(2025, 12, 2), time(9, 0), "Hall"): "grp_b"}
    result = expander.expand_plan(
        "grp_a", scenario_plan, Cadence.every_working_day("Hall"), existing_keys=existing, bookings=bookings
    )
    assert result.skipped_existing == 1
    assert len(result.conflicts) == 1
    assert len(result.sessions) == 13
