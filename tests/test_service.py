"""Tests for the service layer, repositories and settings."""

from datetime import date, timedelta

import pytest

from conftest import MONDAY, make_curriculum, monday_template
from models import Classification
from rollout import ConflictError, PlanNotFoundError, RolloutService, SessionConflict
from rollout.calendar_math import working_days_between
from rollout.config import RolloutSettings, get_settings
from rollout.repositories import (
    InMemoryAssessmentFactSource,
    InMemoryPlanRepository,
    InMemorySessionRepository,
    StaticCurriculumSource,
)
from generators.curriculum_factory import CurriculumFactory


@pytest.fixture
def settings() -> RolloutSettings:
    return RolloutSettings()


@pytest.fixture
def service(settings) -> RolloutService:
    return RolloutService(
        InMemoryPlanRepository(),
        InMemorySessionRepository(),
        InMemoryAssessmentFactSource(),
        StaticCurriculumSource(make_curriculum([[8], [8]])),
        settings=settings,
    )


def test_compute_does_not_persist(service) -> None:
    plan = service.compute_rollout_plan("grp_a", MONDAY)
    assert plan.group_id == "grp_a"
    assert service.plans.get("grp_a") is None


def test_schedule_rollout_replaces_the_plan(service) -> None:
    service.schedule_rollout("grp_a", MONDAY)
    replaced = service.schedule_rollout("grp_a", date(2026, 1, 5))
    assert service.get_plan("grp_a").start_date == replaced.start_date == date(2026, 1, 5)


def test_missing_plan_raises(service) -> None:
    with pytest.raises(PlanNotFoundError) as exc:
        service.get_plan("grp_missing")
    assert exc.value.group_id == "grp_missing"
    with pytest.raises(LookupError):
        service.generate_sessions("grp_missing", monday_template())


def test_stored_plan_is_isolated_from_caller_mutation(service) -> None:
    plan = service.schedule_rollout("grp_a", MONDAY)
    plan.modules[0].name = "Changed"
    assert service.get_plan("grp_a").modules[0].name == "Module 1"
    assert service.check_drift("grp_a") == []


def test_generate_commit_and_regenerate(service) -> None:
    service.schedule_rollout("grp_a", MONDAY)
    first = service.generate_sessions("grp_a", monday_template())
    # two modules of 15 working days each: six Mondays from 2025-12-01
    assert len(first.sessions) == 6
    assert service.commit_sessions(first) == 6

    again = service.generate_sessions("grp_a", monday_template())
    assert again.sessions == []
    assert again.skipped_existing == 6
    assert len(service.sessions.for_group("grp_a")) == 6


def test_second_group_conflicts_on_a_shared_venue(service) -> None:
    service.schedule_rollout("grp_a", MONDAY)
    service.schedule_rollout("grp_b", MONDAY)
    service.commit_sessions(service.generate_sessions("grp_a", monday_template()))

    result = service.generate_sessions("grp_b", monday_template())
    assert result.sessions == []
    assert len(result.conflicts) == 6
    assert {c.booked_group_id for c in result.conflicts} == {"grp_a"}

    other_room = service.generate_sessions("grp_b", monday_template(venue="Boardroom"))
    assert len(other_room.sessions) == 6


def test_insert_many_is_all_or_nothing(service) -> None:
    service.schedule_rollout("grp_a", MONDAY)
    result = service.generate_sessions("grp_a", monday_template())
    service.commit_sessions(result)

    with pytest.raises(ConflictError) as exc:
        service.commit_sessions(result)
    assert len(exc.value.conflicts) == 6
    assert len(service.sessions.for_group("grp_a")) == 6


def test_progress_snapshot_through_the_service(service) -> None:
    plan = service.schedule_rollout("grp_a", MONDAY)
    for f in CurriculumFactory.demo_facts("stu_1", plan, units_passed=1):
        service.facts.add(f)

    as_of = plan.modules[0].unit_standards[0].end_date + timedelta(days=7)
    snapshot = service.get_progress_snapshot("stu_1", "grp_a", as_of=as_of)
    assert snapshot.earned_credits == 8
    assert snapshot.classification == Classification.ON_TRACK

    snapshots = service.reconcile_group(["stu_1", "stu_2"], "grp_a", as_of=as_of)
    assert [s.earned_credits for s in snapshots] == [8, 0]


def test_drift_after_curriculum_change(settings) -> None:
    plans = InMemoryPlanRepository()
    old = RolloutService(
        plans, InMemorySessionRepository(), InMemoryAssessmentFactSource(),
        StaticCurriculumSource(make_curriculum([[8]])), settings=settings,
    )
    old.schedule_rollout("grp_a", MONDAY)

    new = RolloutService(
        plans, InMemorySessionRepository(), InMemoryAssessmentFactSource(),
        StaticCurriculumSource(make_curriculum([[12]])), settings=settings,
    )
    fields = {w.field for w in new.check_drift("grp_a")}
    assert "end_date" in fields
    assert "modules[0].unit_standards[0].duration_days" in fields


# --- Settings ---

def test_settings_defaults(settings) -> None:
    assert settings.days_per_credit == 1.25
    assert settings.workplace_buffer_days == 5
    assert settings.year_end_closure is False
    assert settings.at_risk_high_gap == 20


def test_settings_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("ROLLOUT_WORKPLACE_BUFFER_DAYS", "10")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.workplace_buffer_days == 10

        service = RolloutService(
            InMemoryPlanRepository(), InMemorySessionRepository(), InMemoryAssessmentFactSource(),
            StaticCurriculumSource(make_curriculum([[8]])),
        )
        module = service.compute_rollout_plan("grp_a", MONDAY).modules[0]
        assert working_days_between(module.workplace_activity_start, module.workplace_activity_end) == 10
    finally:
        get_settings.cache_clear()


def test_invalid_environment_is_a_runtime_error(monkeypatch) -> None:
    monkeypatch.setenv("ROLLOUT_WORKPLACE_BUFFER_DAYS", "0")
    get_settings.cache_clear()
    try:
        with pytest.raises(RuntimeError):
            get_settings()
    finally:
        get_settings.cache_clear()


def test_year_end_closure_setting_builds_a_holiday_calendar() -> None:
    settings = RolloutSettings(year_end_closure=True)
    service = RolloutService(
        InMemoryPlanRepository(), InMemorySessionRepository(), InMemoryAssessmentFactSource(),
        StaticCurriculumSource(make_curriculum([[2]])), settings=settings,
    )
    unit = service.compute_rollout_plan("grp_a", date(2025, 12, 12)).modules[0].unit_standards[0]
    assert unit.end_date == date(2026, 1, 6)


def test_commit_collision_reports_both_groups(service) -> None:
    service.schedule_rollout("grp_a", MONDAY)
    service.schedule_rollout("grp_b", MONDAY)
    # both expansions run before either commits, so neither sees the other
    result_a = service.generate_sessions("grp_a", monday_template())
    result_b = service.generate_sessions("grp_b", monday_template())
    assert not result_b.has_conflicts

    service.commit_sessions(result_a)
    with pytest.raises(ConflictError) as exc:
        service.commit_sessions(result_b)

    conflicts = exc.value.conflicts
    assert len(conflicts) == 6
    assert all(isinstance(c, SessionConflict) for c in conflicts)
    assert {c.groups for c in conflicts} == {("grp_b", "grp_a")}
    assert conflicts[0].date == MONDAY
    assert "grp_a" in conflicts[0].describe()
    assert service.sessions.for_group("grp_b") == []
