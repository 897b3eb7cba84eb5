"""
Main Execution Script for the Rollout Scheduler.
Computes a plan, expands sessions for two groups sharing a venue,
reconciles demo learners and exports a dashboard JSON file.
"""

import argparse
import json
import logging
from datetime import date, timedelta

from generators.curriculum_factory import CurriculumFactory, JsonCurriculumSource
from models import GroupSchedule
from rollout import ConflictError, RolloutService
from rollout.config import get_settings
from rollout.repositories import (
    InMemoryAssessmentFactSource,
    InMemoryPlanRepository,
    InMemorySessionRepository,
)

logger = logging.getLogger("Main")

# --- CONFIGURATION ---
DEFAULT_OUTPUT = "rollout_dashboard.json"
DEMO_GROUPS = ("grp_alpha", "grp_bravo")
# learner -> (group, unit standards passed, days after the plan start to report on)
DEMO_LEARNERS = {
    "stu_on_track": ("grp_alpha", 6, 60),
    "stu_behind": ("grp_alpha", 2, 75),
    "stu_stalled": ("grp_alpha", 0, 45),
}
# ---------------------


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )


def export_dashboard_data(service, sessions_repo, snapshots, filename=DEFAULT_OUTPUT):
    """
    Serializes plans, sessions and snapshots into a JSON format for the frontend.
    """
    logger.info(f"💾 Exporting dashboard data to {filename}...")

    data = {"plans": {}, "schedule": {}, "progress": []}

    for group_id in DEMO_GROUPS:
        plan = service.plans.get(group_id)
        if plan:
            data["plans"][group_id] = plan.model_dump(mode='json')

    # Schedule (Grouped by Date)
    for group_id in DEMO_GROUPS:
        for session in sessions_repo.for_group(group_id):
            date_key = session.date.isoformat()
            data["schedule"].setdefault(date_key, []).append(session.model_dump(mode='json'))

    data["progress"] = [s.model_dump(mode='json') for s in snapshots]

    with open(filename, 'w') as f:
        json.dump(data, f, indent=2)
    logger.info("✅ Dashboard data exported.")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Rollout plan, session and progress demo")
    parser.add_argument("--start", type=date.fromisoformat, default=date.today(), help="Programme start date (YYYY-MM-DD)")
    parser.add_argument("--curriculum", default=None, help="Curriculum JSON file (defaults to NVC Level 2)")
    parser.add_argument("--output", default=DEFAULT_OUTPUT, help="Dashboard JSON output path")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    logger.info("🚀 Starting Rollout Scheduler demo...")

    plans = InMemoryPlanRepository()
    sessions = InMemorySessionRepository()
    facts = InMemoryAssessmentFactSource()
    service = RolloutService(plans, sessions, facts, JsonCurriculumSource(args.curriculum), settings=settings)

    # --- PHASE 1: ROLLOUT PLANS ---
    logger.info("--- Phase 1: Rollout Plans ---")
    for group_id in DEMO_GROUPS:
        plan = service.schedule_rollout(group_id, args.start)
        logger.info(f"📅 {group_id}: {plan.start_date} -> {plan.end_date} ({len(plan.modules)} modules)")

    # --- PHASE 2: SESSIONS ---
    # Both groups share the Lecture Room template, so the second group conflicts.
    logger.info("--- Phase 2: Session Expansion ---")
    template = CurriculumFactory.demo_template()
    results = {}
    for group_id in DEMO_GROUPS:
        plan = plans.get(group_id)
        schedule = GroupSchedule(group_id=group_id, template_id=template.id, start_date=plan.start_date)
        result = service.generate_sessions(group_id, template, schedule=schedule)
        try:
            service.commit_sessions(result)
        except ConflictError as e:
            logger.error(f"❌ Commit rejected for {group_id}: {e}")
        results[group_id] = result

    # --- PHASE 3: PROGRESS ---
    logger.info("--- Phase 3: Progress Reconciliation ---")
    snapshots = []
    for student_id, (group_id, passed, offset_days) in DEMO_LEARNERS.items():
        plan = plans.get(group_id)
        for fact in CurriculumFactory.demo_facts(student_id, plan, passed, retries=1):
            facts.add(fact)
        as_of = plan.start_date + timedelta(days=offset_days)
        snapshots.append(service.get_progress_snapshot(student_id, group_id, as_of=as_of))

    # --- PHASE 4: REPORTING ---
    print("\n" + "=" * 50)
    print("📊 FINAL EXECUTION REPORT")
    print("=" * 50)
    for group_id, result in results.items():
        print(result.get_statistics())
        for row in result.get_conflict_report()[:5]:
            print(f"   ⚠️  {row['reason']}")

    print("\n🔍 LEARNER PROGRESS")
    for snap in snapshots:
        print(
            f"   [{snap.classification.value}/{snap.severity.value}] {snap.student_id}: "
            f"{snap.earned_credits} earned vs {snap.expected_credits} expected - {snap.message}"
        )

    for group_id in DEMO_GROUPS:
        for warning in service.check_drift(group_id):
            print(f"   🔁 Drift: {warning}")

    export_dashboard_data(service, sessions, snapshots, args.output)
    print("\n✅ Demo Complete.")


if __name__ == "__main__":
    main()
