"""
Monthly Report Generator

Produces one athlete's report for their current cycle window:

1. Get (or lazily create) the athlete's report cycle
2. Short-circuit if the report is not due yet
3. Short-circuit if a report for the window already exists, advancing the
   cycle if a previous run saved the report but never advanced it
4. Read the period's history, run every section aggregator, synthesize
   the narrative
5. Save the report, then advance the cycle

Fatal failures (cycle creation, save) propagate as exceptions. Individual
input reads degrade inside ReportDataSource.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import settings
from services.report_cycle import advance, days_remaining, get_or_create_cycle, is_due
from services.report_inputs import ReportContext, ReportDataSource, ReportInputs, as_utc
from services.report_narrative import synthesize
from services.report_sections import (
    build_analysis,
    build_behavior,
    build_coach_feedback,
    build_module_reports,
    build_nutrition,
    build_overview,
    build_performance,
)
from services.report_store import (
    ReportAlreadyExistsError,
    find_existing,
    latest_report,
    save_report,
)

logger = logging.getLogger(__name__)


def compile_report(inputs: ReportInputs, context: ReportContext, generated_at: datetime) -> Dict:
    """Run all aggregators and the synthesizer over pre-fetched inputs. Pure."""
    overview = build_overview(inputs.records, inputs.previous_records)
    behavior = build_behavior(inputs.records, context)
    analysis = build_analysis(inputs.records)
    module_reports = build_module_reports(inputs.records, inputs.previous_records, context)
    nutrition = build_nutrition(
        inputs.nutrition,
        inputs.tips_viewed,
        inputs.total_tips_available,
        behavior["total_days_in_period"],
    )
    performance = build_performance(overview, module_reports, inputs.all_time_scores)
    coach_feedback = build_coach_feedback(inputs.annotations, context)

    sections = {
        "overview": overview,
        "behavior": behavior,
        "analysis": analysis,
        "module_reports": module_reports,
        "nutrition": nutrition,
        "performance": performance,
        "coach_feedback": coach_feedback,
    }
    sections.update(synthesize(sections))

    return {
        "generated_at": as_utc(generated_at).isoformat(),
        "period_start": as_utc(context.period_start).isoformat(),
        "period_end": as_utc(context.period_end).isoformat(),
        "sections": sections,
    }


def generate_monthly_report(
    db: Session,
    athlete_id: str,
    force_generate: bool = False,
    now: Optional[datetime] = None,
    data_source: Optional[ReportDataSource] = None,
) -> Dict:
    """
    Produce (or locate) the report for the athlete's current cycle.

    Returns one of:
    - {"report_ready": False, "next_report_date", "days_remaining", "last_report_id"}
    - {"report_ready": True, "report_id", "already_generated": True}
    - {"report_ready": True, "report_id", "report"}

    force_generate skips both the due-date check and the existing-report
    guard; the new report is stored as a new revision.
    """
    athlete_id = str(athlete_id)
    now = as_utc(now) or datetime.now(timezone.utc)
    source = data_source or ReportDataSource(db)

    cycle = get_or_create_cycle(
        db, athlete_id, lambda: source.get_account_created_at(athlete_id), now=now
    )

    if not is_due(cycle, now, force=force_generate):
        last = latest_report(db, athlete_id)
        return {
            "report_ready": False,
            "next_report_date": as_utc(cycle.next_report_date).isoformat(),
            "days_remaining": days_remaining(cycle, now),
            "last_report_id": str(last.id) if last else None,
        }

    period_start = as_utc(cycle.cycle_start_date)
    period_end = as_utc(cycle.next_report_date)

    if not force_generate:
        existing = find_existing(db, athlete_id, period_start)
        if existing:
            # Saved on an earlier run that never advanced the cycle
            logger.warning(
                f"Report {existing.id} already exists for athlete {athlete_id}; repairing cycle",
                extra={"extra_fields": {"athlete_id": athlete_id, "report_id": str(existing.id)}},
            )
            try:
                advance(db, cycle, as_utc(existing.report_period_end))
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Cycle repair failed for athlete {athlete_id}: {e}")
            return {
                "report_ready": True,
                "report_id": str(existing.id),
                "already_generated": True,
            }

    logger.info(
        f"Generating monthly report for athlete {athlete_id}: {period_start.isoformat()} to {period_end.isoformat()}",
        extra={"extra_fields": {"athlete_id": athlete_id, "force_generate": force_generate}},
    )

    context = ReportContext(
        athlete_id=athlete_id,
        period_start=period_start,
        period_end=period_end,
        modules=list(settings.REPORT_MODULES),
        subscribed_modules=source.get_subscribed_modules(athlete_id),
    )
    report_data = compile_report(source.load(context), context, generated_at=now)

    try:
        report = save_report(db, athlete_id, period_start, period_end, report_data, force=force_generate)
    except ReportAlreadyExistsError:
        # Another worker saved this period first; it owns the cycle advance
        winner = find_existing(db, athlete_id, period_start)
        return {
            "report_ready": True,
            "report_id": str(winner.id) if winner else None,
            "already_generated": True,
        }

    try:
        advance(db, cycle, period_end)
    except SQLAlchemyError as e:
        # The report is durable; the next request repairs the cycle
        db.rollback()
        logger.error(f"Report {report.id} saved but cycle advance failed for athlete {athlete_id}: {e}")

    logger.info(
        f"Monthly report generated: {report.id}",
        extra={"extra_fields": {"athlete_id": athlete_id, "report_id": str(report.id)}},
    )
    return {
        "report_ready": True,
        "report_id": str(report.id),
        "report": report_data,
    }
