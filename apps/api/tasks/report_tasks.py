"""
Scheduled Monthly Report Tasks

A daily Celery Beat sweep enqueues one generation task per athlete whose
report cycle has come due. The per-athlete task runs the same lazy
due-date and idempotency checks as the API, so duplicate enqueues are
harmless.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict
import logging

from celery import Task
from sqlalchemy.orm import Session

from core.config import settings
from core.database import get_db_sync
from models import Athlete, UserReportCycle
from services.report_cycle import CycleCreationError
from services.report_generator import generate_monthly_report
from services.report_store import ReportSaveError
from tasks import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="tasks.generate_monthly_report", bind=True)
def generate_monthly_report_task(self: Task, athlete_id: str, force_generate: bool = False) -> Dict:
    """
    Generate the monthly report for a single athlete.

    Returns a status dict; the report itself stays in the database.
    """
    db: Session = get_db_sync()

    try:
        result = generate_monthly_report(db, athlete_id, force_generate=force_generate)

        if not result["report_ready"]:
            return {
                "status": "skipped",
                "athlete_id": athlete_id,
                "message": "Report not due",
                "days_remaining": result["days_remaining"],
            }

        return {
            "status": "already_generated" if result.get("already_generated") else "success",
            "athlete_id": athlete_id,
            "report_id": result["report_id"],
        }

    except (CycleCreationError, ReportSaveError) as e:
        logger.error(f"Monthly report failed for athlete {athlete_id}: {e}")
        return {"status": "error", "athlete_id": athlete_id, "message": str(e)}
    finally:
        db.close()


@celery_app.task(name="tasks.generate_due_monthly_reports")
def generate_due_monthly_reports_task() -> Dict:
    """
    Enqueue report generation for every athlete with a due cycle.

    Athletes with no cycle yet are included once their account is older
    than one cycle; the task creates the cycle on first run.
    """
    db: Session = get_db_sync()
    now = datetime.now(timezone.utc)

    try:
        due_ids = [
            row[0] for row in
            db.query(UserReportCycle.athlete_id)
            .filter(UserReportCycle.next_report_date <= now)
            .all()
        ]
        new_ids = [
            row[0] for row in
            db.query(Athlete.id)
            .outerjoin(UserReportCycle, UserReportCycle.athlete_id == Athlete.id)
            .filter(
                UserReportCycle.id.is_(None),
                Athlete.is_blocked.is_(False),
                Athlete.created_at <= now - timedelta(days=settings.REPORT_CYCLE_DAYS),
            )
            .all()
        ]

        athlete_ids = [str(a) for a in due_ids + new_ids]
        logger.info(f"Enqueuing monthly reports for {len(athlete_ids)} athletes")

        results = []
        for athlete_id in athlete_ids:
            task_result = generate_monthly_report_task.delay(athlete_id)
            results.append({"athlete_id": athlete_id, "task_id": task_result.id})

        return {
            "status": "success",
            "total_athletes": len(athlete_ids),
            "tasks_enqueued": len(results),
            "results": results,
        }

    finally:
        db.close()
