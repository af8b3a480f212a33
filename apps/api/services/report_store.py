"""
Monthly Report Store

Persistence and idempotency guard for generated reports.

The guard lives in the database: regular saves always write revision 0
and (athlete_id, report_period_start, revision) is unique, so two workers
racing on the same period cannot both create a report. Forced reruns
write the next revision and leave earlier rows as they were.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models import MonthlyReport
from services.report_inputs import as_utc

logger = logging.getLogger(__name__)

STATUS_GENERATED = "generated"


class ReportSaveError(RuntimeError):
    """The final insert of a report failed."""


class ReportAlreadyExistsError(RuntimeError):
    """A regular report for this athlete and period already exists."""


def _athlete_uuid(athlete_id) -> UUID:
    return UUID(str(athlete_id))


def find_existing(db: Session, athlete_id: str, period_start: datetime) -> Optional[MonthlyReport]:
    """Latest revision of the report for this period, if any."""
    return (
        db.query(MonthlyReport)
        .filter(
            MonthlyReport.athlete_id == _athlete_uuid(athlete_id),
            MonthlyReport.report_period_start == as_utc(period_start),
        )
        .order_by(MonthlyReport.revision.desc())
        .first()
    )


def _next_revision(db: Session, athlete_id: str, period_start: datetime) -> int:
    current = (
        db.query(func.max(MonthlyReport.revision))
        .filter(
            MonthlyReport.athlete_id == _athlete_uuid(athlete_id),
            MonthlyReport.report_period_start == as_utc(period_start),
        )
        .scalar()
    )
    return 0 if current is None else current + 1


def save_report(
    db: Session,
    athlete_id: str,
    period_start: datetime,
    period_end: datetime,
    report_data: Dict,
    force: bool = False,
) -> MonthlyReport:
    """
    Insert a report in a single commit.

    Raises ReportAlreadyExistsError when a regular save loses the uniqueness
    race, ReportSaveError for any other store failure.
    """
    try:
        revision = _next_revision(db, athlete_id, period_start) if force else 0
        report = MonthlyReport(
            athlete_id=_athlete_uuid(athlete_id),
            report_period_start=as_utc(period_start),
            report_period_end=as_utc(period_end),
            revision=revision,
            report_data=report_data,
            status=STATUS_GENERATED,
        )
        db.add(report)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Report for athlete {athlete_id} period {period_start} already saved: {e}")
        raise ReportAlreadyExistsError("Report already exists for this period") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error saving report for athlete {athlete_id}: {e}")
        raise ReportSaveError("Failed to save report") from e
    return report


def latest_report(db: Session, athlete_id: str) -> Optional[MonthlyReport]:
    return (
        db.query(MonthlyReport)
        .filter(MonthlyReport.athlete_id == _athlete_uuid(athlete_id))
        .order_by(MonthlyReport.report_period_start.desc(), MonthlyReport.revision.desc())
        .first()
    )


def list_reports(db: Session, athlete_id: str, limit: int = 24) -> List[MonthlyReport]:
    return (
        db.query(MonthlyReport)
        .filter(MonthlyReport.athlete_id == _athlete_uuid(athlete_id))
        .order_by(MonthlyReport.report_period_start.desc(), MonthlyReport.revision.desc())
        .limit(limit)
        .all()
    )


def get_report(db: Session, athlete_id: str, report_id: UUID) -> Optional[MonthlyReport]:
    """Fetch a report only if it belongs to the athlete."""
    return (
        db.query(MonthlyReport)
        .filter(
            MonthlyReport.id == report_id,
            MonthlyReport.athlete_id == _athlete_uuid(athlete_id),
        )
        .first()
    )


def mark_viewed(db: Session, report: MonthlyReport) -> MonthlyReport:
    # First view wins
    if report.viewed_at is None:
        report.viewed_at = datetime.now(timezone.utc)
        db.commit()
    return report


def mark_downloaded(db: Session, report: MonthlyReport) -> MonthlyReport:
    report.downloaded_at = datetime.now(timezone.utc)
    db.commit()
    return report


def set_saved_to_library(db: Session, report: MonthlyReport, saved: bool) -> MonthlyReport:
    report.saved_to_library = saved
    db.commit()
    return report
