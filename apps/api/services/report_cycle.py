"""
Report Cycle Scheduler

Each athlete has one rolling report window:
[cycle_start_date, next_report_date), always REPORT_CYCLE_DAYS long.

The cycle is created lazily the first time a report is requested, starting
at account creation. It only moves forward after a report for the current
window has been saved.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import settings
from models import UserReportCycle
from services.report_inputs import as_utc

logger = logging.getLogger(__name__)


class CycleCreationError(RuntimeError):
    """The store refused to create a report cycle."""


def cycle_length() -> timedelta:
    return timedelta(days=settings.REPORT_CYCLE_DAYS)


def get_cycle(db: Session, athlete_id: str) -> Optional[UserReportCycle]:
    return (
        db.query(UserReportCycle)
        .filter(UserReportCycle.athlete_id == UUID(str(athlete_id)))
        .first()
    )


def get_or_create_cycle(
    db: Session,
    athlete_id: str,
    account_created_at: Callable[[], Optional[datetime]],
    now: Optional[datetime] = None,
) -> UserReportCycle:
    """
    Return the athlete's cycle, creating it on first use.

    account_created_at is only called when a new cycle is needed; if it
    returns None the cycle starts now.
    """
    cycle = get_cycle(db, athlete_id)
    if cycle:
        return cycle

    start = as_utc(account_created_at()) or as_utc(now) or datetime.now(timezone.utc)
    cycle = UserReportCycle(
        athlete_id=UUID(str(athlete_id)),
        cycle_start_date=start,
        next_report_date=start + cycle_length(),
        reports_generated=0,
    )
    try:
        db.add(cycle)
        db.commit()
    except IntegrityError as e:
        # Another request created the cycle first
        db.rollback()
        existing = get_cycle(db, athlete_id)
        if existing:
            return existing
        logger.error(f"Report cycle for athlete {athlete_id} rejected as duplicate but not found")
        raise CycleCreationError("Failed to create report cycle") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating report cycle for athlete {athlete_id}: {e}")
        raise CycleCreationError("Failed to create report cycle") from e

    logger.info(
        f"Created report cycle for athlete {athlete_id} starting {start.isoformat()}",
        extra={"extra_fields": {"athlete_id": str(athlete_id)}},
    )
    return cycle


def is_due(cycle: UserReportCycle, now: datetime, force: bool = False) -> bool:
    if force:
        return True
    return as_utc(now) >= as_utc(cycle.next_report_date)


def days_remaining(cycle: UserReportCycle, now: datetime) -> int:
    remaining = as_utc(cycle.next_report_date) - as_utc(now)
    return max(0, math.ceil(remaining / timedelta(days=1)))


def advance(db: Session, cycle: UserReportCycle, period_end: datetime) -> UserReportCycle:
    """
    Move the window to start at period_end.

    Must only run once the report for the previous window is durably saved.
    """
    new_start = as_utc(period_end)
    cycle.cycle_start_date = new_start
    cycle.next_report_date = new_start + cycle_length()
    cycle.reports_generated = (cycle.reports_generated or 0) + 1
    db.commit()
    return cycle
