"""
Monthly Reports API Router

Athlete-facing endpoints for the 30-day training report:
generation (lazy, due-date driven), cycle countdown, history, and
viewed / downloaded / library markers.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.auth import get_current_user
from core.database import get_db
from core.exceptions import NotFoundError, ReportGenerationFailed
from models import Athlete
from schemas import (
    GenerateReportRequest,
    GenerateReportResponse,
    MonthlyReportDetail,
    MonthlyReportSummary,
    ReportCycleStatus,
    SaveToLibraryRequest,
)
from services import report_store
from services.report_cycle import CycleCreationError, days_remaining, get_or_create_cycle, is_due
from services.report_generator import generate_monthly_report
from services.report_inputs import ReportDataSource, as_utc
from services.report_store import ReportSaveError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/reports", tags=["reports"])


def _get_owned_report(db: Session, athlete: Athlete, report_id: UUID):
    report = report_store.get_report(db, str(athlete.id), report_id)
    if not report:
        raise NotFoundError("Report", str(report_id))
    return report


@router.post("/generate", response_model=GenerateReportResponse, response_model_exclude_none=True)
def generate_report(
    request: Optional[GenerateReportRequest] = None,
    db: Session = Depends(get_db),
    current_user: Athlete = Depends(get_current_user),
):
    """
    Generate the report for the current cycle if it is due.

    Returns the not-due countdown, the already-generated report id, or the
    freshly generated report.
    """
    try:
        return generate_monthly_report(
            db, str(current_user.id), force_generate=bool(request and request.force_generate)
        )
    except CycleCreationError as e:
        raise ReportGenerationFailed(str(e), error_code="CYCLE_CREATION_FAILED")
    except ReportSaveError as e:
        raise ReportGenerationFailed(str(e), error_code="REPORT_SAVE_FAILED")


@router.get("/cycle", response_model=ReportCycleStatus)
def get_report_cycle(
    db: Session = Depends(get_db),
    current_user: Athlete = Depends(get_current_user),
):
    """Countdown to the next report."""
    athlete_id = str(current_user.id)
    source = ReportDataSource(db)
    try:
        cycle = get_or_create_cycle(db, athlete_id, lambda: source.get_account_created_at(athlete_id))
    except CycleCreationError as e:
        raise ReportGenerationFailed(str(e), error_code="CYCLE_CREATION_FAILED")

    now = datetime.now(timezone.utc)
    return ReportCycleStatus(
        cycle_start_date=as_utc(cycle.cycle_start_date),
        next_report_date=as_utc(cycle.next_report_date),
        days_remaining=days_remaining(cycle, now),
        reports_generated=cycle.reports_generated or 0,
        report_due=is_due(cycle, now),
    )


@router.get("", response_model=List[MonthlyReportSummary])
def list_reports(
    limit: int = Query(default=24, ge=1, le=120),
    db: Session = Depends(get_db),
    current_user: Athlete = Depends(get_current_user),
):
    """Report history, newest period first."""
    return report_store.list_reports(db, str(current_user.id), limit=limit)


@router.get("/{report_id}", response_model=MonthlyReportDetail)
def get_report(
    report_id: UUID,
    db: Session = Depends(get_db),
    current_user: Athlete = Depends(get_current_user),
):
    return _get_owned_report(db, current_user, report_id)


@router.post("/{report_id}/viewed", response_model=MonthlyReportSummary)
def mark_report_viewed(
    report_id: UUID,
    db: Session = Depends(get_db),
    current_user: Athlete = Depends(get_current_user),
):
    report = _get_owned_report(db, current_user, report_id)
    return report_store.mark_viewed(db, report)


@router.post("/{report_id}/downloaded", response_model=MonthlyReportSummary)
def mark_report_downloaded(
    report_id: UUID,
    db: Session = Depends(get_db),
    current_user: Athlete = Depends(get_current_user),
):
    report = _get_owned_report(db, current_user, report_id)
    return report_store.mark_downloaded(db, report)


@router.post("/{report_id}/library", response_model=MonthlyReportSummary)
def save_report_to_library(
    report_id: UUID,
    request: Optional[SaveToLibraryRequest] = None,
    db: Session = Depends(get_db),
    current_user: Athlete = Depends(get_current_user),
):
    report = _get_owned_report(db, current_user, report_id)
    return report_store.set_saved_to_library(db, report, request.saved if request else True)
