from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, Optional
from datetime import datetime
from uuid import UUID


class GenerateReportRequest(BaseModel):
    force_generate: bool = False


class GenerateReportResponse(BaseModel):
    report_ready: bool
    report_id: Optional[str] = None
    already_generated: Optional[bool] = None
    report: Optional[Dict[str, Any]] = None
    next_report_date: Optional[datetime] = None
    days_remaining: Optional[int] = None
    last_report_id: Optional[str] = None


class ReportCycleStatus(BaseModel):
    cycle_start_date: datetime
    next_report_date: datetime
    days_remaining: int
    reports_generated: int
    report_due: bool


class MonthlyReportSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    report_period_start: datetime
    report_period_end: datetime
    revision: int
    status: str
    viewed_at: Optional[datetime] = None
    downloaded_at: Optional[datetime] = None
    saved_to_library: bool
    created_at: Optional[datetime] = None


class MonthlyReportDetail(MonthlyReportSummary):
    report_data: Dict[str, Any]


class SaveToLibraryRequest(BaseModel):
    saved: bool = True
