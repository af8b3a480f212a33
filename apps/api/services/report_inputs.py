"""
Report Inputs

Typed, read-only views over the raw activity history, plus the data source
that reads them for one athlete and one period.

Every read in ReportDataSource is independently fault tolerant: a failed
query is logged and the empty form is returned, so the affected report
section degrades to zeros instead of aborting the whole report.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import (
    Athlete,
    NutritionDailyTip,
    NutritionStreak,
    Subscription,
    UserViewedTip,
    Video,
    VideoAnnotation,
)

logger = logging.getLogger(__name__)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to aware UTC (sqlite hands back naive values)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


@dataclass(frozen=True)
class AnalysisPayload:
    """The parts of a video's AI analysis the report reads. Missing fields are empty."""
    positives: List[str] = field(default_factory=list)
    summary: Optional[str] = None
    drills: List[str] = field(default_factory=list)
    regressions: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, raw: Any) -> Optional["AnalysisPayload"]:
        if not isinstance(raw, dict):
            return None
        scorecard = raw.get("scorecard")
        summary = raw.get("summary")
        return cls(
            positives=_string_list(raw.get("positives")),
            summary=summary if isinstance(summary, str) else None,
            drills=_string_list(raw.get("drills")),
            regressions=_string_list(scorecard.get("regressions")) if isinstance(scorecard, dict) else [],
        )


@dataclass(frozen=True)
class ActivityRecord:
    """One uploaded video, as seen by the aggregators."""
    id: str
    created_at: datetime
    module: str
    sport: str
    score: Optional[float] = None
    analysis: Optional[AnalysisPayload] = None

    @classmethod
    def from_video(cls, video: Video) -> "ActivityRecord":
        return cls(
            id=str(video.id),
            created_at=as_utc(video.created_at),
            module=video.module,
            sport=video.sport,
            score=video.efficiency_score,
            analysis=AnalysisPayload.from_json(video.ai_analysis),
        )


@dataclass(frozen=True)
class AnnotationRecord:
    id: str
    video_id: str
    scout_id: Optional[str]
    annotator_type: str
    created_at: datetime
    notes: Optional[str] = None

    @classmethod
    def from_annotation(cls, annotation: VideoAnnotation) -> "AnnotationRecord":
        return cls(
            id=str(annotation.id),
            video_id=str(annotation.video_id),
            scout_id=str(annotation.scout_id) if annotation.scout_id else None,
            annotator_type=annotation.annotator_type,
            created_at=as_utc(annotation.created_at),
            notes=annotation.notes,
        )


@dataclass(frozen=True)
class NutritionEngagement:
    current_streak: int = 0
    longest_streak: int = 0
    total_visits: int = 0
    tips_collected: int = 0
    badges_earned: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReportContext:
    """Everything an aggregator needs to know besides the records themselves."""
    athlete_id: str
    period_start: datetime
    period_end: datetime
    modules: List[str] = field(default_factory=list)
    subscribed_modules: List[str] = field(default_factory=list)

    @property
    def period_length(self) -> timedelta:
        return self.period_end - self.period_start

    @property
    def previous_period_start(self) -> datetime:
        return self.period_start - self.period_length


@dataclass
class ReportInputs:
    """All collaborator reads for one report, fetched up front."""
    records: List[ActivityRecord]
    previous_records: List[ActivityRecord]
    annotations: List[AnnotationRecord]
    nutrition: Optional[NutritionEngagement]
    tips_viewed: int
    total_tips_available: Optional[int]
    all_time_scores: List[float]


class ReportDataSource:
    """Point-in-time reads of an athlete's history."""

    def __init__(self, db: Session):
        self.db = db

    def _degrade(self, what: str, athlete_id: str, exc: Exception, empty):
        logger.warning(
            f"Report input unavailable ({what}) for athlete {athlete_id}: {exc}",
            extra={"extra_fields": {"athlete_id": athlete_id, "input": what}},
        )
        self.db.rollback()
        return empty

    def get_account_created_at(self, athlete_id: str) -> Optional[datetime]:
        try:
            created_at = (
                self.db.query(Athlete.created_at)
                .filter(Athlete.id == UUID(str(athlete_id)))
                .scalar()
            )
        except SQLAlchemyError as e:
            return self._degrade("account_created_at", athlete_id, e, None)
        return as_utc(created_at)

    def get_activity_records(self, athlete_id: str, start: datetime, end: datetime) -> List[ActivityRecord]:
        try:
            videos = (
                self.db.query(Video)
                .filter(
                    Video.athlete_id == UUID(str(athlete_id)),
                    Video.created_at >= start,
                    Video.created_at < end,
                )
                .order_by(Video.created_at.asc())
                .all()
            )
        except SQLAlchemyError as e:
            return self._degrade("videos", athlete_id, e, [])
        return [ActivityRecord.from_video(v) for v in videos]

    def get_all_time_scores(self, athlete_id: str, until: datetime) -> List[float]:
        try:
            rows = (
                self.db.query(Video.efficiency_score)
                .filter(
                    Video.athlete_id == UUID(str(athlete_id)),
                    Video.efficiency_score.isnot(None),
                    Video.created_at < until,
                )
                .order_by(Video.created_at.asc())
                .all()
            )
        except SQLAlchemyError as e:
            return self._degrade("all_time_scores", athlete_id, e, [])
        return [row[0] for row in rows]

    def get_annotations(self, athlete_id: str, start: datetime, end: datetime) -> List[AnnotationRecord]:
        try:
            annotations = (
                self.db.query(VideoAnnotation)
                .filter(
                    VideoAnnotation.player_id == UUID(str(athlete_id)),
                    VideoAnnotation.created_at >= start,
                    VideoAnnotation.created_at < end,
                )
                .order_by(VideoAnnotation.created_at.asc())
                .all()
            )
        except SQLAlchemyError as e:
            return self._degrade("annotations", athlete_id, e, [])
        return [AnnotationRecord.from_annotation(a) for a in annotations]

    def get_nutrition_engagement(self, athlete_id: str) -> Optional[NutritionEngagement]:
        try:
            streak = (
                self.db.query(NutritionStreak)
                .filter(NutritionStreak.athlete_id == UUID(str(athlete_id)))
                .first()
            )
        except SQLAlchemyError as e:
            return self._degrade("nutrition_streak", athlete_id, e, None)
        if not streak:
            return None
        return NutritionEngagement(
            current_streak=streak.current_streak or 0,
            longest_streak=streak.longest_streak or 0,
            total_visits=streak.total_visits or 0,
            tips_collected=streak.tips_collected or 0,
            badges_earned=_string_list(streak.badges_earned),
        )

    def get_viewed_tips_count(self, athlete_id: str, start: datetime, end: datetime) -> int:
        try:
            return (
                self.db.query(func.count(UserViewedTip.id))
                .filter(
                    UserViewedTip.athlete_id == UUID(str(athlete_id)),
                    UserViewedTip.viewed_at >= start,
                    UserViewedTip.viewed_at < end,
                )
                .scalar()
            ) or 0
        except SQLAlchemyError as e:
            return self._degrade("viewed_tips", athlete_id, e, 0)

    def get_total_tips_available(self) -> Optional[int]:
        try:
            return self.db.query(func.count(NutritionDailyTip.id)).scalar()
        except SQLAlchemyError as e:
            return self._degrade("total_tips", "*", e, None)

    def get_subscribed_modules(self, athlete_id: str) -> List[str]:
        try:
            subscription = (
                self.db.query(Subscription)
                .filter(Subscription.athlete_id == UUID(str(athlete_id)))
                .first()
            )
        except SQLAlchemyError as e:
            return self._degrade("subscription", athlete_id, e, [])
        if not subscription:
            return []
        return _string_list(subscription.subscribed_modules)

    def load(self, context: ReportContext) -> ReportInputs:
        """Run every read the report needs."""
        athlete_id = context.athlete_id
        return ReportInputs(
            records=self.get_activity_records(athlete_id, context.period_start, context.period_end),
            previous_records=self.get_activity_records(
                athlete_id, context.previous_period_start, context.period_start
            ),
            annotations=self.get_annotations(athlete_id, context.period_start, context.period_end),
            nutrition=self.get_nutrition_engagement(athlete_id),
            tips_viewed=self.get_viewed_tips_count(athlete_id, context.period_start, context.period_end),
            total_tips_available=self.get_total_tips_available(),
            all_time_scores=self.get_all_time_scores(athlete_id, context.period_end),
        )
