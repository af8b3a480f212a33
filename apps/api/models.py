from sqlalchemy import Column, Integer, Boolean, Float, DateTime, ForeignKey, JSON, Text, Index, UniqueConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from core.database import Base
import uuid

# JSONB on Postgres, plain JSON elsewhere (sqlite test database)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Athlete(Base):
    __tablename__ = "athlete"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    email = Column(Text, unique=True, nullable=True)
    role = Column(Text, default="athlete", nullable=False)  # 'athlete', 'scout', 'admin'
    display_name = Column(Text, nullable=True)
    is_blocked = Column(Boolean, default=False, nullable=False)


class Subscription(Base):
    """
    Module entitlements for an athlete.

    subscribed_modules holds entitlement strings of the form '<sport>_<module>',
    e.g. 'baseball_hitting'.
    """

    __tablename__ = "subscriptions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    athlete_id = Column(Uuid(as_uuid=True), ForeignKey("athlete.id"), nullable=False, unique=True, index=True)
    status = Column(Text, nullable=True)  # active|trialing|past_due|canceled|...
    subscribed_modules = Column(JSONType, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class Video(Base):
    """An uploaded training video with its automated analysis."""

    __tablename__ = "video"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    athlete_id = Column(Uuid(as_uuid=True), ForeignKey("athlete.id"), nullable=False, index=True)
    sport = Column(Text, nullable=False)  # 'baseball', 'softball'
    module = Column(Text, nullable=False)  # 'hitting', 'pitching', 'throwing'
    efficiency_score = Column(Float, nullable=True)  # 0-100, null until analyzed
    # {"positives": [...], "summary": "...", "drills": [...], "scorecard": {"regressions": [...]}}
    ai_analysis = Column(JSONType, nullable=True)
    session_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_video_athlete_created", "athlete_id", "created_at"),
    )


class VideoAnnotation(Base):
    """Feedback left on an athlete's video, by a scout/coach or by the athlete."""

    __tablename__ = "video_annotation"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    video_id = Column(Uuid(as_uuid=True), ForeignKey("video.id"), nullable=False, index=True)
    player_id = Column(Uuid(as_uuid=True), ForeignKey("athlete.id"), nullable=False, index=True)
    scout_id = Column(Uuid(as_uuid=True), ForeignKey("athlete.id"), nullable=True)
    annotator_type = Column(Text, nullable=False)  # 'scout' | 'player'
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_video_annotation_player_created", "player_id", "created_at"),
    )


class NutritionStreak(Base):
    """Per-athlete nutrition engagement counters, maintained by the nutrition module."""

    __tablename__ = "nutrition_streak"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    athlete_id = Column(Uuid(as_uuid=True), ForeignKey("athlete.id"), nullable=False, unique=True)
    current_streak = Column(Integer, default=0, nullable=False)
    longest_streak = Column(Integer, default=0, nullable=False)
    total_visits = Column(Integer, default=0, nullable=False)
    tips_collected = Column(Integer, default=0, nullable=False)
    badges_earned = Column(JSONType, nullable=False, default=list)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class NutritionDailyTip(Base):
    __tablename__ = "nutrition_daily_tip"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    category = Column(Text, nullable=True)
    tip_text = Column(Text, nullable=False)


class UserViewedTip(Base):
    __tablename__ = "user_viewed_tip"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    athlete_id = Column(Uuid(as_uuid=True), ForeignKey("athlete.id"), nullable=False, index=True)
    tip_id = Column(Uuid(as_uuid=True), ForeignKey("nutrition_daily_tip.id"), nullable=False)
    viewed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class UserReportCycle(Base):
    """
    Rolling report window for one athlete.

    next_report_date is always cycle_start_date + REPORT_CYCLE_DAYS.
    Only the report scheduler mutates this row, after a report is saved.
    """

    __tablename__ = "user_report_cycle"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    athlete_id = Column(Uuid(as_uuid=True), ForeignKey("athlete.id"), nullable=False, unique=True, index=True)
    cycle_start_date = Column(DateTime(timezone=True), nullable=False)
    next_report_date = Column(DateTime(timezone=True), nullable=False, index=True)
    reports_generated = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class MonthlyReport(Base):
    """
    A generated report for one athlete and one period.

    Regular generation always writes revision 0, so the unique constraint
    allows exactly one regular report per (athlete, period start). Forced
    reruns insert revision max+1 and leave earlier rows untouched.
    """

    __tablename__ = "monthly_report"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    athlete_id = Column(Uuid(as_uuid=True), ForeignKey("athlete.id"), nullable=False, index=True)
    report_period_start = Column(DateTime(timezone=True), nullable=False)
    report_period_end = Column(DateTime(timezone=True), nullable=False)
    revision = Column(Integer, default=0, nullable=False)
    report_data = Column(JSONType, nullable=False)
    status = Column(Text, default="generated", nullable=False)
    viewed_at = Column(DateTime(timezone=True), nullable=True)
    downloaded_at = Column(DateTime(timezone=True), nullable=True)
    saved_to_library = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("athlete_id", "report_period_start", "revision", name="uq_monthly_report_athlete_period_revision"),
        Index("ix_monthly_report_athlete_period", "athlete_id", "report_period_start"),
    )
