"""
Monthly Report Section Aggregators

One pure function per report section. Each takes the read-only record
slices for the period (and, where relevant, the previous period of equal
length) plus a ReportContext, and returns a plain JSON-ready dict.

Aggregators share no state and never raise on empty input: counts are 0,
averages are None.
"""

import math
from datetime import timedelta
from typing import Dict, List, Optional, Sequence

from core.config import settings
from services.report_inputs import (
    ActivityRecord,
    AnnotationRecord,
    NutritionEngagement,
    ReportContext,
)
from services.report_trends import (
    delta_vs_previous,
    engagement_score,
    rounded_mean,
    round_half_up,
    top_tags,
    trend_from_halves,
    trend_vs_previous,
)

# Behavior recommendation thresholds (consistency score, percent)
LOW_CONSISTENCY = 30
MODERATE_CONSISTENCY = 60
# A module is "dominant" when it has more than this many times the uploads of the least-used one
MODULE_IMBALANCE_RATIO = 3


def _scores(records: Sequence[ActivityRecord]) -> List[float]:
    return [r.score for r in records if r.score is not None]


def _count_by(values: Sequence[str]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return counts


def _module_of(entitlement: str) -> str:
    """'baseball_hitting' -> 'hitting'; a bare module name is returned as-is."""
    return entitlement.split("_", 1)[-1]


def build_overview(
    records: Sequence[ActivityRecord],
    previous_records: Sequence[ActivityRecord],
) -> Dict:
    module_uploads = _count_by([r.module for r in records])
    sport_uploads = _count_by([r.sport for r in records])
    scores = _scores(records)

    most_used = None
    least_used = None
    if module_uploads:
        # max()/min() return the first of equal elements, i.e. first appearance
        most_used = max(module_uploads, key=module_uploads.get)
        least_used = min(module_uploads, key=module_uploads.get)

    average_score = rounded_mean(scores)
    previous_average = rounded_mean(_scores(previous_records))

    return {
        "total_uploads": len(records),
        "module_uploads": module_uploads,
        "sport_uploads": sport_uploads,
        "most_used_module": most_used,
        "least_used_module": least_used,
        "average_score": average_score,
        "best_score": max(scores) if scores else None,
        "previous_period_average": previous_average,
        "score_change": delta_vs_previous(average_score, previous_average),
        "total_scores_recorded": len(scores),
    }


def _behavior_recommendations(
    consistency_score: int,
    under_utilized: List[str],
    module_uploads: Dict[str, int],
) -> List[str]:
    recommendations = []

    if consistency_score < LOW_CONSISTENCY:
        recommendations.append(
            "Your activity is inconsistent - aim for at least 3-4 uploads per week to see improvement."
        )
    elif consistency_score < MODERATE_CONSISTENCY:
        recommendations.append(
            "Good consistency! Push for 4-5 uploads per week to accelerate your progress."
        )
    else:
        recommendations.append("Excellent training consistency! Keep up the great work.")

    if under_utilized:
        recommendations.append(
            f"You have access to {', '.join(under_utilized)} but haven't used them. "
            "Try these modules for well-rounded development."
        )

    counts = list(module_uploads.values())
    if len(counts) > 1 and max(counts) > min(counts) * MODULE_IMBALANCE_RATIO:
        recommendations.append(
            "Your training is heavily focused on one module. Consider balancing your practice across modules."
        )

    return recommendations


def build_behavior(records: Sequence[ActivityRecord], context: ReportContext) -> Dict:
    by_day: Dict[str, int] = {}
    by_hour: Dict[int, int] = {}
    for record in records:
        day_key = record.created_at.date().isoformat()
        by_day[day_key] = by_day.get(day_key, 0) + 1
        by_hour[record.created_at.hour] = by_hour.get(record.created_at.hour, 0) + 1
    by_hour = dict(sorted(by_hour.items()))

    total_days = math.ceil(context.period_length / timedelta(days=1))
    days_active = len(by_day)
    if total_days > 0:
        consistency_score = max(0, min(100, round_half_up(days_active / total_days * 100)))
    else:
        consistency_score = 0

    # by_hour is in ascending hour order, so the earliest hour wins ties
    peak_hour = max(by_hour, key=by_hour.get) if by_hour else None

    module_uploads = _count_by([r.module for r in records])
    used_modules = list(module_uploads)
    under_utilized = [
        m for m in context.subscribed_modules if _module_of(m) not in module_uploads
    ]

    return {
        "days_active": days_active,
        "total_days_in_period": total_days,
        "consistency_score": consistency_score,
        "upload_frequency_by_day": by_day,
        "upload_frequency_by_hour": by_hour,
        "peak_activity_hour": peak_hour,
        "subscribed_modules": list(context.subscribed_modules),
        "used_modules": used_modules,
        "under_utilized_modules": under_utilized,
        "average_uploads_per_active_day": (
            round_half_up(len(records) / days_active, 1) if days_active else None
        ),
        "recommendations": _behavior_recommendations(consistency_score, under_utilized, module_uploads),
    }


def _is_negative_signal(summary: str, keywords: Sequence[str]) -> bool:
    lowered = summary.lower()
    return any(k.lower() in lowered for k in keywords)


def build_analysis(records: Sequence[ActivityRecord]) -> Dict:
    top_n = settings.REPORT_TOP_N_OVERALL
    keywords = settings.REPORT_NEGATIVE_SIGNAL_KEYWORDS

    strengths: List[str] = []
    drills: List[str] = []
    weaknesses: List[str] = []
    score_trend = []

    # score_trend must be chronological
    for record in sorted(records, key=lambda r: r.created_at):
        analysis = record.analysis
        if analysis:
            strengths.extend(analysis.positives)
            drills.extend(analysis.drills)
            if analysis.summary and _is_negative_signal(analysis.summary, keywords):
                weaknesses.append(analysis.summary)
        if record.score is not None:
            score_trend.append({
                "date": record.created_at.isoformat(),
                "score": record.score,
                "module": record.module,
            })

    return {
        "total_videos_analyzed": sum(1 for r in records if r.analysis),
        "top_strengths": top_tags(strengths, top_n),
        "common_weaknesses": weaknesses[:top_n],
        "most_recommended_drills": top_tags(drills, top_n),
        "score_trend": score_trend,
        "overall_trend": trend_from_halves([p["score"] for p in score_trend]).value,
    }


def report_modules(records: Sequence[ActivityRecord], context: ReportContext) -> List[str]:
    """Configured modules first, then any other module seen this period."""
    modules = list(context.modules)
    for record in records:
        if record.module not in modules:
            modules.append(record.module)
    return modules


def build_module_report(
    module: str,
    records: Sequence[ActivityRecord],
    previous_records: Sequence[ActivityRecord],
) -> Dict:
    top_n = settings.REPORT_TOP_N_MODULE
    module_records = [r for r in records if r.module == module]
    scores = _scores(module_records)
    current_avg = rounded_mean(scores)
    previous_avg = rounded_mean(_scores([r for r in previous_records if r.module == module]))

    strengths: List[str] = []
    issues: List[str] = []
    drills: List[str] = []
    for record in module_records:
        if record.analysis:
            strengths.extend(record.analysis.positives)
            issues.extend(record.analysis.regressions)
            drills.extend(record.analysis.drills)

    return {
        "uploads_this_period": len(module_records),
        "current_average_score": current_avg,
        "previous_average_score": previous_avg,
        "score_change": delta_vs_previous(current_avg, previous_avg),
        "best_score": max(scores) if scores else None,
        "worst_score": min(scores) if scores else None,
        "trend": trend_vs_previous(current_avg, previous_avg).value,
        "top_strengths": top_tags(strengths, top_n),
        "common_issues": top_tags(issues, top_n),
        "recommended_drills": top_tags(drills, top_n),
    }


def build_module_reports(
    records: Sequence[ActivityRecord],
    previous_records: Sequence[ActivityRecord],
    context: ReportContext,
) -> Dict[str, Dict]:
    return {
        module: build_module_report(module, records, previous_records)
        for module in report_modules(records, context)
    }


def build_nutrition(
    engagement: Optional[NutritionEngagement],
    tips_viewed: int,
    total_tips_available: Optional[int],
    days_in_period: int,
) -> Dict:
    engagement = engagement or NutritionEngagement()
    return {
        "tips_viewed_this_period": tips_viewed,
        "total_tips_available": total_tips_available or settings.NUTRITION_TOTAL_TIPS_FALLBACK,
        "current_streak": engagement.current_streak,
        "longest_streak": engagement.longest_streak,
        "total_visits": engagement.total_visits,
        "badges_earned": list(engagement.badges_earned),
        "tips_collected": engagement.tips_collected,
        "engagement_score": engagement_score(
            engagement.current_streak,
            tips_viewed,
            days_in_period,
            badges_earned=len(engagement.badges_earned),
        ),
    }


def build_performance(
    overview: Dict,
    module_reports: Dict[str, Dict],
    all_time_scores: Sequence[float],
) -> Dict:
    """Period vs all-time; module figures are reused from the module reports."""
    all_time_average = rounded_mean(all_time_scores)
    return {
        "this_period_best": overview["best_score"],
        "this_period_average": overview["average_score"],
        "all_time_best": max(all_time_scores) if all_time_scores else None,
        "all_time_average": all_time_average,
        "period_vs_all_time": delta_vs_previous(overview["average_score"], all_time_average),
        "total_scored_videos_all_time": len(all_time_scores),
        "module_breakdown": {
            module: {
                "average": data["current_average_score"],
                "best": data["best_score"],
                "trend": data["trend"],
            }
            for module, data in module_reports.items()
        },
    }


def build_coach_feedback(annotations: Sequence[AnnotationRecord], context: ReportContext) -> Dict:
    coach_annotations = [
        a for a in annotations
        if a.annotator_type == "scout" and a.scout_id and a.scout_id != context.athlete_id
    ]
    self_annotations = [a for a in annotations if a.annotator_type == "player"]

    return {
        "total_annotations_received": len(coach_annotations),
        "unique_coaches_reviewing": len({a.scout_id for a in coach_annotations}),
        "player_self_annotations": len(self_annotations),
        "feedback_breakdown": _count_by([a.video_id for a in coach_annotations]),
    }
