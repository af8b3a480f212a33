"""
Report Narrative Synthesizer

Turns the computed report sections into a coaching summary and a next-cycle
action plan. Selection is rule-based over the section numbers, so the same
sections always produce the same text. Nothing here reads data or
recomputes an aggregate.
"""

from typing import Dict, List, Optional

HIGH_SCORE = 85
STRONG_CONSISTENCY = 60
WEAK_CONSISTENCY = 40
SCHEDULE_CONSISTENCY = 50
MAINTAIN_PACE_CONSISTENCY = 70
LOW_CONSISTENCY = 30
NUTRITION_STREAK_HIGHLIGHT = 7
NUTRITION_STREAK_EXCELLENT = 14

MAX_PLAN_ITEMS = 5
MAX_MODULE_PRIORITIES = 3
WEAKNESS_EXCERPT_CHARS = 100


def _format_hour(hour: int) -> str:
    if hour == 0:
        return "12am"
    if hour < 12:
        return f"{hour}am"
    if hour == 12:
        return "12pm"
    return f"{hour - 12}pm"


def _excerpt(text: str, limit: int = WEAKNESS_EXCERPT_CHARS) -> str:
    return text if len(text) <= limit else text[:limit].rstrip() + "..."


def _highlights(sections: Dict) -> List[str]:
    overview = sections["overview"]
    behavior = sections["behavior"]
    analysis = sections["analysis"]
    nutrition = sections["nutrition"]

    highlights = []
    best = overview.get("best_score")
    if best is not None and best >= HIGH_SCORE:
        highlights.append(f"You achieved an impressive best score of {best:g}/100 this period!")
    change = overview.get("score_change")
    if change is not None and change > 0:
        highlights.append(f"Your average score improved by {change} points from last period.")
    if behavior["consistency_score"] >= STRONG_CONSISTENCY:
        highlights.append(f"Outstanding training consistency at {behavior['consistency_score']}%!")
    if nutrition["current_streak"] >= NUTRITION_STREAK_HIGHLIGHT:
        highlights.append(f"Maintained a {nutrition['current_streak']}-day nutrition streak!")
    if analysis["overall_trend"] == "improving":
        highlights.append("Your overall performance trend is on an upward trajectory!")
    return highlights or ["Keep pushing - your best performances are ahead!"]


def _improvements(sections: Dict) -> List[str]:
    overview = sections["overview"]
    behavior = sections["behavior"]
    analysis = sections["analysis"]

    improvements = []
    if behavior["consistency_score"] < WEAK_CONSISTENCY:
        improvements.append("Focus on training more consistently throughout the period.")
    if behavior["under_utilized_modules"]:
        improvements.append(
            f"Explore your {behavior['under_utilized_modules'][0]} subscription for well-rounded development."
        )
    change = overview.get("score_change")
    if change is not None and change < 0:
        improvements.append("Work on recovering from last period's dip with focused practice.")
    if analysis["overall_trend"] == "declining":
        improvements.append("Address the declining trend by reviewing your recent analysis feedback.")
    return improvements or ["Maintain your current approach and stay consistent."]


def _personalized_message(sections: Dict) -> str:
    overview = sections["overview"]
    trend = sections["analysis"]["overall_trend"]
    uploads = overview["total_uploads"]

    if uploads == 0:
        return (
            "This period saw limited activity. Remember, consistent practice is key to improvement. "
            "Set a goal to upload at least 2-3 videos next period to start tracking your progress!"
        )
    if trend == "improving":
        return (
            f"Great period! You uploaded {uploads} videos and showed clear improvement. "
            f"Your dedication to {overview.get('most_used_module') or 'training'} is paying off. "
            "Keep building on this momentum!"
        )
    if trend == "declining":
        return (
            f"You stayed active with {uploads} uploads, but scores dipped slightly. "
            "This is normal - focus on the fundamentals and the scores will follow. "
            "Review your analysis feedback for specific areas to work on."
        )
    return (
        f"Solid period with {uploads} uploads! Your performance is stable, which is a good foundation. "
        "To break through to the next level, focus on consistency and addressing the specific "
        "feedback in your analyses."
    )


def _is_entitled(module: str, subscribed: List[str]) -> bool:
    return any(s == module or s.endswith(f"_{module}") for s in subscribed)


def _upload_frequency(consistency: int) -> str:
    if consistency >= MAINTAIN_PACE_CONSISTENCY:
        return "Maintain current pace (4-5 videos per week)"
    if consistency < LOW_CONSISTENCY:
        return "Start with 2 videos per week, build to 3-4"
    return "3-4 videos per week"


def _nutrition_emphasis(current_streak: int) -> str:
    if current_streak == 0:
        return "Start building a nutrition streak - daily tips help optimize performance."
    if current_streak >= NUTRITION_STREAK_EXCELLENT:
        return "Excellent nutrition habits! Explore new tip categories."
    return "Visit the nutrition module daily to maintain your streak."


def _action_plan(sections: Dict) -> Dict:
    overview = sections["overview"]
    behavior = sections["behavior"]
    analysis = sections["analysis"]
    modules = sections["module_reports"]
    nutrition = sections["nutrition"]

    major_focus: List[str] = []
    small_adjustments: List[str] = []
    module_priorities: List[str] = []

    if analysis["common_weaknesses"]:
        major_focus.append(f"Address: {_excerpt(analysis['common_weaknesses'][0])}")

    if behavior["consistency_score"] < SCHEDULE_CONSISTENCY:
        major_focus.append("Establish a consistent training schedule - aim for every other day.")

    if analysis["overall_trend"] == "declining" and behavior["consistency_score"] < SCHEDULE_CONSISTENCY:
        major_focus.append("Scores are slipping while sessions are sparse - rebuild volume before intensity.")

    for module, data in modules.items():
        if data["trend"] == "declining":
            major_focus.append(f"Focus on {module} - scores have been declining.")
            module_priorities.append(module)
        elif data["uploads_this_period"] == 0 and _is_entitled(module, behavior["subscribed_modules"]):
            small_adjustments.append(f"Start using your {module} subscription.")

    peak_hour: Optional[int] = behavior.get("peak_activity_hour")
    if peak_hour is not None:
        small_adjustments.append(
            f"Your peak training time is around {_format_hour(peak_hour)} - "
            "schedule practices then for best focus."
        )

    if analysis["most_recommended_drills"]:
        small_adjustments.append(f"Prioritize drill: {analysis['most_recommended_drills'][0]['label']}")

    if not major_focus:
        major_focus = [
            "Maintain your current training approach.",
            "Focus on video quality over quantity.",
        ]
    if not small_adjustments:
        small_adjustments = [
            "Review previous analyses before each practice.",
            "Set specific goals for each training session.",
        ]
    if not module_priorities:
        module_priorities.append(overview.get("most_used_module") or (list(modules) or ["hitting"])[0])

    return {
        "major_focus_areas": major_focus[:MAX_PLAN_ITEMS],
        "small_adjustments": small_adjustments[:MAX_PLAN_ITEMS],
        "suggested_upload_frequency": _upload_frequency(behavior["consistency_score"]),
        "module_priorities": module_priorities[:MAX_MODULE_PRIORITIES],
        "nutrition_emphasis": _nutrition_emphasis(nutrition["current_streak"]),
    }


def synthesize(sections: Dict) -> Dict:
    """
    Build the narrative part of a report from its computed sections.

    Expects the overview, behavior, analysis, module_reports and nutrition
    sections. Returns coaching_summary (str), key_highlights,
    areas_for_improvement, action_plan (major focus areas then small
    adjustments) and action_plan_detail.
    """
    plan = _action_plan(sections)
    return {
        "coaching_summary": _personalized_message(sections),
        "key_highlights": _highlights(sections),
        "areas_for_improvement": _improvements(sections),
        "action_plan": plan["major_focus_areas"] + plan["small_adjustments"],
        "action_plan_detail": plan,
    }
