"""
Celery Beat Schedule Configuration

Defines periodic tasks that run on a schedule.
"""

from celery.schedules import crontab

# Schedule configuration
beat_schedule = {
    # Daily sweep - enqueues a report task for every athlete whose
    # 30-day cycle has come due. Each task re-checks the due date.
    'generate-due-monthly-reports': {
        'task': 'tasks.generate_due_monthly_reports',
        'schedule': crontab(hour=6, minute=0),  # Every day at 6 AM UTC
    },
}
