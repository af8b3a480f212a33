"""
Celery worker entry point.

This imports the Celery app and report tasks from the API module.
Run with: celery -A main worker --beat
"""
import os
import sys

# Add API directory to path so we can import tasks
sys.path.insert(0, os.environ.get("API_PATH", os.path.join(os.path.dirname(__file__), "..", "api")))

# Import Celery app and tasks from API
from tasks import celery_app  # noqa: E402


# Liveness probe for the worker
@celery_app.task(name="worker.health_check")
def health_check():
    """Health check task"""
    return {"status": "ok"}
