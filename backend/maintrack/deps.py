"""Process-wide collaborators shared by the API and the Celery worker."""
from functools import lru_cache

from .config import settings
from .database import SessionLocal
from .scheduler import SchedulerContext
from .services.notifier import Notifier


@lru_cache()
def get_scheduler_context() -> SchedulerContext:
    """Built once per process; tests override the FastAPI dependency instead."""
    return SchedulerContext.build(settings, SessionLocal)


def get_notifier() -> Notifier:
    return get_scheduler_context().notifier
