"""Celery app and periodic maintenance tasks."""

import logging

from celery import Celery

from authcore.core.config import settings

logger = logging.getLogger("authcore.tasks")

celery_app = Celery(
    "authcore",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_soft_time_limit=60,
    task_time_limit=120,
    beat_schedule={
        "purge-expired-sessions": {
            "task": "purge_expired_sessions",
            "schedule": settings.SESSION_PURGE_INTERVAL_MINUTES * 60.0,
        },
    },
)


def purge_sessions(db) -> int:
    """Delete inactive and expired sessions; returns rows removed."""
    from authcore.db.store import SqlStore
    from authcore.repositories.session_repository import SessionRepository
    from authcore.services.token_service import token_service

    removed = SessionRepository(SqlStore(db), token_service).purge_expired()
    logger.info("Purged %d dead session(s)", removed)
    return removed


@celery_app.task(name="purge_expired_sessions")
def purge_expired_sessions() -> dict:
    """Periodic cleanup of dead sessions.

    Pure deletion, so overlapping runs and concurrent request traffic are safe.
    """
    from authcore.db.session import SessionLocal

    db = SessionLocal()
    try:
        return {"removed": purge_sessions(db)}
    finally:
        db.close()
