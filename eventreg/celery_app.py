from __future__ import annotations

import logging
from typing import Any

from celery import Celery, Task
from celery.signals import setup_logging
from kombu import Queue

from .core.settings import settings

logger = logging.getLogger(__name__)

MAINTENANCE_QUEUE = "maintenance"

celery_app = Celery(
    "eventreg",
    broker=settings.worker.CELERY_BROKER_URL,
    backend=settings.worker.CELERY_RESULT_BACKEND,
    include=["eventreg.tasks"],
)

celery_app.conf.update(
    task_serializer=settings.worker.CELERY_TASK_SERIALIZER,
    result_serializer=settings.worker.CELERY_RESULT_SERIALIZER,
    accept_content=settings.worker.CELERY_ACCEPT_CONTENT,
    timezone=settings.worker.CELERY_TIMEZONE,
    enable_utc=settings.worker.CELERY_ENABLE_UTC,
    task_default_queue="default",
    task_queues=(Queue("default"), Queue(MAINTENANCE_QUEUE)),
    task_routes={"eventreg.tasks.purge_revoked_tokens": {"queue": MAINTENANCE_QUEUE}},
    beat_schedule={
        "purge-revoked-tokens": {
            "task": "eventreg.tasks.purge_revoked_tokens",
            "schedule": float(settings.worker.REVOCATION_PURGE_INTERVAL_SECONDS),
        },
    },
    # Purging is idempotent, so a redelivered task is harmless
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
    result_expires=settings.worker.REVOCATION_PURGE_INTERVAL_SECONDS,
)


@setup_logging.connect  # type: ignore[misc]
def configure_worker_logging(*args: Any, **kwargs: Any) -> None:
    """Worker logs use the same JSON layout as the API process."""
    from logging.config import dictConfig

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": "pythonjsonlogger.json.JsonFormatter",
                    "fmt": "%(levelname)s %(asctime)s %(message)s %(name)s %(processName)s",
                    "rename_fields": {"levelname": "level", "asctime": "time"},
                },
            },
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "json"},
            },
            "root": {
                "level": settings.monitoring.LOG_LEVEL,
                "handlers": ["console"],
            },
        }
    )


class LoggedTask(Task):
    """Logs the outcome of every task run."""

    abstract = True

    def on_failure(
        self,
        exc: Exception,
        task_id: str,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        einfo: Any,
    ) -> None:
        logger.error(
            "Task failed",
            extra={"task_id": task_id, "task_name": self.name, "error": str(exc)},
        )

    def on_success(
        self,
        retval: Any,
        task_id: str,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> None:
        logger.info(
            "Task succeeded",
            extra={"task_id": task_id, "task_name": self.name, "result": retval},
        )


celery_app.Task = LoggedTask
