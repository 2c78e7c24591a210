"""
arq background worker.

Consumes notification and doctor-alert jobs and runs the hourly reminder
sweep. Start with ``arq app.worker.WorkerSettings``.
"""

from typing import Any
from uuid import uuid4

import structlog
from arq import Retry
from arq.cron import cron

from app.config import settings
from app.core.clock import SystemClock
from app.core.exceptions import MessageChannelException
from app.core.queue import ArqJobQueue, get_redis_settings
from app.database import AsyncSessionLocal, engine
from app.dependencies import Services, build_services
from app.middleware.logging import bind_correlation_id, configure_logging
from app.schemas.notifications import DoctorAlertJob, NotificationJob
from app.services.message_channel import WhatsAppChannel

logger = structlog.get_logger(__name__)


def retry_or_raise(ctx: dict[str, Any], exc: MessageChannelException) -> Retry:
    """
    Turn a delivery failure into an arq retry with linear backoff.

    Raises:
        MessageChannelException: On the last allowed attempt
    """
    job_try = ctx.get("job_try", 1)
    if job_try >= settings.notification_max_tries:
        logger.error("job_retries_exhausted", job_try=job_try, error=exc.message, **exc.context)
        raise exc

    defer = job_try * settings.notification_retry_delay_seconds
    logger.warning("job_retry_scheduled", job_try=job_try, defer_seconds=defer, error=exc.message)
    return Retry(defer=defer)


async def send_notification(ctx: dict[str, Any], payload: dict[str, Any]) -> str:
    """
    Deliver one patient notification.

    Args:
        ctx: arq context
        payload: Serialised ``NotificationJob``

    Returns:
        Dispatch outcome
    """
    job = NotificationJob.model_validate(payload)
    structlog.contextvars.clear_contextvars()
    bind_correlation_id(job.correlation_id)

    services: Services = ctx["services"]
    try:
        outcome = await services.dispatcher.dispatch(job)
    except MessageChannelException as e:
        raise retry_or_raise(ctx, e) from e

    return outcome.value


async def send_doctor_alert(ctx: dict[str, Any], payload: dict[str, Any]) -> str:
    """Deliver an escalation alert to the doctor."""
    job = DoctorAlertJob.model_validate(payload)
    structlog.contextvars.clear_contextvars()
    bind_correlation_id(job.correlation_id)

    services: Services = ctx["services"]
    try:
        outcome = await services.dispatcher.send_doctor_alert(job.escalation_id)
    except MessageChannelException as e:
        raise retry_or_raise(ctx, e) from e

    return outcome.value


async def reminder_sweep(ctx: dict[str, Any]) -> int:
    """Hourly reminder sweep. Returns the number of reminders enqueued."""
    structlog.contextvars.clear_contextvars()
    bind_correlation_id(f"sweep-{uuid4()}")

    services: Services = ctx["services"]
    enqueued = await services.reminders.run_reminder_sweep()
    return len(enqueued)


async def startup(ctx: dict[str, Any]) -> None:
    """Validate configuration and wire services once for the worker process."""
    configure_logging()
    settings.validate_runtime()

    channel = WhatsAppChannel.from_settings(settings)
    ctx["channel"] = channel
    ctx["services"] = build_services(
        session_factory=AsyncSessionLocal,
        settings=settings,
        clock=SystemClock(),
        queue=ArqJobQueue(pool=ctx["redis"]),
        channel=channel,
    )
    logger.info("worker_started", max_tries=settings.notification_max_tries)


async def shutdown(ctx: dict[str, Any]) -> None:
    """Release HTTP and database connections."""
    await ctx["channel"].aclose()
    await engine.dispose()
    logger.info("worker_stopped")


class WorkerSettings:
    """arq worker settings."""

    functions = [send_notification, send_doctor_alert]
    cron_jobs = [cron(reminder_sweep, minute=settings.reminder_sweep_minute)]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = get_redis_settings()

    max_tries = settings.notification_max_tries
    job_timeout = 60
    keep_result = 3600
