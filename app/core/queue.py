"""Job queue backed by arq (Redis)."""

from typing import Any, Protocol

import structlog
from arq import create_pool
from arq.connections import ArqRedis, RedisSettings

from app.config import settings

logger = structlog.get_logger(__name__)

SEND_NOTIFICATION = "send_notification"
SEND_DOCTOR_ALERT = "send_doctor_alert"


class JobQueue(Protocol):
    """Anything that can hand a job to the background worker."""

    async def enqueue(self, kind: str, payload: dict[str, Any], job_id: str | None = None) -> None:
        """Enqueue a job for the worker function named ``kind``."""
        ...


def get_redis_settings() -> RedisSettings:
    """Get Redis settings shared by the API-side queue and the worker."""
    return RedisSettings(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        ssl=settings.redis_ssl,
        conn_timeout=15,
        conn_retry_delay=1,
    )


class ArqJobQueue:
    """JobQueue over an arq Redis pool, created on first use."""

    def __init__(self, redis_settings: RedisSettings | None = None, pool: ArqRedis | None = None):
        self.redis_settings = redis_settings or get_redis_settings()
        self._pool = pool

    async def _get_pool(self) -> ArqRedis:
        if self._pool is None:
            self._pool = await create_pool(self.redis_settings)
        return self._pool

    async def enqueue(self, kind: str, payload: dict[str, Any], job_id: str | None = None) -> None:
        """
        Enqueue a job.

        Args:
            kind: Worker function name
            payload: JSON-serialisable job payload, passed as the single argument
            job_id: Optional arq job id; a job with the same id is enqueued once
        """
        pool = await self._get_pool()
        job = await pool.enqueue_job(kind, payload, _job_id=job_id)
        if job is None:
            logger.info("job_already_enqueued", kind=kind, job_id=job_id)
            return
        logger.info("job_enqueued", kind=kind, job_id=job.job_id)

    async def close(self) -> None:
        """Close the underlying Redis pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
