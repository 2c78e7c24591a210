"""In-memory collaborators for service tests."""

from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from app.schemas.notifications import SendResult


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def set(self, now: datetime) -> None:
        self.current = now

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class InMemoryQueue:
    """Records enqueued jobs instead of talking to Redis."""

    def __init__(self) -> None:
        self.jobs: list[tuple[str, dict[str, Any], str | None]] = []

    async def enqueue(self, kind: str, payload: dict[str, Any], job_id: str | None = None) -> None:
        self.jobs.append((kind, payload, job_id))

    def payloads(self, kind: str) -> list[dict[str, Any]]:
        return [payload for job_kind, payload, _ in self.jobs if job_kind == kind]


class BrokenQueue:
    """Queue whose broker is down."""

    async def enqueue(self, kind: str, payload: dict[str, Any], job_id: str | None = None) -> None:
        raise ConnectionError("redis unavailable")


class FakeChannel:
    """Message channel that records deliveries and can be told to fail."""

    def __init__(self, fail: bool = False, permanent: bool = False):
        self.fail = fail
        self.permanent = permanent
        self.sent: list[tuple[str, str]] = []

    async def send(self, destination: str, body: str) -> SendResult:
        if self.permanent:
            return SendResult(
                success=False, error="recipient not on WhatsApp", status_code=400, retryable=False
            )
        if self.fail:
            return SendResult(success=False, error="provider unavailable", status_code=503)
        self.sent.append((destination, body))
        return SendResult(success=True, message_id=f"wamid.{len(self.sent)}")


class BrokenAuditLog:
    """Audit store that always fails."""

    async def record(self, patient_id: UUID, action: str, payload: dict[str, Any]) -> None:
        raise RuntimeError("audit store down")
