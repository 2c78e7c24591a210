"""Run one reminder sweep by hand, outside the worker's hourly cron.

Jobs are enqueued to the same Redis queue the worker consumes.
"""

import asyncio

import structlog

from app.config import settings
from app.core.clock import SystemClock
from app.core.queue import ArqJobQueue
from app.database import AsyncSessionLocal, engine
from app.middleware.logging import bind_correlation_id, configure_logging
from app.repositories import AppointmentRepository, NotificationRepository, PatientRepository
from app.services.reminder_scheduler import ReminderScheduler

logger = structlog.get_logger(__name__)


async def main() -> None:
    """Run the sweep and print what was enqueued."""
    configure_logging()
    bind_correlation_id("manual-sweep")

    clock = SystemClock()
    queue = ArqJobQueue()
    scheduler = ReminderScheduler(
        appointments=AppointmentRepository(AsyncSessionLocal, clock),
        patients=PatientRepository(AsyncSessionLocal, clock),
        ledger=NotificationRepository(AsyncSessionLocal, clock),
        queue=queue,
        clock=clock,
    )

    try:
        enqueued = await scheduler.run_reminder_sweep()
    finally:
        await queue.close()
        await engine.dispose()

    for reminder in enqueued:
        print(f"{reminder.kind.value}\t{reminder.appointment_id}")
    print(f"✓ {len(enqueued)} reminder(s) enqueued for {settings.clinic_name}")


if __name__ == "__main__":
    asyncio.run(main())
