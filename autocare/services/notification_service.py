"""
Notification handoff to the ARQ worker

Services record notifications on a per-request queue while they mutate data.
The queue is flushed to Redis after the response is sent, so a slow or
unavailable Redis never fails or delays the business operation.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from arq import create_pool
from fastapi import BackgroundTasks

logger = logging.getLogger(__name__)

ENQUEUE_TIMEOUT_SECONDS = 10.0

_arq_pool = None
_arq_pool_lock = asyncio.Lock()


class NotificationKind(str, enum.Enum):
    APPOINTMENT_RECEIVED = "APPOINTMENT_RECEIVED"
    APPOINTMENT_CONFIRMED = "APPOINTMENT_CONFIRMED"
    APPOINTMENT_ALLOCATED = "APPOINTMENT_ALLOCATED"
    APPOINTMENT_COMPLETED = "APPOINTMENT_COMPLETED"
    APPOINTMENT_CANCELLED = "APPOINTMENT_CANCELLED"
    STATUS_CHANGED = "STATUS_CHANGED"


@dataclass
class NotificationJob:
    function: str
    args: tuple


async def get_arq_pool():
    """Create the ARQ pool once and reuse it across requests"""
    global _arq_pool
    async with _arq_pool_lock:
        if _arq_pool is None:
            from ..worker import get_redis_settings

            _arq_pool = await asyncio.wait_for(
                create_pool(get_redis_settings()), timeout=ENQUEUE_TIMEOUT_SECONDS
            )
            logger.info("📡 ARQ pool created for notification jobs")
    return _arq_pool


class NotificationQueue:
    """Collects worker jobs during a request and enqueues them afterwards"""

    def __init__(self):
        self.jobs: list[NotificationJob] = []

    def notify(self, appointment, kind: NotificationKind, note: Optional[str] = None) -> None:
        self.jobs.append(
            NotificationJob("send_appointment_notification_task", (appointment.id, kind.value, note))
        )
        logger.debug(f"📝 Queued {kind.value} notification for appointment {appointment.id}")

    def enqueue(self, function: str, *args) -> None:
        self.jobs.append(NotificationJob(function, args))

    async def flush(self) -> None:
        if not self.jobs:
            return

        jobs, self.jobs = self.jobs, []
        try:
            pool = await get_arq_pool()
        except Exception as e:
            logger.error(f"❌ Could not reach Redis, dropping {len(jobs)} notification job(s): {e}")
            return

        for job in jobs:
            try:
                await pool.enqueue_job(job.function, *job.args)
                logger.info(f"📧 Notification job queued: {job.function}")
            except Exception as e:
                logger.error(f"❌ Failed to queue {job.function}: {e}")


def get_notification_queue(background_tasks: BackgroundTasks) -> NotificationQueue:
    """Dependency: a fresh queue flushed once the response has been sent"""
    queue = NotificationQueue()
    background_tasks.add_task(queue.flush)
    return queue
