"""Scheduler for background maintenance jobs.

Each registered job runs in its own asyncio task on a fixed interval until
the scheduler is stopped. A failing run is logged and retried on the next
tick; it never stops the loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaintenanceJob:
    """A named coroutine factory run every `interval_seconds`."""

    name: str
    interval_seconds: float
    run: Callable[[], Awaitable[int]]


class MaintenanceScheduler:
    """Runs maintenance jobs on fixed intervals."""

    STOP_TIMEOUT_SECONDS = 10.0

    def __init__(self) -> None:
        self._jobs: list[MaintenanceJob] = []
        self._tasks: list[asyncio.Task] = []
        self._running = False
        self._stop_event = asyncio.Event()

    def register(self, job: MaintenanceJob) -> None:
        """Add a job. Jobs registered after start() run from the next start()."""
        self._jobs.append(job)
        logger.info(
            "Registered maintenance job %s (every %s seconds)",
            job.name,
            job.interval_seconds,
        )

    @property
    def jobs(self) -> list[MaintenanceJob]:
        return list(self._jobs)

    @property
    def is_running(self) -> bool:
        """Check if the scheduler is currently running."""
        return self._running

    async def start(self) -> None:
        """Start one loop per registered job."""
        if self._running:
            logger.warning("MaintenanceScheduler is already running")
            return

        self._running = True
        self._stop_event.clear()
        self._tasks = [
            asyncio.create_task(self._run_loop(job), name=f"maintenance:{job.name}")
            for job in self._jobs
        ]
        logger.info("MaintenanceScheduler started with %d jobs", len(self._tasks))

    async def stop(self) -> None:
        """Stop all loops, cancelling any that do not finish in time."""
        if not self._running:
            return

        logger.info("Stopping MaintenanceScheduler...")
        self._running = False
        self._stop_event.set()

        for task in self._tasks:
            try:
                await asyncio.wait_for(task, timeout=self.STOP_TIMEOUT_SECONDS)
            except asyncio.TimeoutError:
                logger.warning(
                    "Maintenance task %s did not stop gracefully, cancelling",
                    task.get_name(),
                )
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            except asyncio.CancelledError:
                pass
        self._tasks = []

        logger.info("MaintenanceScheduler stopped")

    async def run_once(self, name: str) -> int:
        """Run one job immediately, outside its schedule.

        Raises:
            KeyError: If no job has that name.
        """
        for job in self._jobs:
            if job.name == name:
                return await job.run()
        raise KeyError(name)

    async def _run_loop(self, job: MaintenanceJob) -> None:
        logger.info("Maintenance loop %s started", job.name)

        while self._running:
            try:
                affected = await job.run()
                logger.info("Maintenance job %s: %d items", job.name, affected)
            except Exception as e:
                logger.exception("Maintenance job %s failed: %s", job.name, e)

            # Wait for the interval or until stop is signaled
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=job.interval_seconds,
                )
                break
            except asyncio.TimeoutError:
                continue

        logger.info("Maintenance loop %s ended", job.name)
