"""Scheduler module for background maintenance.

Provides the MaintenanceScheduler and the jobs it runs: cleanup of
abandoned transient uploads and the optional expired-link sweep.
"""

from clipvault.scheduler.maintenance_scheduler import MaintenanceJob, MaintenanceScheduler
from clipvault.scheduler.maintenance_tasks import incoming_cleanup_task, link_sweep_task

__all__ = [
    "MaintenanceJob",
    "MaintenanceScheduler",
    "incoming_cleanup_task",
    "link_sweep_task",
]
