"""Periodic maintenance jobs.

Neither job changes what a client can observe for live data: stale
incoming files belong to uploads that never reached the asset service,
and the link sweep only removes rows that are already invalid.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clipvault.config import ClipVaultConfig
    from clipvault.services.link_service import LinkService
    from clipvault.services.staging_service import StagingService

logger = logging.getLogger(__name__)


async def incoming_cleanup_task(
    staging: "StagingService",
    config: "ClipVaultConfig",
) -> int:
    """Delete abandoned transient uploads.

    Args:
        staging: StagingService owning the incoming area.
        config: Configuration with the retention window.

    Returns:
        Number of files deleted.
    """
    logger.info(
        "Starting incoming cleanup (retention: %d hours)",
        config.incoming_retention_hours,
    )
    return await staging.cleanup_stale_incoming(
        max_age_hours=config.incoming_retention_hours
    )


async def link_sweep_task(link_service: "LinkService") -> int:
    """Delete expired share links ahead of their next validation."""
    return await link_service.purge_expired()
