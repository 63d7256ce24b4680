"""Shareable link business logic.

A link moves through a one-way state machine per token:

    unknown            -> LinkNotFoundError
    known, unexpired   -> (asset_id, Asset)
    known, expired     -> row deleted, LinkExpiredError
    (after deletion)   -> LinkNotFoundError

Expiry is a comparison against wall-clock UTC read at validation time.
"""

import logging
import math
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

from clipvault.dao.asset_dao import AssetDAO
from clipvault.dao.link_dao import ShareableLinkDAO
from clipvault.errors import (
    AssetNotFoundError,
    LinkExpiredError,
    LinkNotFoundError,
    ValidationFailedError,
)
from clipvault.models.domain import Asset, ShareableLink
from clipvault.timeutil import utc_now

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16


class LinkService:
    """Issues and validates expiring share tokens bound to an asset."""

    def __init__(
        self,
        link_dao: ShareableLinkDAO,
        asset_dao: AssetDAO,
        public_base_url: str,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize LinkService.

        Args:
            link_dao: Data access object for links.
            asset_dao: Data access object for assets (read-only here).
            public_base_url: Origin used to build access URLs.
            clock: Returns the current naive UTC time.
        """
        self.link_dao = link_dao
        self.asset_dao = asset_dao
        self.public_base_url = public_base_url.rstrip("/")
        self.clock = clock

    def stream_url(self, token: str) -> str:
        """Public URL that streams the asset behind a token."""
        return f"{self.public_base_url}/api/share/{token}"

    async def issue(self, asset_id: int, ttl_hours: float) -> ShareableLink:
        """Create a link that expires ttl_hours from now.

        Args:
            asset_id: Asset to share.
            ttl_hours: Positive, finite number of hours.

        Returns:
            Persisted ShareableLink including its access URL.

        Raises:
            ValidationFailedError: If ttl_hours is not a positive number or
                puts the expiry beyond the representable date range.
            AssetNotFoundError: If the asset does not exist.
            StorageFailureError: If the insert fails (including a token
                collision, which is never resolved by overwriting).
        """
        if (
            isinstance(ttl_hours, bool)
            or not isinstance(ttl_hours, (int, float))
            or not math.isfinite(ttl_hours)
            or ttl_hours <= 0
        ):
            raise ValidationFailedError("Invalid expiry hours")

        try:
            expires_at = self.clock() + timedelta(hours=ttl_hours)
        except OverflowError as exc:
            raise ValidationFailedError("Invalid expiry hours") from exc

        asset = await self.asset_dao.get_by_id(asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)

        token = secrets.token_hex(TOKEN_BYTES)
        link = await self.link_dao.create(asset_id, token, expires_at)

        logger.info(
            "Issued share link %s for asset %s, expires %s",
            link.id,
            asset_id,
            expires_at.isoformat(),
        )
        return link.model_copy(update={"url": self.stream_url(token)})

    async def validate(self, token: str) -> tuple[int, Asset]:
        """Resolve a token to its asset, invalidating it if expired.

        Never mutates the asset.

        Returns:
            (asset_id, Asset) for a known, unexpired token.

        Raises:
            LinkNotFoundError: Unknown token, or one already invalidated.
            LinkExpiredError: Token was known but expired; it is now deleted.
            AssetNotFoundError: Link is valid but its asset has vanished.
        """
        link = await self.link_dao.get_by_token(token)
        if link is None:
            raise LinkNotFoundError()

        if self.clock() >= link.expires_at:
            if not await self.link_dao.delete_by_token(token):
                # Another validation already invalidated it
                raise LinkNotFoundError()
            logger.info("Share link %s expired and was invalidated", link.id)
            raise LinkExpiredError()

        asset = await self.asset_dao.get_by_id(link.asset_id)
        if asset is None:
            logger.error(
                "Share link %s references missing asset %s",
                link.id,
                link.asset_id,
            )
            raise AssetNotFoundError(
                link.asset_id,
                f"Shared asset {link.asset_id} no longer exists",
            )

        return link.asset_id, asset

    async def purge_expired(self) -> int:
        """Delete every expired link ahead of its next validation.

        Returns:
            Number of links deleted.
        """
        deleted = await self.link_dao.delete_expired(self.clock())
        if deleted:
            logger.info("Purged %d expired share links", deleted)
        return deleted
