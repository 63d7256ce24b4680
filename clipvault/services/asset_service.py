"""Asset lifecycle business logic.

This service keeps files on disk and asset records in the metadata store
consistent across multi-step operations (move, transcode, persist) that can
fail partway. The ordering discipline is:

- validate arguments before touching anything;
- produce and verify the file first, persist the record last;
- on any failure, delete whatever file this operation produced before the
  error propagates, and leave existing records untouched.

Cleanup is awaited but never raises, so a cleanup problem cannot mask the
original error. The store gives single-statement atomicity only; writers
to the same asset id are serialized with a KeyedLock.
"""

import asyncio
import logging
import math
from collections.abc import Awaitable, Sequence
from pathlib import Path
from typing import TypeVar

from clipvault.dao.asset_dao import AssetDAO
from clipvault.enums import StorageArea
from clipvault.errors import (
    AssetNotFoundError,
    ClipVaultError,
    GatewayFailureError,
    StorageFailureError,
    ValidationFailedError,
)
from clipvault.models.domain import Asset, IncomingFile, UploadConstraints
from clipvault.services.keyed_lock import KeyedLock
from clipvault.services.manifest import render_manifest
from clipvault.services.staging_service import StagingService
from clipvault.services.transcoder import TranscodingGateway

logger = logging.getLogger(__name__)

R = TypeVar("R")

DEFAULT_EXTENSION = ".mp4"


class AssetService:
    """Upload, trim and merge media assets.

    Assets are created only once their file is confirmed present, correctly
    sized and within duration bounds. Trim rewrites an asset in place while
    preserving its first stored path; merge always creates a new asset.
    Assets are never deleted here.
    """

    def __init__(
        self,
        asset_dao: AssetDAO,
        staging: StagingService,
        gateway: TranscodingGateway,
        *,
        max_upload_bytes: int | None = None,
        verify_received_size: bool = True,
        locks: KeyedLock | None = None,
    ) -> None:
        """Initialize AssetService.

        Args:
            asset_dao: Data access object for asset records.
            staging: Filesystem staging helper.
            gateway: Transcoding engine (probe/trim/concat).
            max_upload_bytes: Server-wide ceiling applied on top of the
                per-request size constraint.
            verify_received_size: Reject uploads whose stored size differs
                from the byte count the HTTP layer received.
            locks: Per-asset lock registry (a private one if omitted).
        """
        self.asset_dao = asset_dao
        self.staging = staging
        self.gateway = gateway
        self.max_upload_bytes = max_upload_bytes
        self.verify_received_size = verify_received_size
        self._locks = locks or KeyedLock()

    async def get_asset(self, asset_id: int) -> Asset:
        """Resolve an asset.

        Raises:
            AssetNotFoundError: If the asset does not exist.
        """
        asset = await self.asset_dao.get_by_id(asset_id)
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    async def upload(
        self, incoming: IncomingFile, constraints: UploadConstraints
    ) -> Asset:
        """Turn a transient upload into a stored asset.

        The file is moved to a randomly named permanent path, then checked
        in order: readable and matching the received size, within the size
        limit, within the duration window. Only then is the record written.

        Args:
            incoming: Transient upload handed over by the HTTP layer.
            constraints: Size and duration bounds for this upload.

        Returns:
            The created Asset.

        Raises:
            ValidationFailedError: Size or duration out of bounds.
            StorageFailureError: Move, stat or record write failed, or the
                stored file is truncated.
            GatewayFailureError: Duration probe failed.
        """
        max_size = constraints.max_size_bytes
        if self.max_upload_bytes is not None:
            max_size = min(max_size, self.max_upload_bytes)

        extension = self.staging.safe_extension(incoming.original_name)
        stored_path = self.staging.unique_path(StorageArea.UPLOADS, extension)

        try:
            await self.staging.move_into(Path(incoming.path), stored_path)

            stat = await self.staging.stat_readable(stored_path)
            if self.verify_received_size and stat.size_bytes != incoming.received_bytes:
                raise StorageFailureError(
                    f"Stored file size {stat.size_bytes} does not match "
                    f"received size {incoming.received_bytes}; upload truncated"
                )
            if stat.size_bytes > max_size:
                raise ValidationFailedError(
                    f"File size exceeds the limit of {max_size} bytes."
                )

            duration = await self._gateway(self.gateway.probe_duration(stored_path))
            if not (
                constraints.min_duration_seconds
                <= duration
                <= constraints.max_duration_seconds
            ):
                raise ValidationFailedError(
                    "Media duration must be between "
                    f"{constraints.min_duration_seconds:g} and "
                    f"{constraints.max_duration_seconds:g} seconds."
                )

            asset = await self.asset_dao.create(
                original_name=incoming.original_name,
                storage_path=str(stored_path),
                size_bytes=stat.size_bytes,
                duration_seconds=duration,
                media_type=self.staging.media_type_for(stored_path),
            )
        except (Exception, asyncio.CancelledError) as e:
            logger.info("Upload of %r rejected: %s", incoming.original_name, e)
            await self.staging.remove_quietly(stored_path)
            await self.staging.remove_quietly(Path(incoming.path))
            raise

        logger.info(
            "Uploaded asset %s (%s, %d bytes, %.2fs)",
            asset.id,
            incoming.original_name,
            asset.size_bytes,
            asset.duration_seconds,
        )
        return asset

    async def trim(
        self, asset_id: int, start_seconds: float, end_seconds: float
    ) -> Asset:
        """Replace an asset's file with the [start, end) sub-range.

        All-or-nothing: on failure the trimmed output is deleted and the
        record is left exactly as it was. The previous file is kept on disk.

        Raises:
            ValidationFailedError: Unless 0 <= start < end (finite numbers).
            AssetNotFoundError: Asset does not exist.
            GatewayFailureError: Range outside the media, or trim/probe failed.
            StorageFailureError: Output unreadable or record update failed.
        """
        _validate_time_range(start_seconds, end_seconds)

        async with self._locks.hold(asset_id):
            source = await self.get_asset(asset_id)
            source_path = Path(source.storage_path)
            output_path = self.staging.unique_path(
                StorageArea.TRIMMED, source_path.suffix or DEFAULT_EXTENSION
            )

            try:
                await self._gateway(
                    self.gateway.trim(source_path, output_path, start_seconds, end_seconds)
                )
                stat = await self.staging.stat_readable(output_path)
                duration = await self._gateway(self.gateway.probe_duration(output_path))

                updated = await self.asset_dao.replace_file(
                    asset_id,
                    storage_path=str(output_path),
                    size_bytes=stat.size_bytes,
                    duration_seconds=duration,
                    media_type=self.staging.media_type_for(output_path),
                )
                if updated is None:
                    raise AssetNotFoundError(asset_id)
            except (Exception, asyncio.CancelledError) as e:
                logger.warning("Trim of asset %s failed: %s", asset_id, e)
                await self.staging.remove_quietly(output_path)
                raise

        logger.info(
            "Trimmed asset %s to %.2f-%.2fs (%.2fs, %d bytes)",
            asset_id,
            start_seconds,
            end_seconds,
            updated.duration_seconds,
            updated.size_bytes,
        )
        return updated

    async def merge(self, asset_ids: Sequence[int]) -> Asset:
        """Concatenate assets, in the given order, into a new asset.

        Inputs must share a codec/container; the gateway reports otherwise
        and that failure is surfaced unchanged. The temporary manifest is
        removed on every exit path; the output is removed on failure.

        Args:
            asset_ids: Ordered source ids (at least two; repeats allowed).

        Returns:
            New Asset with `derived_from` equal to `asset_ids`.

        Raises:
            ValidationFailedError: Fewer than two ids or a malformed id.
            AssetNotFoundError: Names the first id that does not resolve.
            GatewayFailureError: Concat or probe failed.
            StorageFailureError: Manifest write, stat or insert failed.
        """
        ids = list(asset_ids)
        if len(ids) < 2:
            raise ValidationFailedError(
                "At least two asset IDs are required for merging"
            )
        if any(isinstance(i, bool) or not isinstance(i, int) or i <= 0 for i in ids):
            raise ValidationFailedError(
                "Invalid asset ID format. All IDs must be positive integers."
            )

        async with self._locks.hold_many(ids):
            sources = [await self.get_asset(asset_id) for asset_id in ids]

            extension = Path(sources[0].storage_path).suffix or DEFAULT_EXTENSION
            manifest_path = self.staging.unique_path(StorageArea.MERGED, ".txt")
            output_path = self.staging.unique_path(StorageArea.MERGED, extension)

            try:
                try:
                    await self.staging.write_text(
                        manifest_path,
                        render_manifest(s.storage_path for s in sources),
                    )
                    await self._gateway(self.gateway.concat(manifest_path, output_path))
                    stat = await self.staging.stat_readable(output_path)
                    duration = await self._gateway(
                        self.gateway.probe_duration(output_path)
                    )

                    asset = await self.asset_dao.create(
                        original_name=f"merged-{'-'.join(map(str, ids))}{extension}",
                        storage_path=str(output_path),
                        size_bytes=stat.size_bytes,
                        duration_seconds=duration,
                        media_type=self.staging.media_type_for(output_path),
                        derived_from=ids,
                    )
                except (Exception, asyncio.CancelledError) as e:
                    logger.warning("Merge of assets %s failed: %s", ids, e)
                    await self.staging.remove_quietly(output_path)
                    raise
            finally:
                await self.staging.remove_quietly(manifest_path)

        logger.info(
            "Merged assets %s into asset %s (%.2fs, %d bytes)",
            ids,
            asset.id,
            asset.duration_seconds,
            asset.size_bytes,
        )
        return asset

    async def _gateway(self, call: Awaitable[R]) -> R:
        """Await a gateway call, normalizing foreign errors to GatewayFailureError."""
        try:
            return await call
        except ClipVaultError:
            raise
        except Exception as e:
            raise GatewayFailureError(f"Transcoding gateway error: {e}") from e


def _validate_time_range(start_seconds: float, end_seconds: float) -> None:
    for value in (start_seconds, end_seconds):
        if (
            isinstance(value, bool)
            or not isinstance(value, (int, float))
            or not math.isfinite(value)
        ):
            raise ValidationFailedError("Invalid time format")
    if start_seconds < 0 or end_seconds <= start_seconds:
        raise ValidationFailedError("Invalid time range")
