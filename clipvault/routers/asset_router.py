"""Asset API endpoints.

Routers handle HTTP concerns only - no business logic.
All business logic is delegated to AssetService.
"""

import asyncio
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from clipvault.enums import StorageArea
from clipvault.errors import ClipVaultError, StorageFailureError, ValidationFailedError
from clipvault.models.base import JsonModel
from clipvault.models.domain import Asset, IncomingFile, UploadConstraints
from clipvault.routers.http_errors import to_http_exception

if TYPE_CHECKING:
    from clipvault.services.asset_service import AssetService
    from clipvault.services.staging_service import StagingService


class TrimRequest(JsonModel):
    """Request model for trimming an asset."""

    start_seconds: float
    end_seconds: float


def parse_asset_ids(raw: str) -> list[int]:
    """Parse a comma-separated list of positive integer ids.

    Raises:
        ValidationFailedError: Fewer than two ids, or any malformed id.
    """
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) < 2:
        raise ValidationFailedError("At least two asset IDs are required for merging")
    if not all(p.isascii() and p.isdigit() and int(p) > 0 for p in parts):
        raise ValidationFailedError(
            "Invalid asset ID format. All IDs must be positive integers."
        )
    return [int(p) for p in parts]


def _spool(source: BinaryIO, destination: Path) -> int:
    with open(destination, "xb") as out:
        shutil.copyfileobj(source, out)
        return out.tell()


def create_asset_router(
    asset_service: "AssetService",
    staging: "StagingService",
    *,
    default_max_upload_bytes: int,
) -> APIRouter:
    """Create asset router with injected services.

    Args:
        asset_service: AssetService instance for business logic
        staging: Staging helper; uploads are spooled into its incoming area
        default_max_upload_bytes: Size limit when the client sends none

    Returns:
        APIRouter with asset endpoints configured
    """
    router = APIRouter(prefix="/api/assets", tags=["assets"])

    @router.post("/upload", response_model=Asset)
    async def upload_asset(
        file: UploadFile = File(...),
        min_duration_seconds: float = Form(...),
        max_duration_seconds: float = Form(...),
        max_size_bytes: int | None = Form(None),
    ) -> Asset:
        """Upload a media file and register it as an asset.

        Raises:
            HTTPException: 400 on constraint violations, 5xx on storage or
                transcoding failures
        """
        try:
            constraints = UploadConstraints(
                max_size_bytes=(
                    default_max_upload_bytes if max_size_bytes is None else max_size_bytes
                ),
                min_duration_seconds=min_duration_seconds,
                max_duration_seconds=max_duration_seconds,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        original_name = file.filename or "upload"
        spool_path = staging.unique_path(
            StorageArea.INCOMING, staging.safe_extension(original_name)
        )
        try:
            received = await asyncio.to_thread(_spool, file.file, spool_path)
        except OSError as e:
            await staging.remove_quietly(spool_path)
            raise to_http_exception(
                StorageFailureError(f"Failed to receive upload: {e}")
            ) from e
        finally:
            await file.close()

        try:
            return await asset_service.upload(
                IncomingFile(
                    path=spool_path,
                    original_name=original_name,
                    received_bytes=received,
                ),
                constraints,
            )
        except ClipVaultError as e:
            raise to_http_exception(e) from e

    @router.get("/{asset_id}", response_model=Asset)
    async def get_asset(asset_id: int) -> Asset:
        """Get one asset's metadata."""
        try:
            return await asset_service.get_asset(asset_id)
        except ClipVaultError as e:
            raise to_http_exception(e) from e

    @router.post("/trim/{asset_id}", response_model=Asset)
    async def trim_asset(asset_id: int, request: TrimRequest) -> Asset:
        """Trim an asset in place to [startSeconds, endSeconds)."""
        try:
            return await asset_service.trim(
                asset_id, request.start_seconds, request.end_seconds
            )
        except ClipVaultError as e:
            raise to_http_exception(e) from e

    @router.post("/merge/{ids}", response_model=Asset)
    async def merge_assets(ids: str) -> Asset:
        """Concatenate assets, in path order, into a new asset."""
        try:
            return await asset_service.merge(parse_asset_ids(ids))
        except ClipVaultError as e:
            raise to_http_exception(e) from e

    return router
