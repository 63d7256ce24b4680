"""Asset data access operations."""

import json

from sqlalchemy import select

from clipvault.dao.base import BaseDAO
from clipvault.errors import StorageFailureError
from clipvault.models.domain import Asset
from clipvault.models.orm import AssetModel
from clipvault.timeutil import utc_now


class AssetDAO(BaseDAO[Asset]):
    """Data access object for Asset operations.

    All methods return Pydantic Asset models, never SQLAlchemy objects.
    """

    async def create(
        self,
        original_name: str,
        storage_path: str,
        size_bytes: int,
        duration_seconds: float,
        media_type: str = "video/mp4",
        derived_from: list[int] | None = None,
    ) -> Asset:
        """Insert a new asset record.

        Args:
            original_name: Client-facing file name.
            storage_path: Absolute path of the confirmed file.
            size_bytes: Size of the file on disk.
            duration_seconds: Probed duration.
            media_type: MIME type served when streaming.
            derived_from: Ordered source ids for merge results.

        Returns:
            Created Asset domain model with its store-assigned id.
        """
        now = utc_now()
        async with self._db.session() as session:
            asset_model = AssetModel(
                original_name=original_name,
                storage_path=storage_path,
                size_bytes=size_bytes,
                duration_seconds=duration_seconds,
                media_type=media_type,
                derived_from=(
                    json.dumps(derived_from) if derived_from is not None else None
                ),
                created_at=now,
                updated_at=now,
            )
            session.add(asset_model)
            await session.flush()

            return self._to_domain(asset_model)

    async def get_by_id(self, asset_id: int) -> Asset | None:
        """Get asset by ID.

        Args:
            asset_id: Asset identifier.

        Returns:
            Asset domain model if found, None otherwise.
        """
        async with self._db.session() as session:
            result = await session.execute(
                select(AssetModel).where(AssetModel.id == asset_id)
            )
            asset_model = result.scalar_one_or_none()

            if asset_model is None:
                return None

            return self._to_domain(asset_model)

    async def replace_file(
        self,
        asset_id: int,
        storage_path: str,
        size_bytes: int,
        duration_seconds: float,
        media_type: str,
    ) -> Asset | None:
        """Point an asset at a new file, preserving first-seen provenance.

        `original_storage_path` is set to the current `storage_path` only if
        it was previously unset. Runs as a single UPDATE-in-transaction.

        Returns:
            Updated Asset, or None if the asset no longer exists.
        """
        async with self._db.session() as session:
            result = await session.execute(
                select(AssetModel).where(AssetModel.id == asset_id)
            )
            asset_model = result.scalar_one_or_none()

            if asset_model is None:
                return None

            if asset_model.original_storage_path is None:
                asset_model.original_storage_path = asset_model.storage_path
            asset_model.storage_path = storage_path
            asset_model.size_bytes = size_bytes
            asset_model.duration_seconds = duration_seconds
            asset_model.media_type = media_type
            asset_model.updated_at = utc_now()
            await session.flush()

            return self._to_domain(asset_model)

    def _to_domain(self, asset_model: AssetModel) -> Asset:
        derived_from = None
        if asset_model.derived_from is not None:
            try:
                derived_from = json.loads(asset_model.derived_from)
            except ValueError as e:
                raise StorageFailureError(
                    f"Malformed derived_from on asset {asset_model.id}"
                ) from e

        return self._decode(
            Asset,
            {
                "id": asset_model.id,
                "original_name": asset_model.original_name,
                "storage_path": asset_model.storage_path,
                "size_bytes": asset_model.size_bytes,
                "duration_seconds": asset_model.duration_seconds,
                "media_type": asset_model.media_type,
                "original_storage_path": asset_model.original_storage_path,
                "derived_from": derived_from,
                "created_at": asset_model.created_at,
                "updated_at": asset_model.updated_at,
            },
        )
