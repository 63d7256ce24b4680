"""Unit tests for AssetDAO.

Tests verify:
- DAO returns Pydantic models, not SQLAlchemy objects
- replace_file keeps the first-seen storage path
- Malformed rows are reported as storage failures
"""

import pytest
from sqlalchemy import update

from clipvault.dao.asset_dao import AssetDAO
from clipvault.database import Database
from clipvault.errors import StorageFailureError
from clipvault.models.domain import Asset
from clipvault.models.orm import AssetModel


class TestAssetDAOCreate:
    async def test_create_returns_pydantic_asset(self, asset_dao: AssetDAO):
        asset = await asset_dao.create(
            original_name="clip.mp4",
            storage_path="/media/uploads/a.mp4",
            size_bytes=1024,
            duration_seconds=12.5,
        )

        assert isinstance(asset, Asset)
        assert asset.id > 0
        assert asset.original_name == "clip.mp4"
        assert asset.media_type == "video/mp4"
        assert asset.original_storage_path is None
        assert asset.derived_from is None

    async def test_ids_are_assigned_by_store(self, asset_dao: AssetDAO):
        first = await asset_dao.create("a.mp4", "/m/a.mp4", 1, 1.0)
        second = await asset_dao.create("b.mp4", "/m/b.mp4", 1, 1.0)

        assert second.id != first.id

    async def test_derived_from_round_trips_in_order(self, asset_dao: AssetDAO):
        asset = await asset_dao.create(
            "merged.mp4", "/m/merged.mp4", 10, 3.0, derived_from=[3, 1, 3]
        )

        fetched = await asset_dao.get_by_id(asset.id)

        assert fetched is not None
        assert fetched.derived_from == [3, 1, 3]


class TestAssetDAOGet:
    async def test_get_missing_returns_none(self, asset_dao: AssetDAO):
        assert await asset_dao.get_by_id(999) is None

    async def test_get_returns_same_fields(self, asset_dao: AssetDAO):
        created = await asset_dao.create("clip.webm", "/m/x.webm", 42, 7.0, "video/webm")

        fetched = await asset_dao.get_by_id(created.id)

        assert fetched == created


class TestAssetDAOReplaceFile:
    async def test_first_replace_records_original_path(self, asset_dao: AssetDAO):
        created = await asset_dao.create("clip.mp4", "/m/uploads/a.mp4", 100, 50.0)

        updated = await asset_dao.replace_file(
            created.id, "/m/trimmed/b.mp4", 40, 10.0, "video/mp4"
        )

        assert updated is not None
        assert updated.storage_path == "/m/trimmed/b.mp4"
        assert updated.original_storage_path == "/m/uploads/a.mp4"
        assert updated.size_bytes == 40
        assert updated.duration_seconds == 10.0
        assert updated.updated_at >= created.updated_at

    async def test_second_replace_keeps_first_original_path(self, asset_dao: AssetDAO):
        created = await asset_dao.create("clip.mp4", "/m/uploads/a.mp4", 100, 50.0)
        await asset_dao.replace_file(created.id, "/m/trimmed/b.mp4", 40, 10.0, "video/mp4")

        updated = await asset_dao.replace_file(
            created.id, "/m/trimmed/c.mp4", 20, 5.0, "video/mp4"
        )

        assert updated is not None
        assert updated.storage_path == "/m/trimmed/c.mp4"
        assert updated.original_storage_path == "/m/uploads/a.mp4"

    async def test_replace_missing_returns_none(self, asset_dao: AssetDAO):
        assert await asset_dao.replace_file(404, "/m/x.mp4", 1, 1.0, "video/mp4") is None


class TestAssetDAOMalformedRows:
    async def test_malformed_derived_from_is_storage_failure(
        self, asset_dao: AssetDAO, test_db: Database
    ):
        created = await asset_dao.create("m.mp4", "/m/m.mp4", 1, 1.0, derived_from=[1, 2])
        async with test_db.session() as session:
            await session.execute(
                update(AssetModel)
                .where(AssetModel.id == created.id)
                .values(derived_from="not json")
            )

        with pytest.raises(StorageFailureError):
            await asset_dao.get_by_id(created.id)

    async def test_negative_size_is_storage_failure(
        self, asset_dao: AssetDAO, test_db: Database
    ):
        created = await asset_dao.create("a.mp4", "/m/a.mp4", 1, 1.0)
        async with test_db.session() as session:
            await session.execute(
                update(AssetModel)
                .where(AssetModel.id == created.id)
                .values(size_bytes=-5)
            )

        with pytest.raises(StorageFailureError):
            await asset_dao.get_by_id(created.id)
