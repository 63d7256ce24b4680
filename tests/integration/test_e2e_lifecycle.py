"""End-to-end tests for the asset lifecycle over HTTP.

Tests verify the complete flow through the real application wiring:
upload -> trim -> issue link -> validate -> stream -> expire

Only the transcoding gateway and the link clock are replaced; the
database, storage layout, routers and services are the real ones.
"""

from pathlib import Path

import httpx
import pytest_asyncio

from clipvault.config import ClipVaultConfig
from clipvault.enums import StorageArea
from clipvault.main import Application

MB = 1024 * 1024


@pytest_asyncio.fixture
async def application(tmp_path: Path, fake_gateway, clock):
    """Application wired against an in-memory database and temp storage."""
    config = ClipVaultConfig(
        database_url="sqlite+aiosqlite:///:memory:",
        auto_create_tables=True,
        storage_root=str(tmp_path / "media"),
        public_base_url="http://media.test",
        error_log_file_enabled=False,
    )
    app = Application(config)
    await app.setup()
    app.asset_service.gateway = fake_gateway
    app.link_service.clock = clock
    app.create_fastapi_app()
    yield app
    await app.shutdown()


@pytest_asyncio.fixture
async def client(application: Application):
    transport = httpx.ASGITransport(app=application.fastapi_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _upload(client: httpx.AsyncClient, content: bytes, name: str = "clip.mp4", **form):
    data = {
        "min_duration_seconds": "1",
        "max_duration_seconds": "60",
        "max_size_bytes": str(10 * MB),
        **form,
    }
    return await client.post(
        "/api/assets/upload",
        files={"file": (name, content, "video/mp4")},
        data=data,
    )


def _area_files(application: Application, area: StorageArea) -> list[Path]:
    return [p for p in application.staging.area_dir(area).iterdir() if p.is_file()]


class TestAssetLifecycle:
    async def test_upload_trim_share_stream_expire(
        self, client, application, fake_gateway, clock
    ):
        fake_gateway.default_duration = 50.0
        content = bytes(range(256)) * 8192  # 2 MB

        # Upload
        response = await _upload(client, content)
        assert response.status_code == 200
        asset = response.json()
        assert asset["durationSeconds"] == 50.0
        assert asset["sizeBytes"] == len(content)
        assert _area_files(application, StorageArea.INCOMING) == []

        # Trim
        response = await client.post(
            f"/api/assets/trim/{asset['id']}",
            json={"startSeconds": 10, "endSeconds": 20},
        )
        assert response.status_code == 200
        trimmed = response.json()
        assert trimmed["durationSeconds"] == 10
        assert trimmed["originalStoragePath"] == asset["storagePath"]
        trimmed_bytes = Path(trimmed["storagePath"]).read_bytes()

        # Issue link
        response = await client.post(f"/api/share/{asset['id']}", json={"ttlHours": 1})
        assert response.status_code == 200
        link = response.json()
        token = link["token"]
        assert link["url"] == f"http://media.test/api/share/{token}"

        # Validate
        response = await client.get(f"/api/share/validate/{token}")
        assert response.status_code == 200
        assert response.json()["asset"]["storagePath"] == trimmed["storagePath"]

        # Stream a range of the trimmed file
        response = await client.get(f"/api/share/{token}", headers={"Range": "bytes=0-99"})
        assert response.status_code == 206
        assert response.headers["content-range"] == f"bytes 0-99/{len(trimmed_bytes)}"
        assert response.content == trimmed_bytes[:100]

        # Stream the whole file
        response = await client.get(f"/api/share/{token}")
        assert response.status_code == 200
        assert response.content == trimmed_bytes

        # Expire: first 410, then 404 for good
        clock.advance(hours=2)
        assert (await client.get(f"/api/share/validate/{token}")).status_code == 410
        assert (await client.get(f"/api/share/validate/{token}")).status_code == 404
        assert (await client.get(f"/api/share/{token}")).status_code == 404

    async def test_ten_megabyte_clip_under_twenty_megabyte_limit(
        self, client, fake_gateway, clock
    ):
        fake_gateway.default_duration = 50.0

        response = await _upload(
            client,
            b"\x00" * (10 * MB),
            min_duration_seconds="5",
            max_duration_seconds="120",
            max_size_bytes=str(20 * MB),
        )
        assert response.status_code == 200
        asset = response.json()
        assert asset["sizeBytes"] == 10 * MB

        trimmed = (
            await client.post(
                f"/api/assets/trim/{asset['id']}",
                json={"startSeconds": 10, "endSeconds": 20},
            )
        ).json()
        assert trimmed["durationSeconds"] == 10

        token = (
            await client.post(f"/api/share/{asset['id']}", json={"ttlHours": 1})
        ).json()["token"]
        assert (await client.get(f"/api/share/validate/{token}")).status_code == 200

        clock.advance(hours=1, seconds=1)
        assert (await client.get(f"/api/share/validate/{token}")).status_code == 410
        assert (await client.get(f"/api/share/validate/{token}")).status_code == 404

    async def test_rejected_upload_leaves_nothing_behind(
        self, client, application, fake_gateway
    ):
        fake_gateway.default_duration = 90.0

        response = await _upload(client, b"x" * 4096)

        assert response.status_code == 400
        assert (await client.get("/api/assets/1")).status_code == 404
        for area in StorageArea:
            assert _area_files(application, area) == []

        # Retrying with acceptable media succeeds
        fake_gateway.default_duration = 30.0
        response = await _upload(client, b"x" * 4096)
        assert response.status_code == 200

    async def test_oversize_upload_is_400(self, client, application):
        response = await _upload(client, b"x" * 2048, max_size_bytes="1024")

        assert response.status_code == 400
        assert "File size exceeds" in response.json()["detail"]
        assert _area_files(application, StorageArea.UPLOADS) == []

    async def test_merge_creates_derived_asset(self, client, application):
        first = (await _upload(client, b"A" * 10)).json()
        second = (await _upload(client, b"B" * 5)).json()

        response = await client.post(f"/api/assets/merge/{second['id']},{first['id']}")

        assert response.status_code == 200
        merged = response.json()
        assert merged["derivedFrom"] == [second["id"], first["id"]]
        assert Path(merged["storagePath"]).read_bytes() == b"B" * 5 + b"A" * 10
        assert [p.suffix for p in _area_files(application, StorageArea.MERGED)] == [".mp4"]

    async def test_trim_outside_media_is_client_error(self, client, fake_gateway):
        fake_gateway.default_duration = 30.0
        asset = (await _upload(client, b"x" * 100)).json()

        response = await client.post(
            f"/api/assets/trim/{asset['id']}",
            json={"startSeconds": 10, "endSeconds": 45},
        )

        assert response.status_code == 400
        assert "Invalid start or end time" in response.json()["detail"]
        assert (await client.get(f"/api/assets/{asset['id']}")).json() == asset

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}
