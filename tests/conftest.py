"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio

from clipvault.dao import AssetDAO, ShareableLinkDAO
from clipvault.database import Database
from clipvault.enums import StorageArea
from clipvault.errors import GatewayFailureError, ValidationFailedError
from clipvault.models.domain import IncomingFile, UploadConstraints
from clipvault.services import AssetService, LinkService, StagingService
from tests.support.manifest_reader import parse_manifest

# Configure pytest-asyncio to auto-detect async tests
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend."""
    return "asyncio"


class FakeGateway:
    """In-process TranscodingGateway that writes real files.

    Durations are looked up by absolute path; anything unknown probes as
    `default_duration`. Trim and concat record their outputs' durations so
    later probes see consistent values.
    """

    def __init__(self, default_duration: float = 30.0) -> None:
        self.default_duration = default_duration
        self.durations: dict[str, float] = {}
        self.fail_probe = False
        self.fail_trim = False
        self.fail_concat = False
        self.trim_calls: list[tuple[Path, Path, float, float]] = []
        self.manifests: list[str] = []

    async def probe_duration(self, path: Path) -> float:
        if self.fail_probe:
            raise GatewayFailureError(f"probe failed for {path}")
        return self.durations.get(str(path), self.default_duration)

    async def trim(
        self, input_path: Path, output_path: Path, start_seconds: float, end_seconds: float
    ) -> None:
        self.trim_calls.append((input_path, output_path, start_seconds, end_seconds))
        duration = await self.probe_duration(input_path)
        if start_seconds > duration or end_seconds > duration:
            raise ValidationFailedError("Invalid start or end time")
        data = Path(input_path).read_bytes()
        if self.fail_trim:
            # Leave a partial output behind, as a crashed encoder would
            output_path.write_bytes(data[:1])
            raise GatewayFailureError("trim failed")
        output_path.write_bytes(data[: max(1, len(data) // 2)])
        self.durations[str(output_path)] = end_seconds - start_seconds

    async def concat(self, manifest_path: Path, output_path: Path) -> None:
        content = manifest_path.read_text(encoding="utf-8")
        self.manifests.append(content)
        inputs = parse_manifest(content)
        if self.fail_concat:
            output_path.write_bytes(b"partial")
            raise GatewayFailureError("Incompatible input formats")
        output_path.write_bytes(b"".join(Path(p).read_bytes() for p in inputs))
        self.durations[str(output_path)] = sum(
            self.durations.get(p, self.default_duration) for p in inputs
        )


class FakeClock:
    """Controllable naive-UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest_asyncio.fixture
async def test_db():
    """Create a fresh in-memory database for each test."""
    db = Database("sqlite+aiosqlite:///:memory:")
    await db.init_db()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def asset_dao(test_db: Database) -> AssetDAO:
    """Create AssetDAO instance."""
    return AssetDAO(test_db)


@pytest_asyncio.fixture
async def link_dao(test_db: Database) -> ShareableLinkDAO:
    """Create ShareableLinkDAO instance."""
    return ShareableLinkDAO(test_db)


@pytest.fixture
def staging(tmp_path: Path) -> StagingService:
    """StagingService rooted in a per-test temp directory."""
    return StagingService(tmp_path / "media")


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def asset_service(
    asset_dao: AssetDAO, staging: StagingService, fake_gateway: FakeGateway
) -> AssetService:
    """AssetService wired to the fake gateway."""
    return AssetService(asset_dao, staging, fake_gateway)


@pytest_asyncio.fixture
async def link_service(
    link_dao: ShareableLinkDAO, asset_dao: AssetDAO, clock: FakeClock
) -> LinkService:
    """LinkService with a controllable clock."""
    return LinkService(link_dao, asset_dao, "http://media.test", clock=clock)


@pytest.fixture
def make_incoming(staging: StagingService):
    """Factory writing a transient upload into the incoming area."""

    def _make(
        content: bytes = b"\x00" * 1024,
        original_name: str = "clip.mp4",
        received_bytes: int | None = None,
    ) -> IncomingFile:
        path = staging.unique_path(
            StorageArea.INCOMING, staging.safe_extension(original_name)
        )
        path.write_bytes(content)
        return IncomingFile(
            path=path,
            original_name=original_name,
            received_bytes=len(content) if received_bytes is None else received_bytes,
        )

    return _make


@pytest.fixture
def constraints() -> UploadConstraints:
    """Permissive constraints: 10 MB, 1-120 seconds."""
    return UploadConstraints(
        max_size_bytes=10 * 1024 * 1024,
        min_duration_seconds=1,
        max_duration_seconds=120,
    )


@pytest.fixture
def area_files(staging: StagingService):
    """Lists regular files currently in a storage area."""

    def _list(area: StorageArea) -> list[Path]:
        return sorted(p for p in staging.area_dir(area).iterdir() if p.is_file())

    return _list
