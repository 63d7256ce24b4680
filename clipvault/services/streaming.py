"""Byte-range streaming of stored assets.

Supports a single range per request: `bytes=start-end`, `bytes=start-` and
the suffix form `bytes=-N`. Multi-range requests and anything malformed or
unsatisfiable raise RangeNotSatisfiableError (HTTP 416) rather than being
answered with multipart/byteranges.

The file is stat-ed before any header is produced so a missing file is
reported as not-found while the status can still change. Bytes are then
read lazily in bounded chunks; the whole file is never held in memory.
"""

import logging
import os
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from clipvault.errors import AssetNotFoundError, RangeNotSatisfiableError
from clipvault.models.domain import Asset

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

_RANGE_RE = re.compile(r"^bytes=(\d*)-(\d*)$")


@dataclass(frozen=True)
class ByteRange:
    """Inclusive byte range within a file of `total` bytes."""

    start: int
    end: int
    total: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.total}"


@dataclass
class StreamPlan:
    """Everything needed to answer a streaming request.

    Attributes:
        status_code: 200 for the full file, 206 for a range.
        headers: Response headers (all values are strings).
        media_type: Content type of the asset.
        body: Lazy iterator over exactly Content-Length bytes.
    """

    status_code: int
    headers: dict[str, str]
    media_type: str
    body: Iterator[bytes] = field(repr=False)


def parse_range(header: str | None, file_size: int) -> ByteRange | None:
    """Parse a Range header against a file size.

    Args:
        header: Raw Range header value, or None.
        file_size: Size of the file in bytes.

    Returns:
        None when no range was requested, else the resolved ByteRange.
        An end beyond the file is clamped to the last byte.

    Raises:
        RangeNotSatisfiableError: Malformed, multi-range or out-of-bounds.
    """
    if header is None:
        return None

    value = header.strip()
    if "," in value:
        raise RangeNotSatisfiableError(header, file_size)

    match = _RANGE_RE.match(value.replace(" ", ""))
    if match is None:
        raise RangeNotSatisfiableError(header, file_size)

    raw_start, raw_end = match.groups()
    if not raw_start and not raw_end:
        raise RangeNotSatisfiableError(header, file_size)

    if not raw_start:
        # Suffix range: the last N bytes
        suffix = int(raw_end)
        if suffix == 0 or file_size == 0:
            raise RangeNotSatisfiableError(header, file_size)
        start = max(file_size - suffix, 0)
        end = file_size - 1
    else:
        start = int(raw_start)
        end = int(raw_end) if raw_end else file_size - 1
        end = min(end, file_size - 1)

    if start >= file_size or end < start:
        raise RangeNotSatisfiableError(header, file_size)

    return ByteRange(start=start, end=end, total=file_size)


def iter_file_range(
    path: str | Path,
    start: int,
    length: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[bytes]:
    """Yield `length` bytes of a file starting at `start`, chunk by chunk.

    Stops early (with a warning) only if the file shrinks underneath us;
    by then headers are committed, so the short body is all we can do.
    """
    remaining = length
    with open(path, "rb") as f:
        f.seek(start)
        while remaining > 0:
            chunk = f.read(min(chunk_size, remaining))
            if not chunk:
                logger.warning(
                    "Short read streaming %s: %d bytes missing", path, remaining
                )
                return
            remaining -= len(chunk)
            yield chunk


def prepare_stream(
    asset: Asset,
    range_header: str | None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> StreamPlan:
    """Build the response plan for streaming an asset.

    Args:
        asset: Asset resolved from a validated share token.
        range_header: Raw Range header, if any.
        chunk_size: Maximum bytes read per chunk.

    Raises:
        AssetNotFoundError: The stored file cannot be stat-ed.
        RangeNotSatisfiableError: The Range header cannot be served.
    """
    path = Path(asset.storage_path).resolve()
    try:
        file_size = os.stat(path).st_size
    except OSError as e:
        logger.error("Stored file for asset %s is missing: %s", asset.id, e)
        raise AssetNotFoundError(
            asset.id, f"Media file for asset {asset.id} is unavailable"
        ) from e

    byte_range = parse_range(range_header, file_size)

    if byte_range is None:
        return StreamPlan(
            status_code=200,
            headers={
                "Content-Length": str(file_size),
                "Accept-Ranges": "bytes",
            },
            media_type=asset.media_type,
            body=iter_file_range(path, 0, file_size, chunk_size),
        )

    return StreamPlan(
        status_code=206,
        headers={
            "Content-Range": byte_range.content_range,
            "Content-Length": str(byte_range.length),
            "Accept-Ranges": "bytes",
        },
        media_type=asset.media_type,
        body=iter_file_range(path, byte_range.start, byte_range.length, chunk_size),
    )
