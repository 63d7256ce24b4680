"""Pydantic domain models.

These models are returned by DAOs and used throughout the service layer.
SQLAlchemy ORM objects never leave the DAO layer; rows are decoded into
these models and fail fast when a field is missing or malformed.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from pydantic import Field, model_validator

from clipvault.models.base import JsonModel


class Asset(JsonModel):
    """A stored media file plus its metadata record."""

    id: int
    original_name: str
    storage_path: str
    size_bytes: int = Field(ge=0)
    duration_seconds: float = Field(ge=0)
    media_type: str = "video/mp4"
    original_storage_path: str | None = None
    derived_from: list[int] | None = None
    created_at: datetime
    updated_at: datetime


class ShareableLink(JsonModel):
    """A bearer token granting time-limited streaming access to one asset."""

    id: int
    asset_id: int
    token: str
    url: str | None = None
    expires_at: datetime
    created_at: datetime


class UploadConstraints(JsonModel):
    """Bounds an upload must satisfy before it becomes an asset.

    Raises pydantic.ValidationError on construction when the bounds are
    inconsistent; services translate that into ValidationFailedError.
    """

    max_size_bytes: int = Field(gt=0)
    min_duration_seconds: float = Field(ge=0)
    max_duration_seconds: float = Field(gt=0)

    @model_validator(mode="after")
    def _check_duration_window(self) -> "UploadConstraints":
        if not (
            math.isfinite(self.min_duration_seconds)
            and math.isfinite(self.max_duration_seconds)
        ):
            raise ValueError("Duration bounds must be finite numbers")
        if self.min_duration_seconds >= self.max_duration_seconds:
            raise ValueError(
                "Minimum duration must be less than maximum duration"
            )
        return self


@dataclass(frozen=True)
class IncomingFile:
    """A file sitting in the transient upload area, not yet an asset.

    Attributes:
        path: Where the HTTP layer spooled the upload.
        original_name: Client-supplied file name.
        received_bytes: Byte count the HTTP layer actually received.
    """

    path: Path
    original_name: str
    received_bytes: int
