"""StrEnum definitions for type-safe constants."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Failure categories surfaced by the asset and link services."""

    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    VALIDATION_FAILED = "validation_failed"
    STORAGE_FAILURE = "storage_failure"
    GATEWAY_FAILURE = "gateway_failure"


class StorageArea(StrEnum):
    """Subdirectories of the storage root."""

    INCOMING = "incoming"
    UPLOADS = "uploads"
    TRIMMED = "trimmed"
    MERGED = "merged"
