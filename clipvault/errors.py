"""Exception taxonomy shared by services, DAOs and routers.

Every error raised across a service boundary derives from ClipVaultError and
carries an ErrorKind. Routers map kinds to HTTP status codes in one place.
"""

from clipvault.enums import ErrorKind


class ClipVaultError(Exception):
    """Base class for all service-level failures."""

    kind: ErrorKind = ErrorKind.STORAGE_FAILURE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ClipVaultError):
    """Raised when a referenced record does not exist."""

    kind = ErrorKind.NOT_FOUND


class AssetNotFoundError(NotFoundError):
    """Raised when an asset id does not resolve."""

    def __init__(self, asset_id: int, message: str | None = None) -> None:
        super().__init__(message or f"No asset found with ID {asset_id}")
        self.asset_id = asset_id


class LinkNotFoundError(NotFoundError):
    """Raised when a share token is unknown (or was already invalidated)."""

    def __init__(self) -> None:
        super().__init__("Link not found or invalid.")


class LinkExpiredError(ClipVaultError):
    """Raised once, when an expired link is validated and deleted."""

    kind = ErrorKind.EXPIRED

    def __init__(self) -> None:
        super().__init__("Link has expired.")


class ValidationFailedError(ClipVaultError):
    """Raised when input violates a constraint. Detected before side effects."""

    kind = ErrorKind.VALIDATION_FAILED


class RangeNotSatisfiableError(ValidationFailedError):
    """Raised for malformed, multi-part or out-of-bounds Range headers."""

    def __init__(self, header: str, file_size: int) -> None:
        super().__init__(f"Range '{header}' not satisfiable for {file_size} bytes")
        self.header = header
        self.file_size = file_size


class StorageFailureError(ClipVaultError):
    """Raised for filesystem or metadata-store I/O errors."""

    kind = ErrorKind.STORAGE_FAILURE


class GatewayFailureError(ClipVaultError):
    """Raised when probe, trim or concat fails in the transcoding tool."""

    kind = ErrorKind.GATEWAY_FAILURE
