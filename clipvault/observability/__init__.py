"""Observability utilities (error log file)."""

from clipvault.observability.error_log_file import (
    setup_error_log_file,
    teardown_error_log_file,
)

__all__ = [
    "setup_error_log_file",
    "teardown_error_log_file",
]
