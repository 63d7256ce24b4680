"""Logging helpers and filters.

Applied from both entrypoints (`python -m clipvault.main` and
`uvicorn clipvault.asgi:app`).
"""

from __future__ import annotations

import logging
import re
from typing import Any

# /api/share/<token> and /api/share/validate/<token>; POST /api/share/<id>
# uses a numeric id and is left alone
_SHARE_TOKEN_RE = re.compile(r"(/api/share/(?:validate/)?)(?!\d+(?:[/?]|$))([^/?\s\"]+)")

REDACTED = "[redacted]"


def redact_share_tokens(text: str) -> str:
    """Replace share tokens in a URL path (or log line) with a placeholder."""
    return _SHARE_TOKEN_RE.sub(lambda m: m.group(1) + REDACTED, text)


class SuppressHealthCheckAccessLog(logging.Filter):
    """Drop Uvicorn access log records for the health check endpoint."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003 (filter)
        # Uvicorn's access logger uses %-formatting with args similar to:
        #   (client_addr, method, full_path, http_version, status_code)
        # Falls back to the rendered message if that shape ever changes.
        args: Any = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            path = str(args[2])
            if path == "/health" or path.startswith("/health?"):
                return False

        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            return True
        return '"GET /health ' not in message and '"HEAD /health ' not in message


class RedactShareTokenAccessLog(logging.Filter):
    """Mask share tokens in Uvicorn access log paths.

    Tokens are bearer credentials; anyone reading the access log could
    otherwise stream the asset until the link expires.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003 (filter)
        args: Any = record.args
        if isinstance(args, tuple) and len(args) >= 3:
            path = str(args[2])
            redacted = redact_share_tokens(path)
            if redacted != path:
                record.args = (*args[:2], redacted, *args[3:])
        elif isinstance(record.msg, str):
            record.msg = redact_share_tokens(record.msg)
        return True


def install_uvicorn_access_log_filters() -> None:
    """Install filters for Uvicorn loggers.

    Safe to call multiple times.
    """
    access_logger = logging.getLogger("uvicorn.access")

    for filter_cls in (SuppressHealthCheckAccessLog, RedactShareTokenAccessLog):
        if not any(isinstance(f, filter_cls) for f in access_logger.filters):
            access_logger.addFilter(filter_cls())
