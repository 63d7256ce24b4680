"""HTTP routers package."""

from .asset_router import TrimRequest, create_asset_router, parse_asset_ids
from .http_errors import to_http_exception
from .share_router import (
    IssueLinkRequest,
    LinkValidityResponse,
    create_share_router,
)

__all__ = [
    "create_asset_router",
    "create_share_router",
    "parse_asset_ids",
    "to_http_exception",
    "IssueLinkRequest",
    "LinkValidityResponse",
    "TrimRequest",
]
