"""Business logic services package."""

from .asset_service import AssetService
from .keyed_lock import KeyedLock
from .link_service import LinkService
from .staging_service import StagingService
from .transcoder import FFmpegGateway, TranscodingGateway

__all__ = [
    "AssetService",
    "FFmpegGateway",
    "KeyedLock",
    "LinkService",
    "StagingService",
    "TranscodingGateway",
]
