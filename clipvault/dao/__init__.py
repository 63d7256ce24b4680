"""Data Access Objects package."""

from .asset_dao import AssetDAO
from .base import BaseDAO
from .link_dao import ShareableLinkDAO

__all__ = [
    "AssetDAO",
    "BaseDAO",
    "ShareableLinkDAO",
]
