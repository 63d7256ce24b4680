"""Shareable link API endpoints.

Routers handle HTTP concerns only - no business logic.
Link state lives in LinkService; byte serving in the streaming module.
"""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Header
from fastapi.responses import StreamingResponse

from clipvault.errors import ClipVaultError
from clipvault.models.base import JsonModel
from clipvault.models.domain import Asset, ShareableLink
from clipvault.routers.http_errors import to_http_exception
from clipvault.services.streaming import DEFAULT_CHUNK_SIZE, prepare_stream

if TYPE_CHECKING:
    from clipvault.services.link_service import LinkService


class IssueLinkRequest(JsonModel):
    """Request model for issuing a share link."""

    ttl_hours: float


class LinkValidityResponse(JsonModel):
    """Response model for link validation."""

    message: str
    asset: Asset


def create_share_router(
    link_service: "LinkService",
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> APIRouter:
    """Create share router with injected service.

    Args:
        link_service: LinkService instance for business logic
        chunk_size: Bytes read per chunk while streaming

    Returns:
        APIRouter with share endpoints configured
    """
    router = APIRouter(prefix="/api/share", tags=["share"])

    @router.post("/{asset_id}", response_model=ShareableLink)
    async def issue_link(asset_id: int, request: IssueLinkRequest) -> ShareableLink:
        """Issue an expiring link for an asset.

        Raises:
            HTTPException: 400 for a non-positive TTL, 404 for unknown asset
        """
        try:
            return await link_service.issue(asset_id, request.ttl_hours)
        except ClipVaultError as e:
            raise to_http_exception(e) from e

    @router.get("/validate/{token}", response_model=LinkValidityResponse)
    async def validate_link(token: str) -> LinkValidityResponse:
        """Check a link without streaming.

        Raises:
            HTTPException: 404 unknown link or missing asset, 410 expired
        """
        try:
            _, asset = await link_service.validate(token)
        except ClipVaultError as e:
            raise to_http_exception(e) from e
        return LinkValidityResponse(message="Link is valid.", asset=asset)

    @router.get("/{token}")
    async def stream_shared_asset(
        token: str,
        range_header: str | None = Header(None, alias="Range"),
    ) -> StreamingResponse:
        """Stream the shared asset, honoring a single byte range.

        Raises:
            HTTPException: 404 unknown link or missing file, 410 expired,
                416 unsatisfiable range
        """
        try:
            _, asset = await link_service.validate(token)
            plan = prepare_stream(asset, range_header, chunk_size)
        except ClipVaultError as e:
            raise to_http_exception(e) from e

        return StreamingResponse(
            plan.body,
            status_code=plan.status_code,
            headers=plan.headers,
            media_type=plan.media_type,
        )

    return router
