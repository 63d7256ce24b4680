"""Shareable link data access operations."""

from datetime import datetime

from sqlalchemy import delete, select

from clipvault.dao.base import BaseDAO
from clipvault.models.domain import ShareableLink
from clipvault.models.orm import ShareableLinkModel
from clipvault.timeutil import utc_now


class ShareableLinkDAO(BaseDAO[ShareableLink]):
    """Data access object for ShareableLink operations.

    All methods return Pydantic ShareableLink models, never SQLAlchemy
    objects. Links are never updated in place: they are inserted once and
    deleted once.
    """

    async def create(
        self,
        asset_id: int,
        token: str,
        expires_at: datetime,
    ) -> ShareableLink:
        """Insert a new link.

        A duplicate token violates the unique constraint and surfaces as
        StorageFailureError; existing links are never overwritten.

        Args:
            asset_id: Asset the link grants access to.
            token: Unguessable bearer token.
            expires_at: Naive UTC expiry instant.

        Returns:
            Created ShareableLink domain model (without URL).
        """
        async with self._db.session() as session:
            link_model = ShareableLinkModel(
                asset_id=asset_id,
                token=token,
                expires_at=expires_at,
                created_at=utc_now(),
            )
            session.add(link_model)
            await session.flush()

            return self._to_domain(link_model)

    async def get_by_token(self, token: str) -> ShareableLink | None:
        """Get link by token.

        Args:
            token: Bearer token.

        Returns:
            ShareableLink domain model if found, None otherwise.
        """
        async with self._db.session() as session:
            result = await session.execute(
                select(ShareableLinkModel).where(ShareableLinkModel.token == token)
            )
            link_model = result.scalar_one_or_none()

            if link_model is None:
                return None

            return self._to_domain(link_model)

    async def delete_by_token(self, token: str) -> bool:
        """Delete a link.

        Args:
            token: Bearer token.

        Returns:
            True if a row was deleted, False if it was already gone.
        """
        async with self._db.session() as session:
            result = await session.execute(
                delete(ShareableLinkModel).where(ShareableLinkModel.token == token)
            )
            return result.rowcount > 0

    async def delete_expired(self, now: datetime) -> int:
        """Delete every link whose expiry is at or before `now`.

        Returns:
            Number of links deleted.
        """
        async with self._db.session() as session:
            result = await session.execute(
                delete(ShareableLinkModel).where(ShareableLinkModel.expires_at <= now)
            )
            return result.rowcount or 0

    def _to_domain(self, link_model: ShareableLinkModel) -> ShareableLink:
        return self._decode(
            ShareableLink,
            {
                "id": link_model.id,
                "asset_id": link_model.asset_id,
                "token": link_model.token,
                "expires_at": link_model.expires_at,
                "created_at": link_model.created_at,
            },
        )
