"""SQLAlchemy ORM models.

These models define the database schema. DAOs convert these to Pydantic
domain models before returning to services - SQLAlchemy objects should
never leak outside the DAO layer.
"""

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from clipvault.database import Base
from clipvault.timeutil import utc_now


class AssetModel(Base):
    """Asset ORM model.

    `storage_path` is the authoritative on-disk location. `derived_from`
    holds a JSON array of source asset ids for merge results.
    """

    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    original_name = Column(String, nullable=False)
    storage_path = Column(String, nullable=False)
    original_storage_path = Column(String, nullable=True)
    size_bytes = Column(BigInteger, nullable=False)
    duration_seconds = Column(Float, nullable=False)
    media_type = Column(String, nullable=False, default="video/mp4")
    derived_from = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    # Relationships
    links = relationship("ShareableLinkModel", back_populates="asset")


class ShareableLinkModel(Base):
    """Shareable link ORM model.

    Tokens are unique; an insert that collides fails instead of overwriting.
    """

    __tablename__ = "shareable_links"

    id = Column(Integer, primary_key=True, autoincrement=True)
    asset_id = Column(
        Integer,
        ForeignKey("assets.id"),
        nullable=False,
        index=True,
    )
    token = Column(String, nullable=False, unique=True, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    # Relationships
    asset = relationship("AssetModel", back_populates="links")
