# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Block ORM model – one node of a tenant's materialized-path tree."""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Enum, DateTime, ForeignKey, Index
from sqlalchemy.sql import func

from database import Base

CONTAINER = "container"
TERMINAL = "terminal"
BLOCK_TYPES = (CONTAINER, TERMINAL)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Block(Base):
    __tablename__ = "blocks"
    __table_args__ = (
        Index("blocks_container_parent_idx", "parent_id", "block_type"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Client-facing identity.  Internal ids never leave the service.
    uuid = Column(String(36), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    # "/" for roots, otherwise "/<root id>/.../<parent id>/".
    path = Column(String(1024), nullable=False, index=True)
    block_type = Column(Enum(*BLOCK_TYPES, name="block_type"), nullable=False, index=True)
    # Tenancy boundary – every query filters on it.  Never updated.
    created_by_id = Column(String(64), nullable=False, index=True)
    parent_id = Column(
        Integer,
        ForeignKey("blocks.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    # Python-side defaults keep sub-second resolution for ordering.
    created_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Block id={self.id} uuid={self.uuid} path={self.path!r} type={self.block_type}>"
