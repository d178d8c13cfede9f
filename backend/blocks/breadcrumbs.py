# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Breadcrumb resolution.

``IN (...)`` returns ancestors in whatever order the backend likes, so the
rows are re-ordered with an id → position map built from the path.  Ancestor
ids that no longer resolve (deleted concurrently, or another tenant's) are
dropped rather than failing the call.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List

from sqlalchemy.orm import Session

from blocks.paths import parse_path
from core.tenancy import Tenant
from models.block import Block


@dataclass(frozen=True)
class Breadcrumb:
    id: int
    uuid: str
    name: str


class BreadcrumbResolver:
    def __init__(self, db: Session):
        self.db = db

    def _fetch(self, tenant: Tenant, ids: Iterable[int]) -> Dict[int, Breadcrumb]:
        ids = set(ids)
        if not ids:
            return {}
        rows = (
            self.db.query(Block.id, Block.uuid, Block.name)
            .filter(Block.created_by_id == tenant.account_id, Block.id.in_(ids))
            .all()
        )
        return {row.id: Breadcrumb(id=row.id, uuid=row.uuid, name=row.name) for row in rows}

    def resolve(self, tenant: Tenant, block: Block) -> List[Breadcrumb]:
        """Ancestors of *block*, root first.  Empty for root blocks."""
        ancestor_ids = parse_path(block.path)
        found = self._fetch(tenant, ancestor_ids)
        return [found[i] for i in ancestor_ids if i in found]

    def resolve_many(self, tenant: Tenant, blocks: Iterable[Block]) -> Dict[str, List[Breadcrumb]]:
        """
        Breadcrumbs for several blocks with a single query over the union of
        their ancestor ids.  Keyed by block uuid.
        """
        paths = {block.uuid: parse_path(block.path) for block in blocks}
        found = self._fetch(tenant, (i for ids in paths.values() for i in ids))
        return {
            block_uuid: [found[i] for i in ancestor_ids if i in found]
            for block_uuid, ancestor_ids in paths.items()
        }


def relative_path(breadcrumbs: List[Breadcrumb], name: str) -> str:
    """Human-readable location, e.g. ``"Docs > Work > Passwords"``."""
    return " > ".join([crumb.name for crumb in breadcrumbs] + [name])
