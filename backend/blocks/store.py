# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Block store – the tenant's tree of containers and terminals.

Invariants enforced here
------------------------
* Every query is scoped by ``Tenant.account_id``.  Rows owned by another
  tenant behave exactly like missing rows (``NotFoundError`` / ``None``).
* A block's ``path`` is written once, in the same transaction as the row,
  and is correct from the first moment any other session can read it.
* Only containers get children; only terminals get fields.
* Move and cascade delete are single transactions.  Any failure rolls the
  whole subtree back.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from blocks.block_type import require_children_allowed
from blocks.breadcrumbs import Breadcrumb, BreadcrumbResolver
from blocks.cursor import decode_cursor, encode_cursor
from blocks.paths import (
    ROOT_PATH,
    child_path,
    is_descendant_path,
    repaint_subtree,
    subtree_prefix,
)
from core.errors import NotFoundError, ValidationError, storage_operation
from core.locking import SubtreeLockProvider, default_lock_provider
from core.logger import get_logger
from core.tenancy import Tenant
from fields.purge import purge_fields_of_blocks
from models.block import BLOCK_TYPES, CONTAINER, Block

_log = get_logger("blocks")

SORT_COLUMNS = {
    "created_at": Block.created_at,
    "updated_at": Block.updated_at,
    "name": Block.name,
}
SORT_DIRECTIONS = ("asc", "desc")


@dataclass
class BlockPage:
    blocks: List[Block]
    next_cursor: Optional[str]
    has_next: bool
    total: int


class BlockStore:
    def __init__(self, db: Session, locks: Optional[SubtreeLockProvider] = None):
        self.db = db
        self.locks = locks or default_lock_provider()
        self.resolver = BreadcrumbResolver(db)

    # -- lookups ---------------------------------------------------------

    def _owned(self, tenant: Tenant, uuid: str) -> Optional[Block]:
        return (
            self.db.query(Block)
            .filter(Block.uuid == uuid, Block.created_by_id == tenant.account_id)
            .first()
        )

    def _require(self, tenant: Tenant, uuid: str, label: str = "Block") -> Block:
        block = self._owned(tenant, uuid)
        if block is None:
            _log.warning("%s not found: uuid=%s tenant=%s", label, uuid, tenant.account_id)
            raise NotFoundError(f"{label} not found")
        return block

    def get_block(self, tenant: Tenant, uuid: str) -> Optional[Block]:
        """Return the tenant's block or None.  Never raises for absence."""
        with storage_operation(self.db, "get block"):
            return self._owned(tenant, uuid)

    # -- create ----------------------------------------------------------

    def stage_block(
        self,
        tenant: Tenant,
        name: str,
        description: Optional[str] = None,
        parent_uuid: Optional[str] = None,
        block_type: str = CONTAINER,
    ) -> Block:
        """
        Insert and flush a new block without committing.  The caller owns the
        transaction (used by the field store to create a terminal block and
        its fields atomically).
        """
        if block_type not in BLOCK_TYPES:
            raise ValidationError(f"Unsupported block type: {block_type}")

        if parent_uuid:
            parent = self._require(tenant, parent_uuid, "Parent block")
            require_children_allowed(parent.block_type)
            path, parent_id = child_path(parent.path, parent.id), parent.id
        else:
            path, parent_id = ROOT_PATH, None

        block = Block(
            uuid=str(uuid4()),
            name=name,
            description=description,
            path=path,
            block_type=block_type,
            created_by_id=tenant.account_id,
            parent_id=parent_id,
        )
        self.db.add(block)
        self.db.flush()
        return block

    def create_block(
        self,
        tenant: Tenant,
        name: str,
        description: Optional[str] = None,
        parent_uuid: Optional[str] = None,
        block_type: str = CONTAINER,
    ) -> Block:
        with storage_operation(self.db, "create block"):
            block = self.stage_block(tenant, name, description, parent_uuid, block_type)
            self.db.commit()
            self.db.refresh(block)

        _log.info(
            "Block created: uuid=%s id=%d path=%s type=%s tenant=%s",
            block.uuid, block.id, block.path, block.block_type, tenant.account_id,
        )
        return block

    # -- browse ----------------------------------------------------------

    def list_children(
        self,
        tenant: Tenant,
        parent_uuid: Optional[str] = None,
        limit: int = 10,
        cursor: Optional[str] = None,
        sort_by: str = "created_at",
        sort_dir: str = "desc",
    ) -> BlockPage:
        """
        One page of the direct children of *parent_uuid* (roots when None).

        Keyset pagination: rows strictly after the cursor in the requested
        order, ``limit + 1`` fetched to detect the next page.  ``total`` is a
        separate COUNT over the same level.
        """
        if sort_by not in SORT_COLUMNS:
            raise ValidationError(f"Unsupported sort field: {sort_by}")
        if sort_dir not in SORT_DIRECTIONS:
            raise ValidationError(f"Unsupported sort order: {sort_dir}")
        if limit < 1:
            raise ValidationError("Limit must be at least 1")

        column = SORT_COLUMNS[sort_by]
        descending = sort_dir == "desc"

        with storage_operation(self.db, "list blocks"):
            if parent_uuid:
                parent = self._require(tenant, parent_uuid, "Parent block")
                level_path = child_path(parent.path, parent.id)
            else:
                level_path = ROOT_PATH

            level = self.db.query(Block).filter(
                Block.created_by_id == tenant.account_id,
                Block.path == level_path,
            )

            query = level
            if cursor:
                value, last_uuid = decode_cursor(cursor, sort_by)
                if last_uuid is None:
                    query = query.filter(column < value if descending else column > value)
                elif descending:
                    query = query.filter(
                        or_(column < value, and_(column == value, Block.uuid < last_uuid))
                    )
                else:
                    query = query.filter(
                        or_(column > value, and_(column == value, Block.uuid > last_uuid))
                    )

            if descending:
                query = query.order_by(column.desc(), Block.uuid.desc())
            else:
                query = query.order_by(column.asc(), Block.uuid.asc())

            rows = query.limit(limit + 1).all()
            total = level.with_entities(func.count(Block.id)).scalar() or 0

        has_next = len(rows) > limit
        rows = rows[:limit]
        next_cursor = None
        if has_next and rows:
            last = rows[-1]
            next_cursor = encode_cursor(getattr(last, sort_by), last.uuid)

        _log.info(
            "Blocks listed: level=%s found=%d total=%d has_next=%s tenant=%s",
            level_path, len(rows), total, has_next, tenant.account_id,
        )
        return BlockPage(blocks=rows, next_cursor=next_cursor, has_next=has_next, total=total)

    def breadcrumbs(self, tenant: Tenant, uuid: str) -> List[Breadcrumb]:
        with storage_operation(self.db, "get breadcrumbs"):
            block = self._require(tenant, uuid)
            return self.resolver.resolve(tenant, block)

    # -- mutate ----------------------------------------------------------

    def update_block(
        self,
        tenant: Tenant,
        uuid: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Block:
        """Partial update of name / description.  Path, type and parent are untouched."""
        with storage_operation(self.db, "update block"):
            block = self._require(tenant, uuid)
            if name is not None:
                block.name = name
            if description is not None:
                block.description = description
            self.db.commit()
            self.db.refresh(block)

        _log.info("Block updated: uuid=%s tenant=%s", uuid, tenant.account_id)
        return block

    def move_block(self, tenant: Tenant, uuid: str, new_parent_uuid: Optional[str] = None) -> Block:
        """
        Re-parent a block (to the root level when *new_parent_uuid* is None)
        and repaint the paths of its whole subtree in one transaction.
        """
        with self.locks.hold(tenant), storage_operation(self.db, "move block"):
            block = self._require(tenant, uuid)
            old_prefix = subtree_prefix(block.path, block.id)

            if new_parent_uuid:
                target = self._require(tenant, new_parent_uuid, "Target block")
                if target.id == block.id or is_descendant_path(target.path, old_prefix):
                    _log.warning(
                        "Move rejected (cycle): uuid=%s target=%s tenant=%s",
                        uuid, new_parent_uuid, tenant.account_id,
                    )
                    raise ValidationError("Cannot move a block into itself or one of its descendants")
                require_children_allowed(target.block_type)
                new_path, new_parent_id = child_path(target.path, target.id), target.id
            else:
                new_path, new_parent_id = ROOT_PATH, None

            if new_path == block.path:
                return block

            new_prefix = subtree_prefix(new_path, block.id)
            arena = (
                self.db.query(Block.id, Block.path)
                .filter(
                    Block.created_by_id == tenant.account_id,
                    Block.path.like(old_prefix + "%"),
                )
                .all()
            )
            repainted = repaint_subtree(arena, old_prefix, new_prefix)

            now = datetime.now(timezone.utc)
            block.path = new_path
            block.parent_id = new_parent_id
            if repainted:
                self.db.bulk_update_mappings(
                    Block,
                    [
                        {"id": row_id, "path": path, "updated_at": now}
                        for row_id, path in repainted.items()
                    ],
                )
            self.db.commit()
            self.db.refresh(block)

        _log.info(
            "Block moved: uuid=%s path=%s descendants=%d tenant=%s",
            uuid, new_path, len(repainted), tenant.account_id,
        )
        return block

    def delete_block(self, tenant: Tenant, uuid: str, confirmation_name: Optional[str] = None) -> int:
        """
        Delete a block, every block below it, and every field (with its
        satellite row) owned by any of them.  Returns the number of blocks
        removed.
        """
        with self.locks.hold(tenant), storage_operation(self.db, "delete block"):
            block = self._require(tenant, uuid)
            if confirmation_name is not None and confirmation_name != block.name:
                raise ValidationError("Confirmation name does not match the block name")

            prefix = subtree_prefix(block.path, block.id)
            subtree = (
                self.db.query(Block.id, Block.uuid)
                .filter(
                    Block.created_by_id == tenant.account_id,
                    or_(Block.id == block.id, Block.path.like(prefix + "%")),
                )
                .all()
            )
            removed_fields = purge_fields_of_blocks(self.db, [row.uuid for row in subtree])
            removed_blocks = (
                self.db.query(Block)
                .filter(Block.id.in_([row.id for row in subtree]))
                .delete(synchronize_session=False)
            )
            self.db.commit()
            self.db.expunge_all()

        _log.info(
            "Block deleted: uuid=%s blocks=%d fields=%d tenant=%s",
            uuid, removed_blocks, removed_fields, tenant.account_id,
        )
        return removed_blocks
