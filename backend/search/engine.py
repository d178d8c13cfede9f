# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Combined search over block names/descriptions and field names.

Pipeline
--------
1. Two sub-queries run concurrently on worker threads, each with its own
   session: block name/description LIKE, and field name LIKE restricted to
   terminal blocks.  Either failing fails the search.
2. ``fusion.fuse`` merges them into one result per block.
3. ``fusion.rank`` orders the fused list; ``fusion.paginate`` cuts the page
   by decimal offset.
4. The page is decorated: breadcrumbs and relative path (one batched query),
   then the decrypted field list of every terminal block, fetched
   concurrently.  A hydration failure empties that block's field list and is
   logged; it never fails the request.

``total`` is the raw number of matches reported by the two sub-queries
before fusion, so a block matched both ways counts twice.  ``merged_total``
is the deduplicated count.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from blocks.breadcrumbs import BreadcrumbResolver, relative_path
from core.errors import ValidationError, storage_operation
from core.logger import get_logger
from core.tenancy import Tenant
from fields.store import FieldStore
from models.block import BLOCK_TYPES, CONTAINER, TERMINAL, Block
from models.field import Field
from search.fusion import (
    SORT_FIELDS,
    BlockHit,
    FieldHit,
    MatchedField,
    SearchResult,
    fuse,
    paginate,
    parse_offset,
    rank,
)

_log = get_logger("search")

ALL_TYPES = "all"
QUERY_MAX_LENGTH = 200


@dataclass
class SearchPage:
    results: List[SearchResult]
    next_cursor: Optional[str]
    has_next: bool
    total: int
    merged_total: int
    query: str


def _snapshot(block: Block) -> BlockHit:
    return BlockHit(
        id=block.id,
        uuid=block.uuid,
        name=block.name,
        description=block.description,
        path=block.path,
        block_type=block.block_type,
        created_by_id=block.created_by_id,
        parent_id=block.parent_id,
        created_at=block.created_at,
        updated_at=block.updated_at,
    )


class SearchEngine:
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    # -- sub-queries (worker threads) ------------------------------------

    def _search_blocks(self, tenant: Tenant, query: str, block_type: str) -> Tuple[List[BlockHit], int]:
        db = self.session_factory()
        try:
            with storage_operation(db, "search blocks"):
                name_match = Block.name.contains(query, autoescape=True)
                description_match = and_(
                    Block.description.isnot(None),
                    Block.description.contains(query, autoescape=True),
                )
                conditions = [Block.created_by_id == tenant.account_id, or_(name_match, description_match)]
                if block_type != ALL_TYPES:
                    conditions.append(Block.block_type == block_type)

                rows = (
                    db.query(Block)
                    .filter(*conditions)
                    .order_by(Block.updated_at.desc(), Block.id.desc())
                    .all()
                )
                total = db.query(func.count(Block.id)).filter(*conditions).scalar() or 0
                return [_snapshot(row) for row in rows], total
        finally:
            db.close()

    def _search_fields(self, tenant: Tenant, query: str, block_type: str) -> Tuple[List[FieldHit], int]:
        # Field matches only ever surface terminal blocks.
        if block_type == CONTAINER:
            return [], 0

        db = self.session_factory()
        try:
            with storage_operation(db, "search fields"):
                conditions = [
                    Block.created_by_id == tenant.account_id,
                    Block.block_type == TERMINAL,
                    Field.created_by_id == tenant.account_id,
                    Field.name.contains(query, autoescape=True),
                ]
                joined = db.query(Block, Field.id, Field.uuid, Field.name, Field.type).join(
                    Field, Field.block_id == Block.uuid
                )
                rows = (
                    joined.filter(*conditions)
                    .order_by(Block.updated_at.desc(), Block.id.desc(), Field.id.asc())
                    .all()
                )
                total = (
                    db.query(func.count(Field.id))
                    .select_from(Block)
                    .join(Field, Field.block_id == Block.uuid)
                    .filter(*conditions)
                    .scalar()
                    or 0
                )
                hits = [
                    FieldHit(
                        block=_snapshot(block),
                        field=MatchedField(id=field_id, uuid=field_uuid, name=field_name, type=field_type),
                    )
                    for block, field_id, field_uuid, field_name, field_type in rows
                ]
                return hits, total
        finally:
            db.close()

    # -- decoration ------------------------------------------------------

    def _attach_breadcrumbs(self, tenant: Tenant, results: List[SearchResult]) -> None:
        db = self.session_factory()
        try:
            with storage_operation(db, "resolve search breadcrumbs"):
                crumbs = BreadcrumbResolver(db).resolve_many(tenant, [r.block for r in results])
        finally:
            db.close()
        for result in results:
            result.breadcrumbs = crumbs.get(result.block.uuid, [])
            result.relative_path = relative_path(result.breadcrumbs, result.block.name)

    def _load_fields(self, tenant: Tenant, block_uuid: str) -> list:
        db = self.session_factory()
        try:
            return FieldStore(db).list_fields(tenant, block_uuid)
        finally:
            db.close()

    async def _hydrate(self, tenant: Tenant, results: List[SearchResult]) -> None:
        terminals = [r for r in results if r.block.block_type == TERMINAL]
        outcomes = await asyncio.gather(
            *[asyncio.to_thread(self._load_fields, tenant, r.block.uuid) for r in terminals],
            return_exceptions=True,
        )
        for result, outcome in zip(terminals, outcomes):
            if isinstance(outcome, Exception):
                _log.warning(
                    "Failed to load fields for terminal block %s in search results: %s",
                    result.block.uuid, outcome,
                )
                result.fields = []
            else:
                result.fields = outcome

    # -- entry point -----------------------------------------------------

    async def search(
        self,
        tenant: Tenant,
        query: str,
        block_type: str = ALL_TYPES,
        limit: int = 20,
        cursor: Optional[str] = None,
        sort_by: str = "relevance",
        sort_dir: str = "desc",
    ) -> SearchPage:
        query = (query or "").strip()
        if not query:
            raise ValidationError("Search query is required")
        if len(query) > QUERY_MAX_LENGTH:
            raise ValidationError(f"Search query must not exceed {QUERY_MAX_LENGTH} characters")
        if block_type != ALL_TYPES and block_type not in BLOCK_TYPES:
            raise ValidationError('Block type must be "container", "terminal", or "all"')
        if sort_by not in SORT_FIELDS:
            raise ValidationError(f"Unsupported sort field: {sort_by}")
        if sort_dir not in ("asc", "desc"):
            raise ValidationError(f"Unsupported sort order: {sort_dir}")
        if limit < 1:
            raise ValidationError("Limit must be at least 1")
        offset = parse_offset(cursor)

        _log.info(
            "Search started: query=%r block_type=%s sort_by=%s tenant=%s",
            query, block_type, sort_by, tenant.account_id,
        )

        (block_hits, block_total), (field_hits, field_total) = await asyncio.gather(
            asyncio.to_thread(self._search_blocks, tenant, query, block_type),
            asyncio.to_thread(self._search_fields, tenant, query, block_type),
        )

        ranked = rank(fuse(block_hits, field_hits, query), sort_by, sort_dir)
        page, next_cursor, has_next = paginate(ranked, offset, limit)

        if page:
            await asyncio.to_thread(self._attach_breadcrumbs, tenant, page)
            await self._hydrate(tenant, page)

        _log.info(
            "Search completed: query=%r block_matches=%d field_matches=%d merged=%d page=%d",
            query, block_total, field_total, len(ranked), len(page),
        )
        return SearchPage(
            results=page,
            next_cursor=next_cursor,
            has_next=has_next,
            total=block_total + field_total,
            merged_total=len(ranked),
            query=query,
        )
