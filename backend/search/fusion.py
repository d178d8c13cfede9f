# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Match fusion, ranking and offset pagination for search results.

Pure functions over plain records – no session, no I/O – so the dedup and
ordering rules can be exercised without a database.

Rules
-----
* One result per block uuid.
* Block-level matches are inserted first and are never replaced.  A field
  match for a block that already has a block-level entry is dropped.
* Among field matches for the same block, the first one seen wins.
* Relevance order: block_name (1) < field_name (2) < block_description (3),
  then most recently updated first, then highest id first.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from blocks.breadcrumbs import Breadcrumb
from core.errors import ValidationError

BLOCK_NAME = "block_name"
BLOCK_DESCRIPTION = "block_description"
FIELD_NAME = "field_name"

MATCH_PRIORITY = {
    BLOCK_NAME: 1,
    FIELD_NAME: 2,
    BLOCK_DESCRIPTION: 3,
}

RELEVANCE = "relevance"
SORT_FIELDS = (RELEVANCE, "name", "created_at", "updated_at")


@dataclass(frozen=True)
class BlockHit:
    """Snapshot of a block row taken inside the query's session."""

    id: int
    uuid: str
    name: str
    description: Optional[str]
    path: str
    block_type: str
    created_by_id: str
    parent_id: Optional[int]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class MatchedField:
    id: int
    uuid: str
    name: str
    type: str


@dataclass(frozen=True)
class FieldHit:
    block: BlockHit
    field: MatchedField


@dataclass
class SearchResult:
    block: BlockHit
    match_type: str
    matched_field: Optional[MatchedField] = None
    breadcrumbs: List[Breadcrumb] = field(default_factory=list)
    relative_path: str = ""
    # Only populated for terminal blocks.
    fields: Optional[list] = None


def block_match_type(name: str, description: Optional[str], query: str) -> str:
    """Which block column matched.  Case-insensitive; the name wins ties."""
    needle = query.casefold()
    if needle in name.casefold():
        return BLOCK_NAME
    if description and needle in description.casefold():
        return BLOCK_DESCRIPTION
    # The backend matched under its own collation; fall back to the name.
    return BLOCK_NAME


def fuse(block_hits: Iterable[BlockHit], field_hits: Iterable[FieldHit], query: str) -> List[SearchResult]:
    merged: Dict[str, SearchResult] = {}

    for hit in block_hits:
        if hit.uuid not in merged:
            merged[hit.uuid] = SearchResult(
                block=hit,
                match_type=block_match_type(hit.name, hit.description, query),
            )

    for hit in field_hits:
        if hit.block.uuid in merged:
            continue
        merged[hit.block.uuid] = SearchResult(
            block=hit.block,
            match_type=FIELD_NAME,
            matched_field=hit.field,
        )

    return list(merged.values())


def rank(results: List[SearchResult], sort_by: str = RELEVANCE, sort_dir: str = "desc") -> List[SearchResult]:
    if sort_by == RELEVANCE:
        # Negated timestamps are not available for datetimes, so sort in two
        # stable passes: recency/id descending, then priority ascending.
        ordered = sorted(results, key=lambda r: (r.block.updated_at, r.block.id), reverse=True)
        return sorted(ordered, key=lambda r: MATCH_PRIORITY[r.match_type])

    return sorted(
        results,
        key=lambda r: (getattr(r.block, sort_by), r.block.id),
        reverse=(sort_dir == "desc"),
    )


def parse_offset(cursor: Optional[str]) -> int:
    if cursor is None or cursor == "":
        return 0
    if not cursor.isdigit():
        raise ValidationError("Invalid cursor")
    return int(cursor)


def paginate(results: List[SearchResult], offset: int, limit: int) -> Tuple[List[SearchResult], Optional[str], bool]:
    page = results[offset:offset + limit]
    has_next = len(results) > offset + limit
    next_cursor = str(offset + limit) if has_next else None
    return page, next_cursor, has_next
