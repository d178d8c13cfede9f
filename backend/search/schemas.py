# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic response models for the search endpoint."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from blocks.schemas import BreadcrumbResponse
from fields.schemas import FieldResponse


class MatchedFieldResponse(BaseModel):
    uuid: str
    name: str
    type: str


class SearchResultResponse(BaseModel):
    uuid: str
    name: str
    description: Optional[str]
    block_type: str
    created_at: datetime
    updated_at: datetime
    match_type: str
    matched_field: Optional[MatchedFieldResponse] = None
    breadcrumbs: List[BreadcrumbResponse]
    relative_path: str
    fields: Optional[List[FieldResponse]] = None  # terminal blocks only

    @classmethod
    def from_result(cls, result) -> "SearchResultResponse":
        block = result.block
        matched = result.matched_field
        return cls(
            uuid=block.uuid,
            name=block.name,
            description=block.description,
            block_type=block.block_type,
            created_at=block.created_at,
            updated_at=block.updated_at,
            match_type=result.match_type,
            matched_field=(
                MatchedFieldResponse(uuid=matched.uuid, name=matched.name, type=matched.type)
                if matched is not None
                else None
            ),
            breadcrumbs=[BreadcrumbResponse(uuid=c.uuid, name=c.name) for c in result.breadcrumbs],
            relative_path=result.relative_path,
            fields=(
                [FieldResponse.from_store(f) for f in result.fields]
                if result.fields is not None
                else None
            ),
        )


class SearchResponse(BaseModel):
    results: List[SearchResultResponse]
    next_cursor: Optional[str]
    has_next: bool
    total: int
    merged_total: int
    query: str
