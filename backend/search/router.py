# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Search endpoint – one query over block names, block descriptions and field
names, fused into one result per block.

The handler is async: the two sub-queries and the per-block field loads run
on worker threads with their own sessions (see ``search.engine``), so the
request-scoped session from ``get_db`` is not used here.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.config import settings
from core.security import get_current_tenant
from core.tenancy import Tenant
from database import get_session_factory
from search.engine import SearchEngine
from search.schemas import SearchResponse, SearchResultResponse

router = APIRouter(prefix="/search", tags=["search"])


# ---------------------------------------------------------------------------
# GET /search  – combined block / field search
# ---------------------------------------------------------------------------


@router.get("", response_model=SearchResponse)
async def search(
    query: str = Query(..., min_length=1, max_length=200),
    block_type: str = Query("all", pattern="^(all|container|terminal)$"),
    limit: int = Query(settings.search_default_limit, ge=1, le=settings.search_max_limit),
    cursor: Optional[str] = None,
    sort_by: str = Query("relevance", pattern="^(relevance|name|created_at|updated_at)$"),
    sort: str = Query("desc", pattern="^(asc|desc)$"),
    tenant: Tenant = Depends(get_current_tenant),
    session_factory=Depends(get_session_factory),
):
    engine = SearchEngine(session_factory)
    page = await engine.search(
        tenant,
        query,
        block_type=block_type,
        limit=limit,
        cursor=cursor,
        sort_by=sort_by,
        sort_dir=sort,
    )
    return SearchResponse(
        results=[SearchResultResponse.from_result(r) for r in page.results],
        next_cursor=page.next_cursor,
        has_next=page.has_next,
        total=page.total,
        merged_total=page.merged_total,
        query=page.query,
    )
