# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Block endpoints – create, browse, rename, move and delete tree nodes.

Security invariants enforced by every handler
---------------------------------------------
* JWT is required on every endpoint (via ``get_current_tenant``).
* Every store call is scoped by the caller's tenant.  Another tenant's block
  is indistinguishable from a missing one (404).
* Responses carry uuids only; internal ids and id-based paths stay server-side.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from blocks.schemas import (
    BlockCreate,
    BlockDelete,
    BlockDeleteResponse,
    BlockListResponse,
    BlockMove,
    BlockResponse,
    BlockUpdate,
    BreadcrumbListResponse,
    BreadcrumbResponse,
)
from blocks.store import BlockStore
from core.config import settings
from core.errors import NotFoundError
from core.security import get_current_tenant
from core.tenancy import Tenant
from database import get_db

router = APIRouter(prefix="/blocks", tags=["blocks"])


def _page(page) -> BlockListResponse:
    return BlockListResponse(
        blocks=[BlockResponse.model_validate(b) for b in page.blocks],
        next_cursor=page.next_cursor,
        has_next=page.has_next,
        total=page.total,
    )


# ---------------------------------------------------------------------------
# POST /blocks  – create a container or terminal block
# ---------------------------------------------------------------------------


@router.post("", response_model=BlockResponse, status_code=status.HTTP_201_CREATED)
def create_block(
    body: BlockCreate,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
):
    """Create a block at the root level or under ``parent_uuid`` (which must be a container)."""
    return BlockStore(db).create_block(
        tenant,
        name=body.name,
        description=body.description,
        parent_uuid=body.parent_uuid,
        block_type=body.block_type,
    )


# ---------------------------------------------------------------------------
# GET /blocks  – list root-level blocks
# ---------------------------------------------------------------------------


@router.get("", response_model=BlockListResponse)
def list_root_blocks(
    limit: int = Query(settings.list_default_limit, ge=1, le=settings.list_max_limit),
    cursor: Optional[str] = None,
    sort_by: str = Query("created_at", pattern="^(created_at|updated_at|name)$"),
    sort: str = Query("desc", pattern="^(asc|desc)$"),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
):
    page = BlockStore(db).list_children(tenant, None, limit=limit, cursor=cursor, sort_by=sort_by, sort_dir=sort)
    return _page(page)


# ---------------------------------------------------------------------------
# GET /blocks/{uuid}  – a single block
# ---------------------------------------------------------------------------


@router.get("/{block_uuid}", response_model=BlockResponse)
def get_block(
    block_uuid: str,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
):
    block = BlockStore(db).get_block(tenant, block_uuid)
    if block is None:
        raise NotFoundError("Block not found")
    return block


# ---------------------------------------------------------------------------
# GET /blocks/{uuid}/children  – one page of direct children
# ---------------------------------------------------------------------------


@router.get("/{block_uuid}/children", response_model=BlockListResponse)
def list_children(
    block_uuid: str,
    limit: int = Query(settings.list_default_limit, ge=1, le=settings.list_max_limit),
    cursor: Optional[str] = None,
    sort_by: str = Query("created_at", pattern="^(created_at|updated_at|name)$"),
    sort: str = Query("desc", pattern="^(asc|desc)$"),
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
):
    page = BlockStore(db).list_children(
        tenant, block_uuid, limit=limit, cursor=cursor, sort_by=sort_by, sort_dir=sort
    )
    return _page(page)


# ---------------------------------------------------------------------------
# GET /blocks/{uuid}/breadcrumbs  – ancestors, root first
# ---------------------------------------------------------------------------


@router.get("/{block_uuid}/breadcrumbs", response_model=BreadcrumbListResponse)
def get_breadcrumbs(
    block_uuid: str,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
):
    crumbs = BlockStore(db).breadcrumbs(tenant, block_uuid)
    return BreadcrumbListResponse(
        breadcrumbs=[BreadcrumbResponse(uuid=c.uuid, name=c.name) for c in crumbs]
    )


# ---------------------------------------------------------------------------
# PUT /blocks/{uuid}  – rename / re-describe
# ---------------------------------------------------------------------------


@router.put("/{block_uuid}", response_model=BlockResponse)
def update_block(
    block_uuid: str,
    body: BlockUpdate,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
):
    """Partial update.  Only fields that are explicitly provided (non-None) are changed."""
    return BlockStore(db).update_block(tenant, block_uuid, name=body.name, description=body.description)


# ---------------------------------------------------------------------------
# PUT /blocks/{uuid}/move  – re-parent a block and its subtree
# ---------------------------------------------------------------------------


@router.put("/{block_uuid}/move", response_model=BlockResponse)
def move_block(
    block_uuid: str,
    body: BlockMove,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
):
    return BlockStore(db).move_block(tenant, block_uuid, body.new_parent_uuid)


# ---------------------------------------------------------------------------
# DELETE /blocks/{uuid}  – cascade delete
# ---------------------------------------------------------------------------


@router.delete("/{block_uuid}", response_model=BlockDeleteResponse)
def delete_block(
    block_uuid: str,
    body: Optional[BlockDelete] = None,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
):
    """
    Permanently delete the block, all of its descendants and all of their
    fields.  When ``confirmation_name`` is sent it must equal the block name.
    """
    confirmation = body.confirmation_name if body is not None else None
    deleted = BlockStore(db).delete_block(tenant, block_uuid, confirmation_name=confirmation)
    return BlockDeleteResponse(deleted_count=deleted)
