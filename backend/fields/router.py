# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Field endpoints – typed values (text, password, todo) on terminal blocks.

Password values arrive in plaintext, are encrypted by the store before they
reach the database, and are returned decrypted only to the owning tenant.
They are never logged.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from blocks.schemas import BlockResponse
from core.errors import NotFoundError
from core.security import get_current_tenant
from core.tenancy import Tenant
from database import get_db
from fields.schemas import (
    FieldListResponse,
    FieldResponse,
    FieldsCreate,
    FieldsCreateResponse,
    FieldsDelete,
    FieldsDeleteResponse,
    FieldsUpdate,
)
from fields.store import FieldInput, FieldStore, FieldUpdate

router = APIRouter(prefix="/fields", tags=["fields"])


# ---------------------------------------------------------------------------
# POST /fields  – create fields on an existing or a new terminal block
# ---------------------------------------------------------------------------


@router.post("", response_model=FieldsCreateResponse, status_code=status.HTTP_201_CREATED)
def create_fields(
    body: FieldsCreate,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
):
    items = [FieldInput(name=f.name, type=f.type, value=f.value_for(f.type)) for f in body.fields]
    created, new_block = FieldStore(db).create_fields(
        tenant,
        items,
        block_uuid=body.block_uuid,
        block_name=body.block_name,
        block_description=body.block_description,
        parent_uuid=body.parent_uuid,
    )
    return FieldsCreateResponse(
        fields=[FieldResponse.from_store(f) for f in created],
        block=BlockResponse.model_validate(new_block) if new_block is not None else None,
    )


# ---------------------------------------------------------------------------
# GET /fields/block/{block_uuid}  – every field of a block, decrypted
# ---------------------------------------------------------------------------


@router.get("/block/{block_uuid}", response_model=FieldListResponse)
def list_fields(
    block_uuid: str,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
):
    fields = FieldStore(db).list_fields(tenant, block_uuid)
    return FieldListResponse(fields=[FieldResponse.from_store(f) for f in fields])


# ---------------------------------------------------------------------------
# GET /fields/{field_uuid}  – a single field
# ---------------------------------------------------------------------------


@router.get("/{field_uuid}", response_model=FieldResponse)
def get_field(
    field_uuid: str,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
):
    field = FieldStore(db).get_field(tenant, field_uuid)
    if field is None:
        raise NotFoundError("Field not found")
    return FieldResponse.from_store(field)


# ---------------------------------------------------------------------------
# PUT /fields/block/{block_uuid}  – bulk rename / value replacement
# ---------------------------------------------------------------------------


@router.put("/block/{block_uuid}", response_model=FieldListResponse)
def update_fields(
    block_uuid: str,
    body: FieldsUpdate,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
):
    """
    Partial update of several fields at once.  A value is only replaced when
    a value key is present; it must suit the field's stored type.  All or
    nothing.
    """
    updates = [
        FieldUpdate(
            field_uuid=item.field_uuid,
            name=item.name,
            type=item.type,
            value=item.value_for(item.type) if item.type else item.given_value(),
        )
        for item in body.fields
    ]
    updated = FieldStore(db).update_fields(tenant, block_uuid, updates)
    return FieldListResponse(fields=[FieldResponse.from_store(f) for f in updated])


# ---------------------------------------------------------------------------
# DELETE /fields/block/{block_uuid}  – bulk delete
# ---------------------------------------------------------------------------


@router.delete("/block/{block_uuid}", response_model=FieldsDeleteResponse)
def delete_fields(
    block_uuid: str,
    body: FieldsDelete,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
):
    deleted = FieldStore(db).delete_fields(tenant, block_uuid, body.field_uuids)
    return FieldsDeleteResponse(deleted_count=len(deleted), deleted_field_uuids=deleted)
