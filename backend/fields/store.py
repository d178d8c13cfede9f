# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Field store – typed values attached to terminal blocks.

Security invariants
-------------------
* Password values are encrypted with ``core.security.encrypt_value`` before
  they reach the session and decrypted only on the way out.  Plaintext is
  never persisted or logged.
* A field row and its satellite row are written in the same transaction.
  Deletes remove the satellite first.
* Fields are visible only to the tenant that owns the block.
"""

from dataclasses import dataclass, field as dc_field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from uuid import uuid4

from sqlalchemy.orm import Session, selectinload

from blocks.block_type import require_fields_allowed
from blocks.store import BlockStore
from core.errors import NotFoundError, ValidationError, storage_operation
from core.logger import get_logger
from core.security import decrypt_value, encrypt_value
from core.tenancy import Tenant
from fields.purge import purge_fields
from models.block import TERMINAL, Block
from models.field import (
    FIELD_TYPES,
    PASSWORD,
    SATELLITE_MODELS,
    TEXT,
    TODO,
    Field,
    PasswordField,
    TextField,
    TodoField,
)

_log = get_logger("fields")

TEXT_MAX_LENGTH = 2000
PASSWORD_MAX_LENGTH = 500

FieldValue = Union[str, bool, None]


@dataclass
class FieldInput:
    name: str
    type: str
    # str for text/password, bool for todo (None → unchecked)
    value: FieldValue = None


@dataclass
class FieldUpdate:
    field_uuid: str
    name: Optional[str] = None
    # Only accepted when equal to the stored type; types are fixed.
    type: Optional[str] = None
    value: FieldValue = None


@dataclass
class FieldWithData:
    id: int
    uuid: str
    name: str
    type: str
    block_id: str
    created_at: datetime
    updated_at: datetime
    data: Dict[str, Any] = dc_field(default_factory=dict)


def _check_value(field_type: str, value: FieldValue) -> FieldValue:
    """Validate *value* for *field_type* and return the normalised value."""
    if field_type == TEXT:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("Text is required")
        if len(value) > TEXT_MAX_LENGTH:
            raise ValidationError(f"Text must not exceed {TEXT_MAX_LENGTH} characters")
        return value.strip()
    if field_type == PASSWORD:
        if not isinstance(value, str) or not value:
            raise ValidationError("Password is required")
        if len(value) > PASSWORD_MAX_LENGTH:
            raise ValidationError(f"Password must not exceed {PASSWORD_MAX_LENGTH} characters")
        return value
    if field_type == TODO:
        if value is None:
            return False
        if not isinstance(value, bool):
            raise ValidationError("isChecked must be a boolean")
        return value
    raise ValidationError(f"Unsupported field type: {field_type}")


def _new_satellite(field_uuid: str, field_type: str, value: FieldValue):
    if field_type == TEXT:
        return TextField(field_id=field_uuid, text=value)
    if field_type == PASSWORD:
        return PasswordField(field_id=field_uuid, password=encrypt_value(value))
    return TodoField(field_id=field_uuid, is_checked=value)


def _apply_value(satellite, field_type: str, value: FieldValue) -> None:
    if field_type == TEXT:
        satellite.text = value
    elif field_type == PASSWORD:
        satellite.password = encrypt_value(value)
    else:
        satellite.is_checked = value


def _payload(field: Field) -> Dict[str, Any]:
    satellite = field.satellite()
    if satellite is None:
        raise ValidationError(f"{field.type.capitalize()} field data not found for field {field.uuid}")
    if field.type == TEXT:
        return {"text": satellite.text}
    if field.type == PASSWORD:
        try:
            return {"password": decrypt_value(satellite.password)}
        except ValueError:
            _log.error("Failed to decrypt password for field %s", field.uuid)
            raise ValidationError("Failed to decrypt password field")
    return {"is_checked": bool(satellite.is_checked)}


def _to_dto(field: Field) -> FieldWithData:
    return FieldWithData(
        id=field.id,
        uuid=field.uuid,
        name=field.name,
        type=field.type,
        block_id=field.block_id,
        created_at=field.created_at,
        updated_at=field.updated_at,
        data=_payload(field),
    )


class FieldStore:
    def __init__(self, db: Session):
        self.db = db

    # -- helpers ---------------------------------------------------------

    def _require_block(self, tenant: Tenant, block_uuid: str) -> Block:
        block = (
            self.db.query(Block)
            .filter(Block.uuid == block_uuid, Block.created_by_id == tenant.account_id)
            .first()
        )
        if block is None:
            _log.warning("Target block not found: uuid=%s tenant=%s", block_uuid, tenant.account_id)
            raise NotFoundError("Block not found")
        return block

    def _query_with_data(self, tenant: Tenant):
        return (
            self.db.query(Field)
            .options(
                selectinload(Field.text_field),
                selectinload(Field.password_field),
                selectinload(Field.todo_field),
            )
            .filter(Field.created_by_id == tenant.account_id)
        )

    def _load(self, tenant: Tenant, block_uuid: str, field_uuids: Optional[Sequence[str]] = None) -> List[Field]:
        query = self._query_with_data(tenant).filter(Field.block_id == block_uuid)
        if field_uuids is not None:
            query = query.filter(Field.uuid.in_(list(field_uuids)))
        return query.order_by(Field.id.asc()).all()

    def _owned_fields(self, tenant: Tenant, block: Block, field_uuids: Sequence[str]) -> Dict[str, Field]:
        rows = (
            self.db.query(Field)
            .filter(
                Field.uuid.in_(list(field_uuids)),
                Field.block_id == block.uuid,
                Field.created_by_id == tenant.account_id,
            )
            .all()
        )
        found = {row.uuid: row for row in rows}
        missing = [u for u in field_uuids if u not in found]
        if missing:
            _log.warning("Fields not found on block %s: %s", block.uuid, missing)
            raise NotFoundError("Field not found", details={"field_uuids": missing})
        return found

    # -- create ----------------------------------------------------------

    def create_fields(
        self,
        tenant: Tenant,
        fields: Sequence[FieldInput],
        block_uuid: Optional[str] = None,
        block_name: Optional[str] = None,
        block_description: Optional[str] = None,
        parent_uuid: Optional[str] = None,
    ) -> Tuple[List[FieldWithData], Optional[Block]]:
        """
        Create *fields* on an existing terminal block (``block_uuid``) or on a
        new terminal block (``block_name``, optionally under ``parent_uuid``).
        Exactly one of the two targets must be given.  Everything happens in a
        single transaction; the new block (if any) is returned alongside.
        """
        if not fields:
            raise ValidationError("At least one field is required")
        if bool(block_uuid) == bool(block_name):
            raise ValidationError("Provide exactly one of block_uuid (existing block) or block_name (new block)")

        values = []
        for item in fields:
            if item.type not in FIELD_TYPES:
                raise ValidationError(f"Unsupported field type: {item.type}")
            values.append(_check_value(item.type, item.value))

        with storage_operation(self.db, "create fields"):
            created_block = None
            if block_uuid:
                block = self._require_block(tenant, block_uuid)
                require_fields_allowed(block.block_type)
            else:
                block = BlockStore(self.db).stage_block(
                    tenant, block_name, block_description, parent_uuid, TERMINAL
                )
                created_block = block

            target_uuid = block.uuid
            new_uuids = []
            for item, value in zip(fields, values):
                field_uuid = str(uuid4())
                self.db.add(
                    Field(
                        uuid=field_uuid,
                        name=item.name,
                        type=item.type,
                        created_by_id=tenant.account_id,
                        block_id=target_uuid,
                    )
                )
                # Field row must exist before its satellite for the FK.
                self.db.flush()
                self.db.add(_new_satellite(field_uuid, item.type, value))
                new_uuids.append(field_uuid)

            self.db.commit()
            if created_block is not None:
                self.db.refresh(created_block)
            created = [_to_dto(f) for f in self._load(tenant, target_uuid, new_uuids)]

        _log.info(
            "Fields created: count=%d block=%s new_block=%s tenant=%s",
            len(created), target_uuid, created_block is not None, tenant.account_id,
        )
        return created, created_block

    # -- read ------------------------------------------------------------

    def list_fields(self, tenant: Tenant, block_uuid: str) -> List[FieldWithData]:
        """All fields of a block with their values (passwords decrypted)."""
        with storage_operation(self.db, "list fields"):
            self._require_block(tenant, block_uuid)
            rows = self._load(tenant, block_uuid)
            return [_to_dto(row) for row in rows]

    def get_field(self, tenant: Tenant, field_uuid: str) -> Optional[FieldWithData]:
        with storage_operation(self.db, "get field"):
            row = self._query_with_data(tenant).filter(Field.uuid == field_uuid).first()
            return _to_dto(row) if row is not None else None

    # -- update / delete -------------------------------------------------

    def update_fields(self, tenant: Tenant, block_uuid: str, updates: Sequence[FieldUpdate]) -> List[FieldWithData]:
        """Rename fields and/or replace their values.  All or nothing."""
        if not updates:
            raise ValidationError("At least one field update is required")

        with storage_operation(self.db, "update fields"):
            block = self._require_block(tenant, block_uuid)
            found = self._owned_fields(tenant, block, [u.field_uuid for u in updates])
            now = datetime.now(timezone.utc)

            for update in updates:
                field = found[update.field_uuid]
                if update.type is not None and update.type != field.type:
                    raise ValidationError("Field type cannot be changed")
                if update.name is not None:
                    field.name = update.name
                if update.value is not None:
                    value = _check_value(field.type, update.value)
                    model = SATELLITE_MODELS[field.type]
                    satellite = self.db.query(model).filter(model.field_id == field.uuid).first()
                    if satellite is None:
                        raise ValidationError(f"{field.type.capitalize()} field data not found for field {field.uuid}")
                    _apply_value(satellite, field.type, value)
                field.updated_at = now

            self.db.commit()
            updated = [_to_dto(f) for f in self._load(tenant, block.uuid, list(found))]

        _log.info("Fields updated: count=%d block=%s tenant=%s", len(updated), block_uuid, tenant.account_id)
        return updated

    def delete_fields(self, tenant: Tenant, block_uuid: str, field_uuids: Sequence[str]) -> List[str]:
        """Delete fields of a block (satellites first).  Returns the deleted uuids."""
        if not field_uuids:
            raise ValidationError("At least one field id is required")

        with storage_operation(self.db, "delete fields"):
            block = self._require_block(tenant, block_uuid)
            found = self._owned_fields(tenant, block, list(field_uuids))
            purge_fields(self.db, list(found))
            self.db.commit()
            self.db.expunge_all()

        deleted = list(found)
        _log.info("Fields deleted: count=%d block=%s tenant=%s", len(deleted), block_uuid, tenant.account_id)
        return deleted
