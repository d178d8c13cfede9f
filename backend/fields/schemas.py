# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the field endpoints."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from blocks.schemas import BlockResponse


# -- Requests --------------------------------------------------------------
# The value travels in the key matching the field type: ``text`` for text
# fields, ``password`` (plaintext, encrypted server-side) for password
# fields, ``is_checked`` for todo fields.


FieldType = Literal["text", "password", "todo"]


class _FieldValue(BaseModel):
    text: Optional[str] = Field(default=None, max_length=2000)
    password: Optional[str] = Field(default=None, min_length=1, max_length=500)
    is_checked: Optional[bool] = None

    def value_for(self, field_type: str):
        if field_type == "text":
            return self.text
        if field_type == "password":
            return self.password
        return self.is_checked

    def given_value(self):
        """Whichever value key was sent; the store checks it against the stored type."""
        for value in (self.text, self.password, self.is_checked):
            if value is not None:
                return value
        return None


class FieldItem(_FieldValue):
    name: str = Field(max_length=100)
    type: FieldType

    @field_validator("name")
    @classmethod
    def _name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Field name is required")
        return value


class FieldsCreate(BaseModel):
    fields: List[FieldItem] = Field(min_length=1, max_length=50)
    # Existing terminal block ...
    block_uuid: Optional[str] = None
    # ... or a new one
    block_name: Optional[str] = Field(default=None, max_length=100)
    block_description: Optional[str] = Field(default=None, max_length=500)
    parent_uuid: Optional[str] = None

    @model_validator(mode="after")
    def _one_target(self):
        if self.block_name is not None:
            self.block_name = self.block_name.strip() or None
        if bool(self.block_uuid) == bool(self.block_name):
            raise ValueError("Provide exactly one of block_uuid or block_name")
        return self


class FieldUpdateItem(_FieldValue):
    field_uuid: str
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[FieldType] = None


class FieldsUpdate(BaseModel):
    fields: List[FieldUpdateItem] = Field(min_length=1, max_length=50)


class FieldsDelete(BaseModel):
    field_uuids: List[str] = Field(min_length=1)


# -- Responses -------------------------------------------------------------
# ``data`` holds the decrypted value under the same key used on input.


class FieldResponse(BaseModel):
    uuid: str
    name: str
    type: str
    block_uuid: str
    data: Dict[str, Any]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_store(cls, item) -> "FieldResponse":
        return cls(
            uuid=item.uuid,
            name=item.name,
            type=item.type,
            block_uuid=item.block_id,
            data=item.data,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )


class FieldListResponse(BaseModel):
    fields: List[FieldResponse]


class FieldsCreateResponse(BaseModel):
    fields: List[FieldResponse]
    block: Optional[BlockResponse] = None  # set when a new terminal block was created


class FieldsDeleteResponse(BaseModel):
    deleted_count: int
    deleted_field_uuids: List[str]
