# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the block endpoints."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


# -- Requests --------------------------------------------------------------
# Names are trimmed before the length check.  Path, owner and parent are
# always derived server-side and never accepted from the client.


def _trimmed_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Name is required")
    return value


class BlockCreate(BaseModel):
    name: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    parent_uuid: Optional[str] = None
    block_type: Literal["container", "terminal"] = "container"

    @field_validator("name")
    @classmethod
    def _name(cls, value: str) -> str:
        return _trimmed_name(value)


class BlockUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def _name(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _trimmed_name(value)


class BlockMove(BaseModel):
    new_parent_uuid: Optional[str] = None  # None moves the block to the root level


class BlockDelete(BaseModel):
    confirmation_name: Optional[str] = None


# -- Responses -------------------------------------------------------------
# Internal ids (and the id-based path) stay inside the service.


class BlockResponse(BaseModel):
    uuid: str
    name: str
    description: Optional[str]
    block_type: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BlockListResponse(BaseModel):
    blocks: List[BlockResponse]
    next_cursor: Optional[str]
    has_next: bool
    total: int


class BreadcrumbResponse(BaseModel):
    uuid: str
    name: str

    model_config = {"from_attributes": True}


class BreadcrumbListResponse(BaseModel):
    breadcrumbs: List[BreadcrumbResponse]


class BlockDeleteResponse(BaseModel):
    deleted_count: int
