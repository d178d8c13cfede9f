# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Capability rules for the two block types."""

from core.errors import ValidationError
from models.block import CONTAINER, TERMINAL


def can_have_children(block_type: str) -> bool:
    return block_type == CONTAINER


def can_have_fields(block_type: str) -> bool:
    return block_type == TERMINAL


def require_children_allowed(block_type: str) -> None:
    if not can_have_children(block_type):
        raise ValidationError("Cannot add child blocks to terminal blocks")


def require_fields_allowed(block_type: str) -> None:
    if not can_have_fields(block_type):
        raise ValidationError("Fields can only be added to terminal blocks")
