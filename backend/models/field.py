# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Field ORM models.

A ``Field`` row carries the name and type; its value lives in exactly one
satellite table chosen by ``type``:

    text      → text_fields.text
    password  → password_fields.password   (AES-256-GCM token, never plaintext)
    todo      → todo_fields.is_checked

Satellites reference ``fields.uuid``; fields reference ``blocks.uuid``.
Neither foreign key cascades, so deletes go satellites → fields → blocks.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, Enum, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base
from models.block import _utcnow

TEXT = "text"
PASSWORD = "password"
TODO = "todo"
FIELD_TYPES = (TEXT, PASSWORD, TODO)


def _timestamps():
    return (
        Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False),
        Column(
            DateTime(timezone=True),
            default=_utcnow,
            onupdate=_utcnow,
            server_default=func.now(),
            nullable=False,
        ),
    )


class Field(Base):
    __tablename__ = "fields"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    type = Column(Enum(*FIELD_TYPES, name="field_type"), nullable=False, index=True)
    created_by_id = Column(String(64), nullable=False, index=True)
    block_id = Column(String(36), ForeignKey("blocks.uuid"), nullable=False, index=True)
    created_at, updated_at = _timestamps()

    text_field = relationship("TextField", uselist=False, viewonly=True)
    password_field = relationship("PasswordField", uselist=False, viewonly=True)
    todo_field = relationship("TodoField", uselist=False, viewonly=True)

    def satellite(self):
        """Return the populated satellite row for this field's type (or None)."""
        return {
            TEXT: self.text_field,
            PASSWORD: self.password_field,
            TODO: self.todo_field,
        }.get(self.type)


class TextField(Base):
    __tablename__ = "text_fields"

    id = Column(Integer, primary_key=True, autoincrement=True)
    text = Column(Text, nullable=False)
    field_id = Column(String(36), ForeignKey("fields.uuid"), nullable=False, unique=True, index=True)
    created_at, updated_at = _timestamps()


class PasswordField(Base):
    __tablename__ = "password_fields"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # base64( nonce || ciphertext || GCM tag ) – see core.security.encrypt_value
    password = Column(Text, nullable=False)
    field_id = Column(String(36), ForeignKey("fields.uuid"), nullable=False, unique=True, index=True)
    created_at, updated_at = _timestamps()


class TodoField(Base):
    __tablename__ = "todo_fields"

    id = Column(Integer, primary_key=True, autoincrement=True)
    is_checked = Column(Boolean, nullable=False, default=False)
    field_id = Column(String(36), ForeignKey("fields.uuid"), nullable=False, unique=True, index=True)
    created_at, updated_at = _timestamps()


SATELLITE_MODELS = {
    TEXT: TextField,
    PASSWORD: PasswordField,
    TODO: TodoField,
}
