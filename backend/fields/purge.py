# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Bulk removal of fields together with their satellite rows.

Used by the field store (explicit deletes) and by the block store (cascade
delete of a subtree).  Never commits – the caller owns the transaction.
"""

from typing import Iterable, List

from sqlalchemy.orm import Session

from models.field import Field, SATELLITE_MODELS


def _delete_satellites(db: Session, field_uuids: List[str]) -> None:
    for model in SATELLITE_MODELS.values():
        db.query(model).filter(model.field_id.in_(field_uuids)).delete(synchronize_session=False)


def purge_fields(db: Session, field_uuids: Iterable[str]) -> int:
    """Delete the given fields; satellites go first.  Returns fields removed."""
    field_uuids = list(field_uuids)
    if not field_uuids:
        return 0
    _delete_satellites(db, field_uuids)
    return (
        db.query(Field)
        .filter(Field.uuid.in_(field_uuids))
        .delete(synchronize_session=False)
    )


def purge_fields_of_blocks(db: Session, block_uuids: Iterable[str]) -> int:
    """Delete every field owned by the given blocks.  Returns fields removed."""
    block_uuids = list(block_uuids)
    if not block_uuids:
        return 0
    field_uuids = [
        row.uuid
        for row in db.query(Field.uuid).filter(Field.block_id.in_(block_uuids)).all()
    ]
    return purge_fields(db, field_uuids)
