# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Keyset cursors for browsing a parent's children.

A cursor is the URL-safe base64 (unpadded) of ``[sort value, uuid]`` taken
from the last row on the previous page.  The uuid breaks ties between rows
sharing a sort value (two blocks created in the same instant, two blocks
with the same name) so no row is skipped or repeated, and no internal row id
leaves the service.  A plain sort value is also accepted and compared on the
value alone.  Clients must treat cursors as opaque.
"""

import base64
import json
from datetime import datetime
from typing import Optional, Tuple, Union

from core.errors import ValidationError

DATETIME_COLUMNS = ("created_at", "updated_at")

SortValue = Union[str, datetime]


def encode_cursor(sort_value: SortValue, row_uuid: str) -> str:
    raw = sort_value.isoformat() if isinstance(sort_value, datetime) else str(sort_value)
    payload = json.dumps([raw, row_uuid], separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")


def _unpack(cursor: str) -> Optional[Tuple[str, str]]:
    try:
        payload = base64.urlsafe_b64decode(cursor + "=" * (-len(cursor) % 4))
        decoded = json.loads(payload.decode("utf-8"))
    except ValueError:
        return None
    if not (isinstance(decoded, list) and len(decoded) == 2 and all(isinstance(v, str) for v in decoded)):
        return None
    return decoded[0], decoded[1]


def decode_cursor(cursor: str, sort_by: str) -> Tuple[SortValue, Optional[str]]:
    unpacked = _unpack(cursor)
    if unpacked is None:
        raw, row_uuid = cursor, None
    else:
        raw, row_uuid = unpacked

    if sort_by in DATETIME_COLUMNS:
        try:
            return datetime.fromisoformat(raw), row_uuid
        except ValueError:
            raise ValidationError("Invalid cursor")
    return raw, row_uuid
