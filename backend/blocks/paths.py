# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Materialized-path helpers.

A block's ``path`` lists the internal ids of its ancestors, root first:

    root              "/"
    child of 1        "/1/"
    grandchild        "/1/7/"

The block's own id is not part of its path.  Everything below block B has
a path starting with ``subtree_prefix(B.path, B.id)``.  Nothing in this
module touches the database.
"""

from typing import Dict, Iterable, List, Tuple

ROOT_PATH = "/"
SEPARATOR = "/"


def child_path(parent_path: str, parent_id: int) -> str:
    """Path of a block created directly under (parent_path, parent_id)."""
    return f"{parent_path}{parent_id}{SEPARATOR}"


def subtree_prefix(path: str, block_id: int) -> str:
    """Prefix shared by every descendant of the block at (path, block_id)."""
    return child_path(path, block_id)


def is_descendant_path(candidate_path: str, ancestor_prefix: str) -> bool:
    return candidate_path.startswith(ancestor_prefix)


def rewrite_prefix(path: str, old_prefix: str, new_prefix: str) -> str:
    if not path.startswith(old_prefix):
        raise ValueError(f"path {path!r} does not start with {old_prefix!r}")
    return new_prefix + path[len(old_prefix):]


def parse_path(path: str) -> List[int]:
    """Ancestor ids in root-to-parent order.  Non-numeric segments are skipped."""
    ids = []
    for segment in path.split(SEPARATOR):
        if segment.isdigit():
            ids.append(int(segment))
    return ids


def depth(path: str) -> int:
    return len(parse_path(path))


def repaint_subtree(
    rows: Iterable[Tuple[int, str]],
    old_prefix: str,
    new_prefix: str,
) -> Dict[int, str]:
    """
    Compute new paths for a moved subtree.

    *rows* are ``(id, path)`` pairs of the descendants fetched before the
    move.  Rows outside ``old_prefix`` are ignored, so a loose LIKE query can
    feed this directly.  Relative structure below the moved block is kept.
    """
    repainted = {}
    for row_id, path in rows:
        if is_descendant_path(path, old_prefix):
            repainted[row_id] = rewrite_prefix(path, old_prefix, new_prefix)
    return repainted
