"""Block store: creation, browsing, move and cascade delete."""

import pytest
from sqlalchemy.exc import OperationalError

from blocks import store as block_store
from blocks.cursor import decode_cursor
from blocks.store import BlockStore
from core.errors import NotFoundError, StorageError, ValidationError
from fields.store import FieldInput, FieldStore
from models.block import CONTAINER, TERMINAL, Block
from models.field import Field, PasswordField, TextField


def _tree(db, tenant):
    """A > B > C(terminal), plus a second root D."""
    store = BlockStore(db)
    a = store.create_block(tenant, "A")
    b = store.create_block(tenant, "B", parent_uuid=a.uuid)
    c = store.create_block(tenant, "C", parent_uuid=b.uuid, block_type=TERMINAL)
    d = store.create_block(tenant, "D")
    return store, a, b, c, d


# ============ CREATE ============

def test_root_block_has_root_path(db, tenant):
    block = BlockStore(db).create_block(tenant, "Docs", description="top level")
    assert block.path == "/"
    assert block.parent_id is None
    assert block.block_type == CONTAINER
    assert block.created_by_id == tenant.account_id
    assert len(block.uuid) == 36


def test_child_path_is_parent_path_plus_parent_id(db, tenant):
    store, a, b, c, _ = _tree(db, tenant)
    assert b.path == f"/{a.id}/"
    assert c.path == f"/{a.id}/{b.id}/"
    assert c.parent_id == b.id


def test_terminal_blocks_cannot_have_children(db, tenant):
    store, _, _, c, _ = _tree(db, tenant)
    with pytest.raises(ValidationError, match="terminal"):
        store.create_block(tenant, "nope", parent_uuid=c.uuid)


def test_unknown_parent_is_not_found(db, tenant):
    with pytest.raises(NotFoundError):
        BlockStore(db).create_block(tenant, "orphan", parent_uuid="does-not-exist")


def test_other_tenants_parent_is_not_found(db, tenant, other_tenant):
    store = BlockStore(db)
    foreign = store.create_block(other_tenant, "theirs")
    with pytest.raises(NotFoundError):
        store.create_block(tenant, "mine", parent_uuid=foreign.uuid)


def test_unsupported_block_type_rejected(db, tenant):
    with pytest.raises(ValidationError):
        BlockStore(db).create_block(tenant, "odd", block_type="folder")


# ============ READ ============

def test_get_block_is_tenant_scoped(db, tenant, other_tenant):
    store = BlockStore(db)
    block = store.create_block(tenant, "mine")
    assert store.get_block(tenant, block.uuid).id == block.id
    assert store.get_block(other_tenant, block.uuid) is None
    assert store.get_block(tenant, "missing") is None


def test_list_children_returns_direct_children_only(db, tenant):
    store, a, b, c, d = _tree(db, tenant)

    roots = store.list_children(tenant)
    assert {blk.uuid for blk in roots.blocks} == {a.uuid, d.uuid}
    assert roots.total == 2

    under_a = store.list_children(tenant, a.uuid)
    assert [blk.uuid for blk in under_a.blocks] == [b.uuid]
    assert under_a.total == 1
    assert under_a.has_next is False
    assert under_a.next_cursor is None


def test_list_children_of_other_tenant_is_not_found(db, tenant, other_tenant):
    store = BlockStore(db)
    parent = store.create_block(tenant, "mine")
    with pytest.raises(NotFoundError):
        store.list_children(other_tenant, parent.uuid)


@pytest.mark.parametrize("sort_by,sort_dir", [
    ("created_at", "desc"),
    ("created_at", "asc"),
    ("name", "asc"),
    ("name", "desc"),
    ("updated_at", "desc"),
])
def test_keyset_pages_visit_every_child_exactly_once(db, tenant, sort_by, sort_dir):
    store = BlockStore(db)
    parent = store.create_block(tenant, "parent")
    # duplicate names exercise the uuid tie-break
    names = ["b", "a", "c", "a", "b", "d", "a"]
    expected = {store.create_block(tenant, n, parent_uuid=parent.uuid).uuid for n in names}

    seen, cursor, pages = [], None, 0
    while True:
        page = store.list_children(tenant, parent.uuid, limit=3, cursor=cursor, sort_by=sort_by, sort_dir=sort_dir)
        assert page.total == len(names)
        seen.extend(blk.uuid for blk in page.blocks)
        pages += 1
        if not page.has_next:
            break
        cursor = page.next_cursor

    assert pages == 3
    assert len(seen) == len(set(seen))
    assert set(seen) == expected


def test_name_sort_orders_pages(db, tenant):
    store = BlockStore(db)
    for name in ["delta", "alpha", "charlie", "bravo"]:
        store.create_block(tenant, name)

    first = store.list_children(tenant, limit=2, sort_by="name", sort_dir="asc")
    second = store.list_children(tenant, limit=2, cursor=first.next_cursor, sort_by="name", sort_dir="asc")

    assert [b.name for b in first.blocks] == ["alpha", "bravo"]
    assert [b.name for b in second.blocks] == ["charlie", "delta"]


def test_next_cursor_carries_uuid_not_row_id(db, tenant):
    store = BlockStore(db)
    for name in ["alpha", "bravo", "charlie"]:
        store.create_block(tenant, name)

    page = store.list_children(tenant, limit=2, sort_by="name", sort_dir="asc")

    last = page.blocks[-1]
    assert decode_cursor(page.next_cursor, "name") == ("bravo", last.uuid)
    assert not page.next_cursor.startswith(f"{last.id}:")
    assert "bravo" not in page.next_cursor


def test_invalid_cursor_rejected(db, tenant):
    BlockStore(db).create_block(tenant, "x")
    with pytest.raises(ValidationError):
        BlockStore(db).list_children(tenant, cursor="not-a-date")


def test_unsupported_sort_rejected(db, tenant):
    with pytest.raises(ValidationError):
        BlockStore(db).list_children(tenant, sort_by="path")


def test_breadcrumbs_root_first(db, tenant):
    store, a, b, c, _ = _tree(db, tenant)
    assert [crumb.name for crumb in store.breadcrumbs(tenant, c.uuid)] == ["A", "B"]
    assert store.breadcrumbs(tenant, a.uuid) == []


# ============ UPDATE ============

def test_update_block_changes_only_given_fields(db, tenant):
    store = BlockStore(db)
    block = store.create_block(tenant, "old", description="keep me")
    updated = store.update_block(tenant, block.uuid, name="new")
    assert updated.name == "new"
    assert updated.description == "keep me"
    assert updated.path == "/"


def test_update_other_tenants_block_is_not_found(db, tenant, other_tenant):
    store = BlockStore(db)
    block = store.create_block(tenant, "mine")
    with pytest.raises(NotFoundError):
        store.update_block(other_tenant, block.uuid, name="stolen")


# ============ MOVE ============

def test_move_repaints_whole_subtree(db, tenant):
    store, a, b, c, d = _tree(db, tenant)

    moved = store.move_block(tenant, b.uuid, d.uuid)

    assert moved.path == f"/{d.id}/"
    assert moved.parent_id == d.id
    db.expire_all()
    assert db.get(Block, c.id).path == f"/{d.id}/{b.id}/"
    assert [crumb.name for crumb in store.breadcrumbs(tenant, c.uuid)] == ["D", "B"]
    assert store.list_children(tenant, a.uuid).total == 0


def test_move_to_root(db, tenant):
    store, a, b, c, _ = _tree(db, tenant)
    moved = store.move_block(tenant, b.uuid, None)
    assert moved.path == "/"
    assert moved.parent_id is None
    db.expire_all()
    assert db.get(Block, c.id).path == f"/{b.id}/"


def test_move_into_own_subtree_rejected(db, tenant):
    store, a, b, c, _ = _tree(db, tenant)
    with pytest.raises(ValidationError):
        store.move_block(tenant, a.uuid, b.uuid)
    with pytest.raises(ValidationError):
        store.move_block(tenant, a.uuid, a.uuid)
    db.expire_all()
    assert db.get(Block, a.id).path == "/"


def test_move_under_terminal_rejected(db, tenant):
    store, _, _, c, d = _tree(db, tenant)
    with pytest.raises(ValidationError):
        store.move_block(tenant, d.uuid, c.uuid)


def test_move_does_not_touch_blocks_sharing_id_digits(db, tenant):
    store = BlockStore(db)
    roots = [store.create_block(tenant, f"root-{i}") for i in range(1, 12)]
    first, second, eleventh = roots[0], roots[1], roots[10]
    assert (first.id, eleventh.id) == (1, 11)
    child_of_first = store.create_block(tenant, "child-1", parent_uuid=first.uuid)
    child_of_eleventh = store.create_block(tenant, "child-11", parent_uuid=eleventh.uuid)

    store.move_block(tenant, first.uuid, second.uuid)

    db.expire_all()
    assert db.get(Block, child_of_first.id).path == f"/{second.id}/{first.id}/"
    assert db.get(Block, child_of_eleventh.id).path == "/11/"


def test_failed_move_rolls_back_every_path(db, tenant, monkeypatch):
    store, a, b, c, d = _tree(db, tenant)
    old_b_path, old_c_path = b.path, c.path

    def _disk_error(*args, **kwargs):
        raise OperationalError("UPDATE blocks", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db, "bulk_update_mappings", _disk_error)

    with pytest.raises(StorageError):
        store.move_block(tenant, b.uuid, d.uuid)

    db.expire_all()
    assert db.get(Block, b.id).path == old_b_path
    assert db.get(Block, b.id).parent_id == a.id
    assert db.get(Block, c.id).path == old_c_path


def test_move_to_same_parent_is_noop(db, tenant):
    store, a, b, _, _ = _tree(db, tenant)
    moved = store.move_block(tenant, b.uuid, a.uuid)
    assert moved.path == f"/{a.id}/"


# ============ DELETE ============

def test_delete_cascades_blocks_fields_and_satellites(db, tenant):
    store, a, b, c, d = _tree(db, tenant)
    FieldStore(db).create_fields(
        tenant,
        [FieldInput("login", "text", "me"), FieldInput("secret", "password", "hunter2")],
        block_uuid=c.uuid,
    )

    deleted = store.delete_block(tenant, a.uuid)

    assert deleted == 3
    assert db.query(Block).count() == 1
    assert db.query(Block).one().uuid == d.uuid
    assert db.query(Field).count() == 0
    assert db.query(TextField).count() == 0
    assert db.query(PasswordField).count() == 0


def test_delete_leaf_leaves_parent(db, tenant):
    store, a, b, c, _ = _tree(db, tenant)
    assert store.delete_block(tenant, c.uuid) == 1
    assert store.get_block(tenant, b.uuid) is not None


def test_delete_requires_matching_confirmation_name(db, tenant):
    store, a, _, _, _ = _tree(db, tenant)
    with pytest.raises(ValidationError):
        store.delete_block(tenant, a.uuid, confirmation_name="wrong")
    assert db.query(Block).count() == 4
    assert store.delete_block(tenant, a.uuid, confirmation_name="A") == 3


def test_delete_other_tenants_block_is_not_found(db, tenant, other_tenant):
    store, a, _, _, _ = _tree(db, tenant)
    with pytest.raises(NotFoundError):
        store.delete_block(other_tenant, a.uuid)
    assert db.query(Block).count() == 4


def test_failed_delete_keeps_blocks_and_fields(db, tenant, monkeypatch):
    store, a, b, c, d = _tree(db, tenant)
    FieldStore(db).create_fields(
        tenant,
        [FieldInput("login", "text", "me"), FieldInput("secret", "password", "hunter2")],
        block_uuid=c.uuid,
    )
    purge = block_store.purge_fields_of_blocks

    def _purge_then_fail(session, block_uuids):
        purge(session, block_uuids)
        raise OperationalError("DELETE FROM blocks", {}, Exception("database is locked"))

    monkeypatch.setattr(block_store, "purge_fields_of_blocks", _purge_then_fail)

    with pytest.raises(StorageError):
        store.delete_block(tenant, a.uuid)

    db.expire_all()
    assert db.query(Block).count() == 4
    assert db.query(Field).count() == 2
    assert db.query(TextField).count() == 1
    assert db.query(PasswordField).count() == 1
