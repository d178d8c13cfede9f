"""Search engine against a real database: fusion, breadcrumbs, hydration, paging."""

import asyncio

import pytest

from blocks.store import BlockStore
from core.errors import StorageError, ValidationError
from database import SessionLocal
from fields.store import FieldInput, FieldStore
from models.block import TERMINAL
from search import engine as search_engine
from search.engine import SearchEngine


def _search(tenant, query, **kwargs):
    return asyncio.run(SearchEngine(SessionLocal).search(tenant, query, **kwargs))


def _terminal(db, tenant, name, parent=None, description=None, fields=()):
    block = BlockStore(db).create_block(
        tenant, name, description=description,
        parent_uuid=parent.uuid if parent else None, block_type=TERMINAL,
    )
    if fields:
        FieldStore(db).create_fields(tenant, list(fields), block_uuid=block.uuid)
    return block


# ============ FUSION ============

def test_block_name_match_with_breadcrumbs_and_fields(db, tenant):
    docs = BlockStore(db).create_block(tenant, "Docs")
    _terminal(db, tenant, "Passwords", parent=docs, fields=[FieldInput("email", "password", "s3cret")])

    page = _search(tenant, "pass")

    assert page.total == 1
    assert page.merged_total == 1
    (result,) = page.results
    assert result.match_type == "block_name"
    assert [c.name for c in result.breadcrumbs] == ["Docs"]
    assert result.relative_path == "Docs > Passwords"
    assert [(f.name, f.data) for f in result.fields] == [("email", {"password": "s3cret"})]


def test_block_and_field_match_on_same_block_collapse(db, tenant):
    _terminal(db, tenant, "Email", fields=[FieldInput("email address", "text", "me@example.com")])

    page = _search(tenant, "email")

    assert page.total == 2
    assert page.merged_total == 1
    (result,) = page.results
    assert result.match_type == "block_name"
    assert result.matched_field is None


def test_field_only_match_reports_field(db, tenant):
    _terminal(db, tenant, "Bank", fields=[FieldInput("pin code", "password", "0000")])

    (result,) = _search(tenant, "pin").results

    assert result.match_type == "field_name"
    assert result.matched_field.name == "pin code"
    assert result.matched_field.type == "password"
    assert result.relative_path == "Bank"


def test_relevance_order_name_field_description(db, tenant):
    store = BlockStore(db)
    store.create_block(tenant, "Card", description="Bank PIN inside")
    _terminal(db, tenant, "Bank", fields=[FieldInput("pin", "text", "1234")])
    store.create_block(tenant, "PIN vault")

    page = _search(tenant, "pin")

    assert [(r.block.name, r.match_type) for r in page.results] == [
        ("PIN vault", "block_name"),
        ("Bank", "field_name"),
        ("Card", "block_description"),
    ]


def test_containers_have_no_fields_list(db, tenant):
    BlockStore(db).create_block(tenant, "Projects")
    (result,) = _search(tenant, "proj").results
    assert result.fields is None


def test_block_type_filter(db, tenant):
    BlockStore(db).create_block(tenant, "pin folder")
    _terminal(db, tenant, "pin note")
    _terminal(db, tenant, "Bank", fields=[FieldInput("pin", "text", "1")])

    containers = _search(tenant, "pin", block_type="container")
    terminals = _search(tenant, "pin", block_type="terminal")

    assert [r.block.name for r in containers.results] == ["pin folder"]
    assert {r.block.name for r in terminals.results} == {"pin note", "Bank"}


def test_like_wildcards_are_literal(db, tenant):
    store = BlockStore(db)
    store.create_block(tenant, "100% done")
    store.create_block(tenant, "1000 items")
    store.create_block(tenant, "a_b")
    store.create_block(tenant, "axb")

    assert [r.block.name for r in _search(tenant, "0%").results] == ["100% done"]
    assert [r.block.name for r in _search(tenant, "a_b").results] == ["a_b"]


def test_search_is_tenant_scoped(db, tenant, other_tenant):
    BlockStore(db).create_block(other_tenant, "secret plans")
    _terminal(db, other_tenant, "Bank", fields=[FieldInput("secret", "text", "x")])

    page = _search(tenant, "secret")

    assert page.results == []
    assert page.total == 0
    assert page.has_next is False


# ============ PAGINATION ============

def test_offset_pages_cover_every_match_once(db, tenant):
    store = BlockStore(db)
    expected = {store.create_block(tenant, f"item {i}").uuid for i in range(7)}

    seen, cursor = [], None
    while True:
        page = _search(tenant, "item", limit=3, cursor=cursor)
        assert page.merged_total == 7
        seen.extend(r.block.uuid for r in page.results)
        if not page.has_next:
            assert page.next_cursor is None
            break
        cursor = page.next_cursor

    assert len(seen) == len(set(seen)) == 7
    assert set(seen) == expected


def test_name_sorted_pages_walk_the_full_match_set(db, tenant):
    store = BlockStore(db)
    names = [f"item {i:02d}" for i in range(40)]
    for name in names:
        store.create_block(tenant, name)
    for i in range(10):
        _terminal(db, tenant, f"safe {i:02d}", fields=[FieldInput(f"item key {i}", "text", "x")])
    names += [f"safe {i:02d}" for i in range(10)]

    seen, cursor = [], None
    while True:
        page = _search(tenant, "item", limit=7, cursor=cursor, sort_by="name", sort_dir="asc")
        assert page.total == 50
        assert page.merged_total == 50
        seen.extend(r.block.name for r in page.results)
        if not page.has_next:
            break
        cursor = page.next_cursor

    assert seen == sorted(names)


def test_sort_by_name(db, tenant):
    store = BlockStore(db)
    for name in ["note c", "note a", "note b"]:
        store.create_block(tenant, name)
    page = _search(tenant, "note", sort_by="name", sort_dir="asc")
    assert [r.block.name for r in page.results] == ["note a", "note b", "note c"]


@pytest.mark.parametrize("kwargs", [
    {"cursor": "abc"},
    {"block_type": "folder"},
    {"sort_by": "path"},
    {"sort_dir": "sideways"},
    {"limit": 0},
])
def test_invalid_arguments_rejected(tenant, kwargs):
    with pytest.raises(ValidationError):
        _search(tenant, "x", **kwargs)


@pytest.mark.parametrize("query", ["", "   ", "q" * 201])
def test_invalid_query_rejected(tenant, query):
    with pytest.raises(ValidationError):
        _search(tenant, query)


# ============ FAULT ISOLATION ============

def test_hydration_failure_only_empties_that_block(db, tenant, monkeypatch):
    broken = _terminal(db, tenant, "vault broken", fields=[FieldInput("a", "text", "1")])
    _terminal(db, tenant, "vault fine", fields=[FieldInput("b", "text", "2")])

    class _FlakyFieldStore(FieldStore):
        def list_fields(self, tenant, block_uuid):
            if block_uuid == broken.uuid:
                raise RuntimeError("backend went away")
            return super().list_fields(tenant, block_uuid)

    monkeypatch.setattr(search_engine, "FieldStore", _FlakyFieldStore)

    page = _search(tenant, "vault")

    fields = {r.block.name: r.fields for r in page.results}
    assert fields["vault broken"] == []
    assert [f.name for f in fields["vault fine"]] == ["b"]


def test_sub_query_failure_fails_the_search(db, tenant, monkeypatch):
    BlockStore(db).create_block(tenant, "anything")

    def _boom(self, tenant, query, block_type):
        raise StorageError("search fields")

    monkeypatch.setattr(SearchEngine, "_search_fields", _boom)

    with pytest.raises(StorageError):
        _search(tenant, "any")
