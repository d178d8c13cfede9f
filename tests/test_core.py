"""Core helpers: encryption, tokens, tenancy, cursors, block-type rules, locks, logging."""

import logging
import string
import threading
import time
from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException

from blocks.block_type import can_have_children, can_have_fields, require_children_allowed, require_fields_allowed
from blocks.cursor import decode_cursor, encode_cursor
from core.config import settings
from core.errors import ValidationError
from core.locking import NullLockProvider, ProcessLockProvider
from core.logger import configure_logging, get_logger, log_file_path, logger
from core.security import create_access_token, decode_access_token, decrypt_value, encrypt_value
from core.tenancy import Tenant


# ============ ENCRYPTION ============

def test_encrypt_round_trip_uses_fresh_nonce():
    first, second = encrypt_value("hunter2"), encrypt_value("hunter2")
    assert first != second
    assert decrypt_value(first) == decrypt_value(second) == "hunter2"


def test_tampered_ciphertext_rejected():
    token = encrypt_value("hunter2")
    flipped = token[:-4] + ("AAAA" if token[-4:] != "AAAA" else "BBBB")
    with pytest.raises(ValueError):
        decrypt_value(flipped)
    with pytest.raises(ValueError):
        decrypt_value("not base64 at all!")


# ============ TOKENS / TENANCY ============

def test_token_carries_account_in_sub():
    assert decode_access_token(create_access_token("acct-1"))["sub"] == "acct-1"


def test_expired_token_is_401():
    token = create_access_token("acct-1", expires_delta=timedelta(minutes=-1))
    with pytest.raises(HTTPException) as err:
        decode_access_token(token)
    assert err.value.status_code == 401


def test_tenant_requires_account_id():
    with pytest.raises(ValueError):
        Tenant("")


# ============ CURSORS ============

def test_cursor_carries_uuid_tie_break():
    stamp = datetime(2026, 10, 16, 8, 30, 15, 123456)
    row_uuid = "0b7c5a52-2f43-4c1e-9d0e-5f1a7f3c9e11"
    assert decode_cursor(encode_cursor(stamp, row_uuid), "created_at") == (stamp, row_uuid)
    assert decode_cursor(encode_cursor("alpha", row_uuid), "name") == ("alpha", row_uuid)


def test_cursor_is_url_safe_and_opaque():
    cursor = encode_cursor("a/b+c d?", "0b7c5a52-2f43-4c1e-9d0e-5f1a7f3c9e11")
    assert set(cursor) <= set(string.ascii_letters + string.digits + "-_")
    assert "0b7c5a52" not in cursor


def test_bare_cursor_accepted():
    assert decode_cursor("2026-10-16T08:30:15", "updated_at") == (datetime(2026, 10, 16, 8, 30, 15), None)
    assert decode_cursor("alpha", "name") == ("alpha", None)


def test_bad_datetime_cursor_rejected():
    with pytest.raises(ValidationError):
        decode_cursor("yesterday", "created_at")
    with pytest.raises(ValidationError):
        decode_cursor(encode_cursor("yesterday", "some-uuid"), "created_at")


# ============ BLOCK TYPES ============

def test_block_type_rules():
    assert can_have_children("container") and not can_have_children("terminal")
    assert can_have_fields("terminal") and not can_have_fields("container")
    require_children_allowed("container")
    require_fields_allowed("terminal")
    with pytest.raises(ValidationError):
        require_children_allowed("terminal")
    with pytest.raises(ValidationError):
        require_fields_allowed("container")


# ============ LOCKS ============

def test_null_lock_provider_does_not_block():
    locks = NullLockProvider()
    with locks.hold(Tenant("a")):
        with locks.hold(Tenant("a")):
            pass


def test_process_lock_serialises_one_tenant():
    locks = ProcessLockProvider()
    tenant = Tenant("a")
    acquired = threading.Event()

    def _other_writer():
        with locks.hold(tenant):
            acquired.set()

    with locks.hold(tenant):
        # re-entrant for the holding thread
        with locks.hold(tenant):
            worker = threading.Thread(target=_other_writer)
            worker.start()
            assert not acquired.wait(0.1)
    worker.join(timeout=2)
    assert acquired.is_set()


def test_process_lock_is_per_tenant():
    locks = ProcessLockProvider()
    acquired = threading.Event()

    def _other_tenant():
        with locks.hold(Tenant("b")):
            acquired.set()

    with locks.hold(Tenant("a")):
        worker = threading.Thread(target=_other_tenant)
        worker.start()
        assert acquired.wait(2)
    worker.join(timeout=2)


def test_process_lock_table_empties_after_release():
    locks = ProcessLockProvider()
    for account in ("a", "b", "c"):
        with locks.hold(Tenant(account)):
            with locks.hold(Tenant(account)):
                assert list(locks._locks) == [account]
    assert locks._locks == {}


def test_process_lock_entry_outlives_first_holder_while_another_waits():
    locks = ProcessLockProvider()
    tenant = Tenant("a")
    waiting, done = threading.Event(), threading.Event()

    def _waiter():
        waiting.set()
        with locks.hold(tenant):
            done.set()

    with locks.hold(tenant):
        worker = threading.Thread(target=_waiter)
        worker.start()
        assert waiting.wait(2)
        while locks._locks["a"].users < 2:
            time.sleep(0.01)
    worker.join(timeout=2)
    assert done.is_set()
    assert locks._locks == {}


# ============ LOGGING ============

def test_component_loggers_hang_off_the_app_logger():
    assert get_logger("blocks").name == "blockvault.blocks"
    assert get_logger("blocks").parent is logger


def test_configure_logging_honours_log_dir_and_level(tmp_path):
    try:
        app_logger = configure_logging(log_dir=str(tmp_path / "logs"), level="debug")
        app_logger.warning("written to the chosen directory")
        for handler in app_logger.handlers:
            handler.flush()
        assert app_logger.level == logging.DEBUG
        assert "written to the chosen directory" in log_file_path(str(tmp_path / "logs")).read_text(encoding="utf-8")
    finally:
        configure_logging(log_dir=settings.log_dir, level=settings.log_level)
