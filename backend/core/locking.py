# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Subtree lock providers.

Moves and cascade deletes rewrite many rows in one transaction but carry no
version token, so two writers touching overlapping subtrees can race.  The
block store asks a lock provider for a guard around those operations:

* ``NullLockProvider``     – no coordination (default).
* ``ProcessLockProvider``  – one re-entrant lock per tenant, valid only when
                             every writer runs in this process.

A provider backed by database advisory locks can be plugged in by
implementing ``hold``.
"""

import threading
from contextlib import contextmanager, nullcontext
from typing import ContextManager, Dict, Iterator

from core.config import settings
from core.tenancy import Tenant


class SubtreeLockProvider:
    def hold(self, tenant: Tenant) -> ContextManager[None]:
        raise NotImplementedError


class NullLockProvider(SubtreeLockProvider):
    def hold(self, tenant: Tenant) -> ContextManager[None]:
        return nullcontext()


class _TenantLock:
    """A tenant's lock plus the number of holders and waiters still using it."""

    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.RLock()
        self.users = 0


class ProcessLockProvider(SubtreeLockProvider):
    """
    Entries live only while some thread holds or waits on them, so the table
    stays as small as the number of tenants currently writing.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, _TenantLock] = {}

    def _checkout(self, key: str) -> _TenantLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _TenantLock()
            entry.users += 1
            return entry

    def _checkin(self, key: str, entry: _TenantLock) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, tenant: Tenant) -> Iterator[None]:
        key = tenant.account_id
        entry = self._checkout(key)
        try:
            with entry.lock:
                yield
        finally:
            self._checkin(key, entry)


def default_lock_provider() -> SubtreeLockProvider:
    return _PROCESS_LOCKS if settings.subtree_locking else _NULL_LOCKS


_NULL_LOCKS = NullLockProvider()
_PROCESS_LOCKS = ProcessLockProvider()
