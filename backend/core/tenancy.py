# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""Tenant reference passed explicitly to every store and search call."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Tenant:
    """
    The owner of a set of blocks and fields.

    ``account_id`` is the account uuid issued by the authentication layer and
    is stored verbatim in every row's ``created_by_id`` column.
    """

    account_id: str

    def __post_init__(self):
        if not self.account_id:
            raise ValueError("Tenant.account_id must be a non-empty string")
