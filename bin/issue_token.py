# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Development helper – mints a bearer token for an account.

Accounts are managed by an external identity service; this service only
trusts the ``sub`` claim of a token signed with SECRET_KEY.  For local work
and manual API testing:

    python bin/issue_token.py <account-uuid> [--minutes N]

The token is printed to stdout and nothing is written to the database.
"""

import argparse
import sys
import os
from datetime import timedelta

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/issue_token.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from core.config import settings                  # noqa: E402
from core.logger import logger                    # noqa: E402
from core.security import create_access_token     # noqa: E402
from core.tenancy import Tenant                   # noqa: E402


def issue(account_id: str, minutes: int) -> str:
    tenant = Tenant(account_id)  # rejects an empty id
    token = create_access_token(tenant.account_id, expires_delta=timedelta(minutes=minutes))
    logger.info("Development token issued: account=%s minutes=%d", tenant.account_id, minutes)
    return token


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Mint a bearer token for an account uuid.")
    parser.add_argument("account_id", help="account uuid placed in the token's sub claim")
    parser.add_argument(
        "--minutes",
        type=int,
        default=settings.access_token_expire_minutes,
        help="token lifetime (default: ACCESS_TOKEN_EXPIRE_MINUTES)",
    )
    args = parser.parse_args(argv)

    try:
        print(issue(args.account_id, args.minutes))
    except ValueError as exc:
        print(f"[issue_token] {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
