# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Central security module.  All cryptographic primitives and auth guards live
here.  No other module should touch raw crypto directly.

Responsibilities
----------------
1. Field-value encryption / decryption      (AES-256-GCM)
2. JWT creation / decoding                  (PyJWT / HS256)
3. FastAPI dependency guard                 (get_current_tenant)

Account registration, login and password hashing belong to the identity
service that issues the tokens; this service only verifies them.
"""

import base64
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as _jwt        # PyJWT
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from core.config import settings
from core.tenancy import Tenant

# ---------------------------------------------------------------------------
# 1.  AES-256-GCM – password field encryption
# ---------------------------------------------------------------------------
# Stored format:  base64( 12-byte nonce || ciphertext || 16-byte GCM tag )
# The nonce travels with the ciphertext so a single column is enough.

_NONCE_BYTES = 12


def _get_master_key() -> bytes:
    """
    Decode the base64-encoded MASTER_ENCRYPTION_KEY from the environment.
    Called at use-time (not import-time) so the key is never cached at module
    load.  Must be exactly 32 bytes after decoding.
    """
    key = base64.b64decode(settings.master_encryption_key)
    if len(key) != 32:
        raise RuntimeError("MASTER_ENCRYPTION_KEY must decode to exactly 32 bytes")
    return key


def encrypt_value(plaintext: str) -> str:
    """
    Encrypt *plaintext* with AES-256-GCM and return a single opaque token.

    Each call generates a fresh 96-bit random nonce – nonce reuse with the
    same key would be catastrophic for GCM, so we never reuse.
    """
    nonce = secrets.token_bytes(_NONCE_BYTES)
    ct_and_tag = AESGCM(_get_master_key()).encrypt(nonce, plaintext.encode("utf-8"), None)
    return base64.b64encode(nonce + ct_and_tag).decode("ascii")


def decrypt_value(token: str) -> str:
    """
    Decrypt a value produced by :func:`encrypt_value`.

    Raises ``ValueError`` if the token is malformed or the GCM authentication
    tag does not match (tampered data or wrong key).
    """
    try:
        raw = base64.b64decode(token, validate=True)
    except (ValueError, TypeError) as exc:
        raise ValueError("Decryption failed – malformed ciphertext") from exc
    if len(raw) <= _NONCE_BYTES:
        raise ValueError("Decryption failed – malformed ciphertext")

    nonce, ct_and_tag = raw[:_NONCE_BYTES], raw[_NONCE_BYTES:]
    try:
        plaintext_bytes = AESGCM(_get_master_key()).decrypt(nonce, ct_and_tag, None)
    except InvalidTag as exc:
        raise ValueError("Decryption failed – data may be tampered") from exc
    return plaintext_bytes.decode("utf-8")


# ---------------------------------------------------------------------------
# 2.  JWT – access tokens
# ---------------------------------------------------------------------------


def create_access_token(account_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a JWT with HS256 whose ``sub`` claim is the account uuid.
    An ``exp`` claim is added automatically.
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    return _jwt.encode({"sub": account_id, "exp": expire}, settings.secret_key, algorithm="HS256")


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT.  Raises HTTP 401 on any failure (expired,
    bad signature, malformed).
    """
    try:
        return _jwt.decode(token, settings.secret_key, algorithms=["HS256"])
    except (_jwt.ExpiredSignatureError, _jwt.InvalidTokenError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


# ---------------------------------------------------------------------------
# 3.  FastAPI dependency guard
# ---------------------------------------------------------------------------

# tokenUrl points at the identity service; it is only used by the OpenAPI docs.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_current_tenant(token: str = Depends(oauth2_scheme)) -> Tenant:
    """
    Dependency: decode the JWT and return the tenant it was issued for.
    Raises 401 if the token is invalid or carries no subject.
    """
    payload = decode_access_token(token)
    account_id = payload.get("sub")
    if not isinstance(account_id, str) or not account_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return Tenant(account_id=account_id)
