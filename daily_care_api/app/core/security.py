"""
Security helpers for password hashing and JWT authentication.

This module implements a lightweight JSON Web Token (JWT) mechanism
using HMAC-SHA256 signatures and base64url encoding.  Tokens embed the
admin's id, e-mail and role together with an issuer (``iss``) and an
expiration timestamp (``exp``).  The secret key from the application
settings is used to sign and verify tokens.  Passwords are hashed with
PBKDF2-HMAC-SHA256 using a random salt per password.

The FastAPI dependencies at the bottom of the module resolve the
``Authorization: Bearer <token>`` header into the current admin record
and enforce role requirements.
"""

import base64
import binascii
import hashlib
import hmac
import json
import os
import time
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .db import get_connection

PBKDF2_ITERATIONS = 100_000

ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"


def _b64_url_encode(data: bytes) -> str:
    """Base64-url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64-url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC-SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, Any], expires_delta: Optional[int] = None) -> str:
    """Create a signed JWT token with the given claims.

    The payload is extended with ``exp`` (UNIX timestamp) and ``iss``
    claims.  Clients send the token back in the ``Authorization``
    header as ``Bearer <token>``.

    Parameters
    ----------
    data : dict
        Claims to embed in the token, typically ``{"sub": email, "id": ..., "role": ...}``.
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.

    Returns
    -------
    str
        A signed JWT token.
    """
    to_encode = data.copy()
    exp_seconds = expires_delta or settings.access_token_expire_minutes * 60
    to_encode["exp"] = int(time.time()) + exp_seconds
    to_encode.setdefault("iss", settings.token_issuer)
    header = {"alg": settings.algorithm, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, settings.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify and decode a JWT token.

    Verifies the HMAC signature, the ``exp`` claim and the issuer.
    Returns the payload dictionary when the token is valid, otherwise
    ``None``.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    expected_sig = _sign(signing_input, settings.secret_key)
    try:
        actual_sig = _b64_url_decode(signature_b64)
        # Constant-time comparison to prevent timing attacks
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    try:
        if data.get("exp") is None or int(data["exp"]) < int(time.time()):
            return None
    except (TypeError, ValueError):
        return None
    if data.get("iss") != settings.token_issuer:
        return None
    return data


def token_for_admin(admin: Dict[str, Any], expires_delta: Optional[int] = None) -> str:
    """Issue an access token for an admin record."""
    return create_access_token(
        {"sub": admin["email"], "id": admin["id"], "role": admin["role"]},
        expires_delta=expires_delta,
    )


security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _load_admin(admin_id: Any) -> Optional[Dict[str, Any]]:
    conn = get_connection()
    try:
        row = conn.execute(
            "SELECT id, full_name, email, role, is_active, created_at, updated_at FROM admins WHERE id = ?",
            (admin_id,),
        ).fetchone()
        return dict(row) if row else None
    finally:
        conn.close()


def get_current_admin(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Dict[str, Any]:
    """Dependency that retrieves the currently authenticated admin.

    The token is decoded and the admin row is re-loaded on every
    request so that deactivated or deleted accounts lose access
    immediately.  Raises HTTP 401 otherwise.
    """
    if credentials is None:
        raise _unauthorized("Access token required")
    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Invalid or expired token")
    admin = _load_admin(payload.get("id"))
    if not admin:
        raise _unauthorized("Admin not found")
    if not admin["is_active"]:
        raise _unauthorized("Account is deactivated")
    admin["is_active"] = bool(admin["is_active"])
    return admin


def get_optional_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Dict[str, Any]]:
    """Like ``get_current_admin`` but returns ``None`` when no header is sent."""
    if credentials is None:
        return None
    return get_current_admin(credentials)


def require_roles(*roles: str) -> Callable[[Dict[str, Any]], Dict[str, Any]]:
    """Dependency factory enforcing that the current admin has one of ``roles``.

    Use it in endpoints via ``Depends(require_roles(ROLE_SUPER_ADMIN))``.
    Raises HTTP 403 if the admin's role is not listed.
    """

    def _role_dependency(current_admin: Dict[str, Any] = Depends(get_current_admin)) -> Dict[str, Any]:
        if current_admin.get("role") not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_admin

    return _role_dependency


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2-HMAC with SHA-256.

    Returns the hex salt and hex digest separated by ``$``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a stored ``salt$hash`` string."""
    if not hashed_password or "$" not in hashed_password:
        return False
    salt_hex, hash_hex = hashed_password.split("$", 1)
    try:
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)
