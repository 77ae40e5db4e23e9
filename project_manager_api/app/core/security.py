"""
Security helpers for password hashing and JWT authentication.

This module implements a lightweight JSON Web Token (JWT) mechanism
using HMAC-SHA256 signatures and base64url encoding.  A token asserts
``{user_id, role, email}`` and an expiration timestamp (``exp``); the
secret key from the application settings signs and verifies it.
Passwords are hashed with PBKDF2-HMAC-SHA256 and a per-password salt.

The FastAPI dependencies at the bottom enforce the stateless gates:
``get_current_user`` turns a bearer token into a :class:`Principal`
without touching the database, ``require_roles`` admits listed roles
and ``require_owner_or_roles`` additionally admits the user named by
the ``user_id`` path parameter.  Ownership of projects, sprints and
tasks is a different question answered by
:mod:`project_manager_api.app.services.authorization`.
"""

import base64
import hashlib
import hmac
import json
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .errors import PasswordTooLongError
from project_manager_api.app.models.enums import UserRole


# Longest accepted password, in UTF-8 bytes.
MAX_PASSWORD_BYTES = 72
PBKDF2_ITERATIONS = 100_000


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
    """Create a signed JWT token with the given payload.

    The payload is extended with an ``exp`` field representing the
    expiration time as a UNIX timestamp, and with ``iss`` when
    ``settings.token_issuer`` is configured.  Clients must include the
    token in the ``Authorization`` header as ``Bearer <token>``.

    Parameters
    ----------
    data : dict
        Claims to embed in the token (e.g. ``{"user_id": 1, "role": "ADMIN"}``).
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.

    Returns
    -------
    str
        A signed JWT token.

    Raises
    ------
    TypeError
        If a claim is not JSON serialisable.
    """
    to_encode = data.copy()
    exp_seconds = expires_delta or settings.access_token_expire_minutes * 60
    to_encode["exp"] = int(time.time()) + exp_seconds
    if settings.token_issuer:
        to_encode.setdefault("iss", settings.token_issuer)
    header = {"alg": settings.algorithm, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, settings.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify and decode a JWT token.

    Splits the token into header, payload and signature, verifies the
    HMAC signature and checks the ``exp`` (and, if configured, ``iss``)
    claims.

    Parameters
    ----------
    token : str
        JWT token string (``header.payload.signature``).

    Returns
    -------
    Optional[dict]
        The decoded payload if valid, else ``None``.
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
        if not isinstance(data, dict) or data.get("exp") is None:
            return None
        if int(data["exp"]) < int(time.time()):
            return None
    except (ValueError, TypeError):
        return None
    if settings.token_issuer and data.get("iss") != settings.token_issuer:
        return None
    return data


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2-HMAC with SHA-256.

    A 16-byte random salt is generated for each password.  The
    resulting string contains the salt and hash separated by a ``$``
    (salt in hex, then hash in hex).

    Raises
    ------
    PasswordTooLongError
        If the UTF-8 encoded password exceeds 72 bytes.
    """
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise PasswordTooLongError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", raw, salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a stored salt+hash string."""
    try:
        salt_hex, hash_hex = hashed_password.split("$", 1)
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Principal:
    """The authenticated caller as asserted by a verified token."""

    user_id: int
    role: UserRole
    email: str = ""

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in roles


def principal_claims(user_id: int, role: UserRole, email: str) -> Dict[str, Any]:
    return {"user_id": user_id, "role": UserRole(role).value, "email": email}


security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Principal:
    """Dependency that retrieves the current authenticated principal.

    If the request does not contain an ``Authorization`` header or the
    token is invalid/expired, an HTTP 401 error is raised.  Nothing is
    read from the database: the identity and role come from the token
    claims alone.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")
    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Invalid or expired token")
    try:
        return Principal(
            user_id=int(payload["user_id"]),
            role=UserRole(payload["role"]),
            email=str(payload.get("email", "")),
        )
    except (KeyError, TypeError, ValueError):
        raise _unauthorized("Invalid token claims")


# ---------------------------------------------------------------------------
# Role-based access control (RBAC) helpers
# ---------------------------------------------------------------------------

def _forbidden() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Insufficient permissions",
    )


def require_roles(*roles: UserRole) -> Callable[..., Principal]:
    """Dependency factory to enforce that the current user has one of the specified roles.

    Use this in FastAPI endpoints via
    ``Depends(require_roles(UserRole.PROJECT_MANAGER))``.  If the
    authenticated principal holds none of the given roles, an HTTP 403
    error is raised.

    Parameters
    ----------
    *roles : UserRole
        One or more roles permitted to access the endpoint.

    Returns
    -------
    Callable
        A dependency function that validates the current user's role and
        returns the principal on success.
    """

    def _role_dependency(principal: Principal = Depends(get_current_user)) -> Principal:
        if not principal.has_role(*roles):
            raise _forbidden()
        return principal

    return _role_dependency


def require_owner_or_roles(*roles: UserRole) -> Callable[..., Principal]:
    """Like :func:`require_roles` but also admits the user named in the path.

    The guarded route must declare a ``user_id`` path parameter.
    """

    def _owner_dependency(user_id: int, principal: Principal = Depends(get_current_user)) -> Principal:
        if principal.user_id != user_id and not principal.has_role(*roles):
            raise _forbidden()
        return principal

    return _owner_dependency
