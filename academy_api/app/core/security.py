"""
Credential verification and the authorization gate.

Tokens are compact JWTs (``header.payload.signature``) signed with
HMAC‑SHA256 over base64url segments.  They carry the principal id
(``sub``), display name, role, principal kind, issue time and expiry.
There is no server-side revocation: a token is valid while its
signature checks out and ``exp`` lies in the future.

Passwords are stored as PBKDF2‑HMAC‑SHA256 digests in the form
``salthex$hashhex``.

The gate functions at the bottom turn an ``Authorization`` header into
a :class:`Principal` and check it against a route's allowed roles.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Depends, Request

from .config import settings
from .errors import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)

STAFF_ROLES = frozenset({"admin", "teacher", "receptionist"})
STUDENT_ROLE = "student"
ALL_ROLES = STAFF_ROLES | {STUDENT_ROLE}

PBKDF2_ITERATIONS = 100_000


@dataclass(frozen=True)
class Principal:
    """Request-scoped projection of an authenticated identity."""

    id: str
    name: str
    role: str
    kind: str  # "staff" or "student"
    teacher_id: Optional[str] = None

    @property
    def is_student(self) -> bool:
        return self.kind == "student"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "kind": self.kind,
            "teacher_id": self.teacher_id,
        }


def _b64_url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def _encode_segment(obj: dict) -> str:
    return _b64_url_encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def create_access_token(data: Dict[str, object], expires_delta: Optional[int] = None) -> str:
    """Create a signed token embedding ``data`` plus ``iat`` and ``exp``.

    Parameters
    ----------
    data : dict
        Claims to embed (e.g. ``{"sub": "<id>", "role": "admin"}``).
    expires_delta : Optional[int]
        Lifetime in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.
    """
    claims = dict(data)
    now = int(time.time())
    lifetime = expires_delta if expires_delta is not None else settings.access_token_expire_minutes * 60
    claims["iat"] = now
    claims["exp"] = now + lifetime
    header = {"alg": "HS256", "typ": "JWT"}
    signing_input = f"{_encode_segment(header)}.{_encode_segment(claims)}"
    signature = _sign(signing_input.encode("utf-8"), settings.secret_key)
    return f"{signing_input}.{_b64_url_encode(signature)}"


def decode_access_token(token: str) -> Optional[Dict[str, object]]:
    """Verify a token and return its claims, or ``None`` if it is not valid.

    A token is rejected when it does not have three segments, when the
    signature does not match, when the payload is not a JSON object, or
    when ``exp`` is missing or in the past.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    expected = _sign(signing_input, settings.secret_key)
    try:
        actual = _b64_url_decode(signature_b64)
        claims = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    if not hmac.compare_digest(expected, actual):
        return None
    if not isinstance(claims, dict):
        return None
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)) or exp < time.time():
        return None
    return claims


def issue_token(principal: Principal, expires_delta: Optional[int] = None) -> str:
    """Issue a session token for ``principal``."""
    claims = {
        "sub": principal.id,
        "name": principal.name,
        "role": principal.role,
        "kind": principal.kind,
    }
    if principal.teacher_id:
        claims["teacher_id"] = principal.teacher_id
    return create_access_token(claims, expires_delta)


def principal_from_claims(claims: Dict[str, object]) -> Optional[Principal]:
    """Rebuild a principal from verified claims.

    Returns ``None`` if a required claim is missing or if the role does
    not agree with the principal kind.
    """
    sub, name, role, kind = (claims.get(k) for k in ("sub", "name", "role", "kind"))
    if not isinstance(sub, str) or not sub or not isinstance(role, str):
        return None
    if kind == "staff" and role in STAFF_ROLES:
        pass
    elif kind == "student" and role == STUDENT_ROLE:
        pass
    else:
        return None
    teacher_id = claims.get("teacher_id")
    return Principal(
        id=sub,
        name=str(name or ""),
        role=role,
        kind=kind,
        teacher_id=teacher_id if isinstance(teacher_id, str) else None,
    )


def hash_password(password: str) -> str:
    """Hash a password with PBKDF2‑HMAC‑SHA256 and a random 16‑byte salt."""
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Check ``plain_password`` against a stored ``salthex$hashhex`` string."""
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


# ---------------------------------------------------------------------------
# Authorization gate
# ---------------------------------------------------------------------------

def _principal_is_active(principal: Principal) -> bool:
    from academy_api.app.core.db import get_connection

    table = "students" if principal.is_student else "users"
    conn = get_connection()
    try:
        row = conn.execute(f"SELECT status FROM {table} WHERE id = ?", (principal.id,)).fetchone()
    finally:
        conn.close()
    return bool(row) and row["status"] == "active"


def authenticate_request(authorization: Optional[str]) -> Principal:
    """Resolve the caller of a request from its ``Authorization`` header.

    Raises
    ------
    AuthenticationError
        No header, a scheme other than ``Bearer``, an empty token, or a
        token that fails signature, expiry or claim checks.
    """
    if not authorization:
        raise AuthenticationError("Access token required")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Access token required")

    claims = decode_access_token(token)
    principal = principal_from_claims(claims) if claims else None
    if principal is None:
        logger.warning("Rejected invalid or expired token")
        raise AuthenticationError("Invalid or expired token")

    if settings.recheck_principal_status and not _principal_is_active(principal):
        logger.warning("Rejected token for inactive principal %s", principal.id)
        raise AuthenticationError("Account is no longer active")
    return principal


def get_current_principal(request: Request) -> Principal:
    """Dependency returning the principal attached by the auth middleware.

    Falls back to authenticating the request directly so the dependency
    also works for routers mounted without the middleware.
    """
    principal = getattr(request.state, "principal", None)
    if principal is None:
        principal = authenticate_request(request.headers.get("Authorization"))
        request.state.principal = principal
    return principal


def require_roles(*roles: str) -> Callable[..., Principal]:
    """Dependency factory enforcing that the caller holds one of ``roles``.

    Authentication failures surface as 401 from
    :func:`get_current_principal`; a valid principal outside ``roles``
    yields :class:`AuthorizationError` (403).
    """
    allowed = frozenset(roles)

    def _role_dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed:
            raise AuthorizationError()
        return principal

    return _role_dependency
