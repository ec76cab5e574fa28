"""
Credential primitives: password hashing, JWTs and signed session cookies.

Password hashes are self-describing strings:

    scrypt$<N>$<r>$<p>$<salt b64url>$<digest b64url>

so the cost parameters can be raised later without invalidating old hashes.
All secret comparisons go through hmac.compare_digest.
"""

import base64
import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import JWTError, jwt

SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_DKLEN = 64
SALT_BYTES = 16


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64url_decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


# =============================================================================
# PASSWORDS
# =============================================================================


def hash_password(password: str) -> str:
    """Hash a password with a fresh random salt."""
    salt = secrets.token_bytes(SALT_BYTES)
    digest = hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt,
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=SCRYPT_DKLEN,
    )
    return f"scrypt${SCRYPT_N}${SCRYPT_R}${SCRYPT_P}${_b64url_encode(salt)}${_b64url_encode(digest)}"


def verify_password(password: str, encoded_hash: str) -> bool:
    """Check a password against a stored hash. Malformed hashes never match."""
    try:
        algo, n, r, p, salt_b64, digest_b64 = encoded_hash.split("$", 5)
        if algo != "scrypt":
            return False
        expected = _b64url_decode(digest_b64)
        computed = hashlib.scrypt(
            password.encode("utf-8"),
            salt=_b64url_decode(salt_b64),
            n=int(n),
            r=int(r),
            p=int(p),
            dklen=len(expected),
        )
    except (ValueError, TypeError):
        return False
    return hmac.compare_digest(expected, computed)


# =============================================================================
# JWT (token auth mode)
# =============================================================================


def create_access_token(
    user_id: UUID,
    *,
    secret_key: str,
    algorithm: str = "HS256",
    expire_minutes: int = 60 * 24 * 7,
) -> str:
    """
    Create a JWT access token for a user.

    Payload carries only sub (user id) and exp. Tokens are stateless; there
    is no revocation list, so logout in token mode is client side only.
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=expire_minutes)
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_access_token(token: str, *, secret_key: str, algorithm: str = "HS256") -> UUID | None:
    """
    Decode and validate a JWT access token.

    Returns user_id if valid, None if invalid/expired.
    """
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
        user_id_str = payload.get("sub")
        if user_id_str is None:
            return None
        return UUID(user_id_str)
    except (JWTError, ValueError):
        return None


# =============================================================================
# SESSION COOKIES (session auth mode)
# =============================================================================


def _session_signature(session_id: str, secret: str) -> str:
    mac = hmac.new(secret.encode("utf-8"), session_id.encode("utf-8"), hashlib.sha256)
    return _b64url_encode(mac.digest())


def sign_session_id(session_id: str, secret: str) -> str:
    """Cookie value for a session id: '<id>.<signature>'."""
    return f"{session_id}.{_session_signature(session_id, secret)}"


def unsign_session_id(cookie_value: str, secret: str) -> str | None:
    """Return the session id from a cookie value, or None if the signature doesn't match."""
    session_id, sep, signature = cookie_value.rpartition(".")
    if not sep or not session_id:
        return None
    expected = _session_signature(session_id, secret)
    if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8")):
        return None
    return session_id
