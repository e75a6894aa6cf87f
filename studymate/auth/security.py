from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext


_pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
_JWT_ALG = "HS256"


def _debug(msg: str) -> None:
    print(f"[auth] {msg}")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _pwd.verify(password, password_hash)
    except Exception:
        return False


def create_access_token(
    *,
    secret: str,
    student_id: int,
    expires_minutes: int,
    now: datetime | None = None,
) -> str:
    """Issue a signed session token binding `student_id` to an absolute expiry.

    A non-positive `expires_minutes` yields an already-expired token.
    """
    if not secret:
        raise ValueError("jwt_secret_blank")

    issued = now or datetime.now(timezone.utc)
    exp = issued + timedelta(minutes=int(expires_minutes))

    payload: Dict[str, Any] = {
        "sub": str(int(student_id)),
        "iat": int(issued.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=_JWT_ALG)


def decode_access_token(*, token: str, secret: str) -> Dict[str, Any]:
    if not token:
        raise ValueError("token_blank")
    if not secret:
        raise ValueError("jwt_secret_blank")
    return jwt.decode(token, secret, algorithms=[_JWT_ALG], options={"require": ["exp", "sub"]})


def validate_access_token(token: str | None, *, secret: str) -> Optional[int]:
    """Resolve a token to a student id, or None.

    Never raises: a blank, malformed, forged or expired token and a token whose
    subject is not a positive integer all come back as None.
    """
    try:
        payload = decode_access_token(token=token or "", secret=secret)
    except jwt.ExpiredSignatureError:
        _debug("Rejected token: token_expired")
        return None
    except (jwt.InvalidTokenError, ValueError):
        _debug("Rejected token: token_invalid")
        return None
    except Exception as e:
        _debug(f"Rejected token: token_decode_error ({type(e).__name__})")
        return None

    # Expiry must be strictly in the future (PyJWT accepts exp == now).
    try:
        exp = int(payload.get("exp"))
    except (TypeError, ValueError):
        _debug("Rejected token: token_exp_invalid")
        return None
    if exp <= int(datetime.now(timezone.utc).timestamp()):
        _debug("Rejected token: token_expired")
        return None

    sub = payload.get("sub")
    try:
        student_id = int(str(sub))
    except (TypeError, ValueError):
        _debug("Rejected token: token_sub_not_int")
        return None
    if student_id <= 0:
        _debug("Rejected token: token_sub_not_positive")
        return None
    return student_id
