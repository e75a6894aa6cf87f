from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Request

from studymate.db import connect

from .crud import get_student_by_id
from .security import validate_access_token


BEARER_PREFIX = "Bearer "


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the credential from an `Authorization` header value, or None.

    The value must start with the exact literal "Bearer " (case-sensitive).
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX) :].strip()
    return token or None


def get_current_student_id(request: Request) -> int:
    """Authenticate a request and bind the caller's student id to it.

    The returned id is the only identity resource handlers may use; ids sent
    in request bodies are never consulted.
    """

    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None:
        raise HTTPException(status_code=500, detail="server_config_missing")

    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise _unauthorized("missing_token")

    student_id = validate_access_token(token, secret=cfg.AUTH_JWT_SECRET)
    if student_id is None:
        raise _unauthorized("token_invalid")

    with connect(cfg.DB_DSN) as conn:
        if get_student_by_id(conn, student_id) is None:
            raise _unauthorized("student_not_found")

    request.state.student_id = student_id
    return student_id
