"""Authentication / authorization helpers.

Auth is intentionally lightweight:

- Students table (username/email/password hash + profile fields)
- Stateless HS256 JWT session tokens (24h by default)

Clients send `Authorization: Bearer <token>` on every resource call. Logout
is client-side only: the client discards its token.
"""

from .deps import get_current_student_id
from .crud import create_student

__all__ = [
    "get_current_student_id",
    "create_student",
]
