"""Client sync layer: session context + API client used by front ends."""

from .api import ApiError, SessionExpired, StudyMateClient
from .session import Session, TokenStore

__all__ = [
    "ApiError",
    "SessionExpired",
    "StudyMateClient",
    "Session",
    "TokenStore",
]
