"""StudyMate - student task & expense tracker (backend + client sync layer).

Core concepts:
- Every resource row (task, expense) belongs to exactly one student account.
- Identity comes only from the bearer token; request bodies never carry it.
- Clients re-fetch the authoritative list after every mutation.

See SPEC_FULL.md / DESIGN.md for details.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
