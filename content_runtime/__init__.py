"""
Content Runtime — Persistence Layer

Non-invasive persistence around the Content Kernel: a sqlite3 command
journal plus a session that applies before it persists.
"""

from .journal_repository import JournalRepository
from .session import StoreSession, DeterminismError

__all__ = [
    "JournalRepository",
    "StoreSession",
    "DeterminismError",
]
