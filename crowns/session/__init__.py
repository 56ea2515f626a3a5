"""
Session Module - Application contexts for concurrent scoresheets.

Each session owns one game; all sessions report completed games into
the same history.
"""

from .context import AppContext
from .manager import DEFAULT_SESSION_ID, Session, SessionManager

__all__ = [
    "AppContext",
    "DEFAULT_SESSION_ID",
    "Session",
    "SessionManager",
]
