"""Client side synchronisation with the board service."""

from .agent import SaveStatus, SyncAgent, ThreadingScheduler
from .client import AccountError, AuthError, BoardClient, Session, SyncError, TransportError
from .credentials import CredentialStore

__all__ = [
    "AccountError",
    "AuthError",
    "BoardClient",
    "CredentialStore",
    "SaveStatus",
    "Session",
    "SyncAgent",
    "SyncError",
    "ThreadingScheduler",
    "TransportError",
]
