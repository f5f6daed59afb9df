"""
External collaborators - user identity and message persistence
"""

from src.services.users import UserIdentity, UserProvider, StaticUserProvider
from src.services.message_store import ChatMessageStore, InMemoryMessageStore, StoredMessage

__all__ = [
    "UserIdentity",
    "UserProvider",
    "StaticUserProvider",
    "ChatMessageStore",
    "InMemoryMessageStore",
    "StoredMessage",
]
