"""Account persistence and registration."""

from .service import create_account
from .store import AccountRepository, InMemoryAccountStore

__all__ = ["AccountRepository", "InMemoryAccountStore", "create_account"]
