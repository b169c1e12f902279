"""Host state storage for CatBridge."""

from .state import AccountExistsError, AccountNotFoundError, StateStore, UnitOfWork

__all__ = [
    "StateStore",
    "UnitOfWork",
    "AccountExistsError",
    "AccountNotFoundError",
]
