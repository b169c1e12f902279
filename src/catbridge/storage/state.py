"""
Host state for CatBridge.

A content-addressed account store: every resource lives under a derived
:class:`~catbridge.crypto.Address`. All writes happen inside a unit of work
opened with :meth:`StateStore.transaction`. The outermost unit commits on
normal exit and restores every touched account on an exception; nested units
behave as savepoints.

Stored values are expected to be immutable (frozen dataclasses, bytes, ints).
A change is a new value written with :meth:`StateStore.put`.
"""

import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type, TypeVar

from ..crypto import Address
from ..errors import StorageError
from ..logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_ABSENT = object()


class AccountExistsError(StorageError):
    """Raised by :meth:`StateStore.create` when the address is already taken."""


class AccountNotFoundError(StorageError):
    """Raised by :meth:`StateStore.require` when nothing lives at the address."""


@dataclass
class UnitOfWork:
    """Journal of the values an open unit of work has overwritten."""

    label: str
    unit_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    journal: Dict[Address, Any] = field(default_factory=dict)

    def remember(self, key: Address, previous: Any) -> None:
        if key not in self.journal:
            self.journal[key] = previous

    @property
    def touched(self) -> List[Address]:
        return list(self.journal)


class StateStore:
    """Content-addressed account map with transactional writes."""

    def __init__(self):
        self._accounts: Dict[Address, Any] = {}
        self._lock = threading.RLock()
        self._units: List[UnitOfWork] = []
        self._owner: Optional[int] = None
        self.commits = 0
        self.rollbacks = 0

    # Reads

    def get(self, key: Address, default: Any = None) -> Any:
        with self._lock:
            return self._accounts.get(key, default)

    def get_as(self, key: Address, kind: Type[T]) -> Optional[T]:
        """Return the value at ``key`` if it is a ``kind``, else ``None``."""
        value = self.get(key)
        return value if isinstance(value, kind) else None

    def require(self, key: Address, kind: Type[T]) -> T:
        value = self.get_as(key, kind)
        if value is None:
            raise AccountNotFoundError(
                f"No {kind.__name__} at {key.to_hex()}",
                key=key.to_hex(),
                operation="require",
            )
        return value

    def contains(self, key: Address) -> bool:
        with self._lock:
            return key in self._accounts

    def values_of(self, kind: Type[T]) -> List[T]:
        with self._lock:
            return [value for value in self._accounts.values() if isinstance(value, kind)]

    def items(self) -> List[Tuple[Address, Any]]:
        with self._lock:
            return list(self._accounts.items())

    def snapshot(self) -> Dict[Address, Any]:
        """Shallow copy of every account, for comparisons in tests and audits."""
        with self._lock:
            return dict(self._accounts)

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)

    # Writes

    def put(self, key: Address, value: Any) -> None:
        """Create or overwrite the account at ``key``."""
        unit = self._current_unit("put", key)
        unit.remember(key, self._accounts.get(key, _ABSENT))
        self._accounts[key] = value

    def create(self, key: Address, value: Any) -> None:
        """Create the account at ``key``; fails if anything already lives there."""
        unit = self._current_unit("create", key)
        if key in self._accounts:
            raise AccountExistsError(
                f"Account {key.to_hex()} already in use",
                key=key.to_hex(),
                operation="create",
            )
        unit.remember(key, _ABSENT)
        self._accounts[key] = value

    def _current_unit(self, operation: str, key: Address) -> UnitOfWork:
        if not self._units or self._owner != threading.get_ident():
            raise StorageError(
                f"{operation} outside of a unit of work",
                key=key.to_hex(),
                operation=operation,
            )
        return self._units[-1]

    # Units of work

    @property
    def in_transaction(self) -> bool:
        return bool(self._units) and self._owner == threading.get_ident()

    @contextmanager
    def transaction(self, label: str = "unit") -> Iterator["StateStore"]:
        """
        Open a unit of work.

        The store lock is held for the whole unit, so concurrent units on
        the same store run one after another.
        """
        with self._lock:
            unit = UnitOfWork(label=label)
            self._units.append(unit)
            self._owner = threading.get_ident()
            try:
                yield self
            except BaseException:
                self._rollback(unit)
                raise
            else:
                self._commit(unit)
            finally:
                self._units.pop()
                if not self._units:
                    self._owner = None

    def _commit(self, unit: UnitOfWork) -> None:
        if len(self._units) > 1:
            parent = self._units[-2]
            for key, previous in unit.journal.items():
                parent.remember(key, previous)
            return

        self.commits += 1
        logger.debug(
            f"Committed {unit.label} ({len(unit.journal)} accounts)",
            extra={"unit_id": unit.unit_id},
        )

    def _rollback(self, unit: UnitOfWork) -> None:
        for key, previous in unit.journal.items():
            if previous is _ABSENT:
                self._accounts.pop(key, None)
            else:
                self._accounts[key] = previous

        if len(self._units) == 1:
            self.rollbacks += 1
        logger.debug(
            f"Rolled back {unit.label} ({len(unit.journal)} accounts)",
            extra={"unit_id": unit.unit_id},
        )
