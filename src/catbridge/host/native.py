"""Native-currency rails used to pay the messaging fee."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..crypto import Address, derive_address
from ..errors import CollaboratorError
from ..storage import StateStore

SYSTEM_PROGRAM_ID = Address.from_int(0x01)


@dataclass(frozen=True)
class NativeBalance:
    owner: Address
    amount: int = 0


class NativeLedger(ABC):
    """Host currency balances."""

    @abstractmethod
    def balance_of(self, owner: Address) -> int:
        """Balance of ``owner``; zero when the owner was never funded."""

    @abstractmethod
    def transfer(self, source: Address, destination: Address, amount: int) -> None:
        """Move ``amount`` from ``source`` to ``destination``."""


class InMemoryNativeLedger(NativeLedger):
    def __init__(self, store: StateStore):
        self.store = store

    @staticmethod
    def balance_address(owner: Address) -> Address:
        return derive_address(SYSTEM_PROGRAM_ID, b"lamports", owner)

    def balance_of(self, owner: Address) -> int:
        record = self.store.get_as(self.balance_address(owner), NativeBalance)
        return record.amount if record else 0

    def credit(self, owner: Address, amount: int) -> None:
        """Fund ``owner``; the faucet of tests and demos."""
        if amount < 0:
            raise CollaboratorError("Negative credit", collaborator="native", operation="credit")
        with self.store.transaction("native.credit"):
            self._set(owner, self.balance_of(owner) + amount)

    def transfer(self, source: Address, destination: Address, amount: int) -> None:
        if amount < 0:
            raise CollaboratorError("Negative transfer", collaborator="native", operation="transfer")
        with self.store.transaction("native.transfer"):
            available = self.balance_of(source)
            if available < amount:
                raise CollaboratorError(
                    f"Insufficient native balance: {available} < {amount}",
                    collaborator="native",
                    operation="transfer",
                )
            self._set(source, available - amount)
            self._set(destination, self.balance_of(destination) + amount)

    def _set(self, owner: Address, amount: int) -> None:
        self.store.put(self.balance_address(owner), NativeBalance(owner=owner, amount=amount))
