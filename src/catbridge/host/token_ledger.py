"""
Token ledger collaborator.

The bridge only relies on the :class:`TokenLedger` interface: mint, burn and
transfer, each atomic and each failing closed. :class:`InMemoryTokenLedger`
keeps mints and token accounts in a :class:`~catbridge.storage.StateStore`,
so its writes join whatever unit of work the caller has open.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Optional

from ..crypto import Address, derive_address
from ..errors import CollaboratorError
from ..logging import LogContext, get_logger
from ..storage import AccountExistsError, StateStore

logger = get_logger(__name__)

TOKEN_PROGRAM_ID = Address.from_int(0x70)
ASSOCIATED_TOKEN_PROGRAM_ID = Address.from_int(0x71)
U64_MAX = (1 << 64) - 1
BPS_DENOMINATOR = 10_000


@dataclass(frozen=True)
class TokenMint:
    address: Address
    decimals: int
    mint_authority: Address
    supply: int = 0
    max_supply: int = 0  # zero means uncapped


@dataclass(frozen=True)
class TokenAccount:
    address: Address
    mint: Address
    owner: Address
    amount: int = 0
    withheld: int = 0


def associated_token_address(owner: Address, mint: Address) -> Address:
    """Deterministic token account of ``owner`` for ``mint``."""
    return derive_address(ASSOCIATED_TOKEN_PROGRAM_ID, owner, TOKEN_PROGRAM_ID, mint)


class TokenLedger(ABC):
    """Primitive token operations the bridge is built on."""

    @abstractmethod
    def get_mint(self, mint: Address) -> TokenMint:
        """Return the mint, raising :class:`CollaboratorError` if unknown."""

    @abstractmethod
    def get_account(self, account: Address) -> TokenAccount:
        """Return the token account, raising :class:`CollaboratorError` if unknown."""

    @abstractmethod
    def balance_of(self, account: Address) -> int:
        """Current balance of a token account."""

    @abstractmethod
    def create_mint(
        self, address: Address, decimals: int, mint_authority: Address, max_supply: int = 0
    ) -> TokenMint:
        """Create a token mint at ``address``."""

    @abstractmethod
    def create_account(self, address: Address, mint: Address, owner: Address) -> TokenAccount:
        """Open an empty token account at ``address``."""

    @abstractmethod
    def mint(self, mint: Address, destination: Address, amount: int, authority: Address) -> None:
        """Increase supply and credit ``destination``."""

    @abstractmethod
    def burn(self, account: Address, amount: int, authority: Address) -> None:
        """Debit ``account`` and decrease supply."""

    @abstractmethod
    def transfer(
        self, source: Address, destination: Address, amount: int, authority: Address
    ) -> None:
        """Move ``amount`` between two accounts of the same mint."""

    def get_or_create_associated_account(self, owner: Address, mint: Address) -> TokenAccount:
        raise CollaboratorError(
            "Associated accounts are not supported by this ledger",
            collaborator="token_ledger",
            operation="get_or_create_associated_account",
        )


class InMemoryTokenLedger(TokenLedger):
    """Token ledger held in a :class:`StateStore`.

    ``transfer_fee_bps`` withholds a share of every transfer at the
    destination, the way fee-bearing tokens do, so callers that care about
    what actually arrived must compare balances.
    """

    def __init__(self, store: StateStore, transfer_fee_bps: int = 0):
        if not 0 <= transfer_fee_bps < BPS_DENOMINATOR:
            raise ValueError("transfer_fee_bps must be in [0, 10000)")
        self.store = store
        self.transfer_fee_bps = transfer_fee_bps

    # Setup

    def create_mint(
        self,
        address: Address,
        decimals: int,
        mint_authority: Address,
        max_supply: int = 0,
    ) -> TokenMint:
        if not 0 <= decimals <= 0xFF:
            raise CollaboratorError(
                f"Invalid decimals {decimals}", collaborator="token_ledger", operation="create_mint"
            )
        mint = TokenMint(
            address=address,
            decimals=decimals,
            mint_authority=mint_authority,
            max_supply=max_supply,
        )
        with self.store.transaction("token.create_mint"):
            self._create(address, mint, "create_mint")
        return mint

    def create_account(self, address: Address, mint: Address, owner: Address) -> TokenAccount:
        self.get_mint(mint)
        account = TokenAccount(address=address, mint=mint, owner=owner)
        with self.store.transaction("token.create_account"):
            self._create(address, account, "create_account")
        return account

    def get_or_create_associated_account(self, owner: Address, mint: Address) -> TokenAccount:
        address = associated_token_address(owner, mint)
        existing = self.store.get_as(address, TokenAccount)
        if existing is not None:
            return existing
        return self.create_account(address, mint, owner)

    def _create(self, address: Address, value, operation: str) -> None:
        try:
            self.store.create(address, value)
        except AccountExistsError as e:
            raise CollaboratorError(
                f"Account {address.to_hex()} already exists",
                collaborator="token_ledger",
                operation=operation,
                cause=e,
            ) from e

    # Reads

    def get_mint(self, mint: Address) -> TokenMint:
        value = self.store.get_as(mint, TokenMint)
        if value is None:
            raise CollaboratorError(
                f"Unknown mint {mint.to_hex()}", collaborator="token_ledger", operation="get_mint"
            )
        return value

    def get_account(self, account: Address) -> TokenAccount:
        value = self.store.get_as(account, TokenAccount)
        if value is None:
            raise CollaboratorError(
                f"Unknown token account {account.to_hex()}",
                collaborator="token_ledger",
                operation="get_account",
            )
        return value

    def find_account(self, account: Address) -> Optional[TokenAccount]:
        return self.store.get_as(account, TokenAccount)

    def balance_of(self, account: Address) -> int:
        return self.get_account(account).amount

    def supply_of(self, mint: Address) -> int:
        return self.get_mint(mint).supply

    # Mutations

    def mint(self, mint: Address, destination: Address, amount: int, authority: Address) -> None:
        self._check_amount(amount, "mint")
        with self.store.transaction("token.mint"):
            token_mint = self.get_mint(mint)
            account = self.get_account(destination)
            if token_mint.mint_authority != authority:
                raise CollaboratorError(
                    "Signer is not the mint authority", collaborator="token_ledger", operation="mint"
                )
            if account.mint != mint:
                raise CollaboratorError(
                    "Destination belongs to another mint", collaborator="token_ledger", operation="mint"
                )
            supply = token_mint.supply + amount
            if supply > U64_MAX or (token_mint.max_supply and supply > token_mint.max_supply):
                raise CollaboratorError(
                    f"Minting {amount} exceeds the supply cap",
                    collaborator="token_ledger",
                    operation="mint",
                )
            self.store.put(mint, replace(token_mint, supply=supply))
            self.store.put(destination, replace(account, amount=account.amount + amount))

        logger.debug(
            f"Minted {amount}",
            context=LogContext(component="token_ledger", operation="mint"),
            extra={"mint": mint.to_hex(), "supply": supply},
        )

    def burn(self, account: Address, amount: int, authority: Address) -> None:
        self._check_amount(amount, "burn")
        with self.store.transaction("token.burn"):
            token_account = self.get_account(account)
            token_mint = self.get_mint(token_account.mint)
            if token_account.owner != authority:
                raise CollaboratorError(
                    "Signer does not own the account", collaborator="token_ledger", operation="burn"
                )
            if token_account.amount < amount:
                raise CollaboratorError(
                    f"Insufficient funds: {token_account.amount} < {amount}",
                    collaborator="token_ledger",
                    operation="burn",
                )
            self.store.put(account, replace(token_account, amount=token_account.amount - amount))
            self.store.put(token_mint.address, replace(token_mint, supply=token_mint.supply - amount))

        logger.debug(
            f"Burned {amount}",
            context=LogContext(component="token_ledger", operation="burn"),
            extra={"mint": token_mint.address.to_hex(), "supply": token_mint.supply - amount},
        )

    def transfer(
        self, source: Address, destination: Address, amount: int, authority: Address
    ) -> None:
        self._check_amount(amount, "transfer")
        with self.store.transaction("token.transfer"):
            src = self.get_account(source)
            if src.owner != authority:
                raise CollaboratorError(
                    "Signer does not own the source account",
                    collaborator="token_ledger",
                    operation="transfer",
                )
            if src.amount < amount:
                raise CollaboratorError(
                    f"Insufficient funds: {src.amount} < {amount}",
                    collaborator="token_ledger",
                    operation="transfer",
                )
            self.store.put(source, replace(src, amount=src.amount - amount))

            dst = self.get_account(destination)
            if dst.mint != src.mint:
                raise CollaboratorError(
                    "Accounts belong to different mints",
                    collaborator="token_ledger",
                    operation="transfer",
                )
            fee = amount * self.transfer_fee_bps // BPS_DENOMINATOR
            self.store.put(
                destination,
                replace(dst, amount=dst.amount + amount - fee, withheld=dst.withheld + fee),
            )

    @staticmethod
    def _check_amount(amount: int, operation: str) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or not 0 < amount <= U64_MAX:
            raise CollaboratorError(
                f"Invalid amount {amount!r}", collaborator="token_ledger", operation=operation
            )
