"""
Transfer modes.

A mode decides how the home side takes tokens out of circulation on the way
out and puts them back on the way in:

- :class:`WrappedMode` locks tokens in a bridge-owned vault and releases
  them from it.
- :class:`CanonicalMode` burns tokens and mints them, changing total supply.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..crypto import Address, derive_address
from ..errors import ValidationError
from ..host import TokenLedger, associated_token_address
from .bridge_types import SEED_MINT, SEED_VAULT, BridgeConfig, TransferModeKind


class TransferMode(ABC):
    """Debit/credit strategy used by the transfer engine."""

    kind: TransferModeKind

    def __init__(self, ledger: TokenLedger, program_id: Address):
        self.ledger = ledger
        self.program_id = program_id

    @abstractmethod
    def prepare(self, config: BridgeConfig) -> None:
        """Create the accounts the mode needs; called once at initialization."""

    @abstractmethod
    def debit(self, config: BridgeConfig, caller: Address, amount: int) -> int:
        """Take ``amount`` from the caller; return what actually left circulation."""

    @abstractmethod
    def credit(self, config: BridgeConfig, destination: Address, amount: int) -> None:
        """Give ``amount`` to ``destination``."""

    def source_account(self, config: BridgeConfig, caller: Address) -> Address:
        return associated_token_address(caller, config.token_mint)

    def resolve_destination(
        self,
        config: BridgeConfig,
        recipient: Address,
        supplied: Optional[Address],
    ) -> Address:
        """Token account to credit for an inbound payload addressed to ``recipient``.

        Without a caller-supplied account the recipient's associated account
        is used, and opened if it does not exist yet.
        """
        if supplied is None:
            return self.ledger.get_or_create_associated_account(
                recipient, config.token_mint
            ).address
        self.check_destination(associated_token_address(recipient, config.token_mint), supplied)
        return supplied

    def check_destination(self, expected: Address, supplied: Address) -> None:
        pass


class WrappedMode(TransferMode):
    """Lock-and-release against a vault keyed by the token mint."""

    kind = TransferModeKind.WRAPPED

    def vault_address(self, mint: Address) -> Address:
        return derive_address(self.program_id, SEED_VAULT, mint)

    def prepare(self, config: BridgeConfig) -> None:
        vault = self.vault_address(config.token_mint)
        # the vault is its own authority; only this program can sign for it
        self.ledger.create_account(vault, config.token_mint, owner=vault)

    def debit(self, config: BridgeConfig, caller: Address, amount: int) -> int:
        vault = self.vault_address(config.token_mint)
        before = self.ledger.balance_of(vault)
        self.ledger.transfer(self.source_account(config, caller), vault, amount, authority=caller)
        return self.ledger.balance_of(vault) - before

    def credit(self, config: BridgeConfig, destination: Address, amount: int) -> None:
        vault = self.vault_address(config.token_mint)
        self.ledger.transfer(vault, destination, amount, authority=vault)

    def vault_balance(self, config: BridgeConfig) -> int:
        return self.ledger.balance_of(self.vault_address(config.token_mint))

    def check_destination(self, expected: Address, supplied: Address) -> None:
        if supplied != expected:
            raise ValidationError(
                "Destination account does not match the payload recipient",
                field="destination",
                value=supplied.to_hex(),
                expected=expected.to_hex(),
            )


class CanonicalMode(TransferMode):
    """Burn-and-mint against the token's total supply."""

    kind = TransferModeKind.CANONICAL

    def mint_address(self) -> Address:
        """Where the bridge creates its own token when none is supplied."""
        return derive_address(self.program_id, SEED_MINT)

    def mint_authority(self) -> Address:
        return derive_address(self.program_id, SEED_MINT, b"authority")

    def supply(self, config: BridgeConfig) -> int:
        return self.ledger.get_mint(config.token_mint).supply

    def prepare(self, config: BridgeConfig) -> None:
        mint = self.ledger.get_mint(config.token_mint)
        if mint.mint_authority != self.mint_authority():
            raise ValidationError(
                "Token mint authority must be the bridge",
                field="mint_authority",
                value=mint.mint_authority.to_hex(),
                expected=self.mint_authority().to_hex(),
            )

    def debit(self, config: BridgeConfig, caller: Address, amount: int) -> int:
        self.ledger.burn(self.source_account(config, caller), amount, authority=caller)
        return amount

    def credit(self, config: BridgeConfig, destination: Address, amount: int) -> None:
        self.ledger.mint(config.token_mint, destination, amount, authority=self.mint_authority())


def mode_for(kind: TransferModeKind, ledger: TokenLedger, program_id: Address) -> TransferMode:
    if kind is TransferModeKind.WRAPPED:
        return WrappedMode(ledger, program_id)
    return CanonicalMode(ledger, program_id)
