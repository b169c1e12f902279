"""
In-process chain wiring.

:class:`LocalChain` assembles one home ledger: a state store, the native and
token ledgers, a messaging protocol instance and a transfer engine, all
sharing the same store. Tests and demos connect several of them by relaying
published messages from one chain's protocol into another's.
"""

from dataclasses import dataclass
from typing import Optional

from ..crypto import Address
from ..host import (
    InMemoryMessagingProtocol,
    InMemoryNativeLedger,
    InMemoryTokenLedger,
    PostedMessage,
)
from ..storage import StateStore
from .bridge_types import BridgeSettings
from .engine import TransferEngine


@dataclass
class LocalChain:
    settings: BridgeSettings
    store: StateStore
    native: InMemoryNativeLedger
    tokens: InMemoryTokenLedger
    messaging: InMemoryMessagingProtocol
    engine: TransferEngine

    @classmethod
    def create(
        cls,
        settings: Optional[BridgeSettings] = None,
        fee: int = 0,
        transfer_fee_bps: int = 0,
    ) -> "LocalChain":
        settings = settings or BridgeSettings()
        store = StateStore()
        native = InMemoryNativeLedger(store)
        tokens = InMemoryTokenLedger(store, transfer_fee_bps=transfer_fee_bps)
        messaging = InMemoryMessagingProtocol(store, native, settings.home_chain_id, fee=fee)
        engine = TransferEngine(store, tokens, native, messaging, settings)
        return cls(
            settings=settings,
            store=store,
            native=native,
            tokens=tokens,
            messaging=messaging,
            engine=engine,
        )

    @property
    def chain_id(self) -> int:
        return self.settings.home_chain_id

    def fund(self, owner: Address, amount: int) -> None:
        """Give ``owner`` native currency for messaging fees."""
        self.native.credit(owner, amount)

    def token_balance(self, owner: Address) -> int:
        """Balance of ``owner``'s associated account; zero if it was never opened."""
        config = self.engine.config.load()
        account = self.tokens.find_account(
            self.engine.mode.source_account(config, owner)
        )
        return account.amount if account else 0

    def accept(self, message: PostedMessage) -> PostedMessage:
        """Make a message published elsewhere available for redemption here."""
        return self.messaging.relay(message)
