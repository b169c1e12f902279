"""
Transfer engine for CatBridge.

This module ties the bridge components together:
- One-time initialization and owner administration
- Outbound transfers (debit, normalize, encode, publish)
- Inbound transfers (verify, denormalize, credit, claim)

Every public operation is one unit of work on the shared state store, so a
failure at any step leaves no trace in the config, the registry, the replay
ledger, the token ledger, the native ledger or the messaging protocol.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..crypto import Address, Hash, derive_address, u64_le
from ..errors import CatBridgeError, ConfigurationError, TrustError, ValidationError
from ..host import MessagingProtocol, NativeLedger, TokenLedger
from ..logging import LogContext, get_logger
from ..storage import StateStore
from .bridge_types import (
    SEED_EMITTER,
    SEED_SENT,
    BridgeConfig,
    BridgeSettings,
    DustPolicy,
    InboundReceipt,
    MessagingLinks,
    OutboundReceipt,
    TransferModeKind,
)
from .codec import BridgePayload, decode_payload, encode_payload
from .config import ConfigManager
from .modes import CanonicalMode, TransferMode, WrappedMode, mode_for
from .normalizer import denormalize, dust, normalize
from .registry import EmitterRegistry
from .replay import ReplayLedger

logger = get_logger(__name__)


@dataclass
class BridgeMetrics:
    """Counters kept by a running engine."""

    outbound_transfers: int = 0
    inbound_transfers: int = 0
    rejected_outbound: int = 0
    rejected_inbound: int = 0
    volume_out: int = 0
    volume_in: int = 0
    dust_dropped: int = 0
    last_activity: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "outbound_transfers": self.outbound_transfers,
            "inbound_transfers": self.inbound_transfers,
            "rejected_outbound": self.rejected_outbound,
            "rejected_inbound": self.rejected_inbound,
            "volume_out": self.volume_out,
            "volume_in": self.volume_in,
            "dust_dropped": self.dust_dropped,
            "last_activity": self.last_activity,
        }


class TransferEngine:
    """Single-asset token bridge between the home ledger and foreign chains."""

    def __init__(
        self,
        store: StateStore,
        tokens: TokenLedger,
        native: NativeLedger,
        messaging: MessagingProtocol,
        settings: Optional[BridgeSettings] = None,
    ):
        self.store = store
        self.tokens = tokens
        self.native = native
        self.messaging = messaging
        self.settings = settings or BridgeSettings()
        self.program_id = self.settings.program_id

        self.config = ConfigManager(store, self.program_id)
        self.registry = EmitterRegistry(store, self.program_id, self.config)
        self.replay = ReplayLedger(store, self.program_id)
        self.metrics = BridgeMetrics()
        self._mode: Optional[TransferMode] = None

    @property
    def emitter_address(self) -> Address:
        """Identity the bridge publishes outbound messages under."""
        return derive_address(self.program_id, SEED_EMITTER)

    @property
    def mode(self) -> TransferMode:
        if self._mode is None:
            self._mode = mode_for(self.config.load().mode, self.tokens, self.program_id)
        return self._mode

    def sent_address(self, sequence: int) -> Address:
        """Account holding the outbound message published under ``sequence``."""
        return derive_address(self.program_id, SEED_SENT, u64_le(sequence))

    # Administration

    def initialize(
        self,
        owner: Address,
        mode: TransferModeKind,
        token_mint: Optional[Address] = None,
        decimals: Optional[int] = None,
        initial_supply: int = 0,
        max_supply: int = 0,
    ) -> BridgeConfig:
        """
        Create the bridge configuration; callable once per program.

        Wrapped mode bridges an existing ``token_mint`` and opens its vault.
        Canonical mode bridges a token the bridge mints itself: either an
        existing mint whose authority is the bridge, or a new one created
        with ``decimals`` and ``max_supply``. ``initial_supply`` is minted to
        the owner's associated account.
        """
        context = LogContext(component="engine", operation="initialize")
        impl = mode_for(mode, self.tokens, self.program_id)

        with self.store.transaction("engine.initialize"):
            if self.config.is_initialized:
                raise ConfigurationError("Bridge is already initialized", config_key="config")

            if isinstance(impl, WrappedMode):
                if token_mint is None:
                    raise ValidationError("Wrapped mode needs a token mint", field="token_mint")
                if initial_supply:
                    raise ValidationError(
                        "Wrapped mode cannot mint an initial supply",
                        field="initial_supply",
                        value=initial_supply,
                    )
                self.tokens.get_mint(token_mint)
            elif token_mint is None:
                if decimals is None:
                    raise ValidationError(
                        "Canonical mode needs decimals to create its token", field="decimals"
                    )
                token_mint = impl.mint_address()
                self.tokens.create_mint(
                    token_mint, decimals, impl.mint_authority(), max_supply=max_supply
                )

            emitter = self.emitter_address
            config = self.config.create(
                BridgeConfig(
                    owner=owner,
                    messaging=MessagingLinks(
                        bridge=self.messaging.bridge_address,
                        fee_collector=self.messaging.fee_collector_address,
                        sequence=self.messaging.sequence_address(emitter),
                    ),
                    mode=mode,
                    token_mint=token_mint,
                    emitter=emitter,
                    home_chain_id=self.settings.home_chain_id,
                    batch_id=self.settings.default_batch_id,
                    finality=self.settings.default_finality,
                )
            )
            impl.prepare(config)

            if initial_supply:
                account = self.tokens.get_or_create_associated_account(owner, token_mint)
                impl.credit(config, account.address, initial_supply)

        self._mode = impl
        logger.info(
            f"Initialized {mode.value} bridge",
            context=context,
            extra={
                "owner": owner.to_hex(),
                "token_mint": token_mint.to_hex(),
                "initial_supply": initial_supply,
            },
        )
        return config

    def register_emitter(self, caller: Address, chain_id: int, address: Address):
        return self.registry.register(caller, chain_id, address)

    def transfer_ownership(self, caller: Address, new_owner: Address) -> BridgeConfig:
        return self.config.transfer_ownership(caller, new_owner)

    def mint_tokens(self, caller: Address, recipient: Address, amount: int) -> Address:
        """Owner-only mint into ``recipient``'s associated account (canonical mode)."""
        with self.store.transaction("engine.mint_tokens"):
            config = self.config.require_owner(caller)
            impl = self.mode
            if not isinstance(impl, CanonicalMode):
                raise ValidationError(
                    "Minting is only available in canonical mode",
                    field="mode",
                    value=config.mode.value,
                )
            _check_amount(amount)
            account = self.tokens.get_or_create_associated_account(recipient, config.token_mint)
            impl.credit(config, account.address, amount)

        logger.info(
            "Minted tokens",
            context=LogContext(component="engine", operation="mint_tokens"),
            extra={"recipient": recipient.to_hex(), "amount": amount},
        )
        return account.address

    # Outbound

    def bridge_out(
        self,
        caller: Address,
        amount: int,
        recipient_chain_id: int,
        recipient_account_address: Address,
        recipient_contract_address: Optional[Address] = None,
    ) -> OutboundReceipt:
        """Debit ``amount`` from ``caller`` and publish a transfer to a foreign chain."""
        context = LogContext(
            component="engine", operation="bridge_out", chain_id=recipient_chain_id
        )
        try:
            with self.store.transaction("engine.bridge_out"):
                receipt = self._bridge_out(
                    caller,
                    amount,
                    recipient_chain_id,
                    recipient_account_address,
                    recipient_contract_address,
                )
        except CatBridgeError as e:
            self.metrics.rejected_outbound += 1
            logger.warning(
                f"Outbound transfer rejected: {e.message}",
                context=context,
                extra={"error": type(e).__name__, "caller": caller.to_hex(), "amount": amount},
            )
            raise

        self.metrics.outbound_transfers += 1
        self.metrics.volume_out += receipt.amount_debited
        self.metrics.dust_dropped += receipt.dust
        self.metrics.last_activity = time.time()
        logger.info(
            "Outbound transfer published",
            context=LogContext(
                component="engine",
                operation="bridge_out",
                chain_id=recipient_chain_id,
                sequence=receipt.sequence,
            ),
            extra={
                "amount": receipt.amount_debited,
                "wire_amount": int(receipt.wire_amount),
                "dust": receipt.dust,
                "fee": receipt.fee_paid,
            },
        )
        return receipt

    def _bridge_out(
        self,
        caller: Address,
        amount: int,
        recipient_chain_id: int,
        recipient_account_address: Address,
        recipient_contract_address: Optional[Address],
    ) -> OutboundReceipt:
        config = self.config.load()
        impl = self.mode

        _check_amount(amount)
        if isinstance(recipient_chain_id, bool) or not isinstance(recipient_chain_id, int):
            raise ValidationError(
                "Recipient chain id must be an int",
                field="recipient_chain_id",
                value=recipient_chain_id,
            )
        emitter = self.registry.get(recipient_chain_id)
        if emitter is None:
            raise ValidationError(
                f"No emitter registered for chain {recipient_chain_id}",
                field="recipient_chain_id",
                value=recipient_chain_id,
            )
        if recipient_contract_address is None:
            if isinstance(impl, WrappedMode):
                raise ValidationError(
                    "Wrapped mode needs the recipient contract address",
                    field="recipient_contract_address",
                )
            recipient_contract_address = emitter.address

        # no state is touched above this line
        fee = self.messaging.fee()
        if fee:
            self.native.transfer(caller, config.messaging.fee_collector, fee)

        debited = impl.debit(config, caller, amount)
        if debited <= 0:
            raise ValidationError("Nothing arrived in the vault", field="amount", value=amount)

        decimals = self.tokens.get_mint(config.token_mint).decimals
        wire_amount = normalize(debited, decimals, self.settings.native_width_bits)
        dropped = dust(debited, decimals)
        if dropped and self.settings.dust_policy is DustPolicy.REJECT:
            raise ValidationError(
                f"Amount {debited} carries {dropped} below wire precision",
                field="amount",
                value=debited,
            )
        if wire_amount.is_zero():
            raise ValidationError(
                f"Amount {debited} is below wire precision", field="amount", value=debited
            )

        payload = BridgePayload(
            amount=wire_amount,
            token_decimals=decimals,
            source_chain_id=config.home_chain_id,
            source_token_address=config.token_mint,
            source_account_address=impl.source_account(config, caller),
            dest_chain_id=recipient_chain_id,
            dest_token_address=recipient_contract_address,
            dest_account_address=recipient_account_address,
        )

        # one reservation keys both the message account and the published sequence
        reservation = self.messaging.reserve_sequence(config.emitter)
        message_address = self.sent_address(reservation.sequence)
        message = self.messaging.post_message(
            reservation,
            message_address,
            encode_payload(payload),
            config.batch_id,
            config.finality,
        )

        return OutboundReceipt(
            sequence=message.sequence,
            message_address=message_address,
            message_hash=message.hash,
            payload=payload,
            amount_debited=debited,
            wire_amount=wire_amount,
            dust=dropped,
            fee_paid=fee,
        )

    # Inbound

    def bridge_in(
        self,
        caller: Address,
        message_hash: Hash,
        destination_account: Optional[Address] = None,
    ) -> InboundReceipt:
        """Redeem an attested inbound message identified by ``message_hash``."""
        context = LogContext(component="engine", operation="bridge_in")
        try:
            with self.store.transaction("engine.bridge_in"):
                receipt = self._bridge_in(message_hash, destination_account)
        except CatBridgeError as e:
            self.metrics.rejected_inbound += 1
            logger.warning(
                f"Inbound transfer rejected: {e.message}",
                context=context,
                extra={
                    "error": type(e).__name__,
                    "caller": caller.to_hex(),
                    "message_hash": message_hash.to_hex(),
                },
            )
            raise

        self.metrics.inbound_transfers += 1
        self.metrics.volume_in += receipt.amount_credited
        self.metrics.last_activity = time.time()
        logger.info(
            "Inbound transfer redeemed",
            context=LogContext(
                component="engine",
                operation="bridge_in",
                chain_id=receipt.emitter_chain,
                sequence=receipt.sequence,
            ),
            extra={
                "amount": receipt.amount_credited,
                "destination": receipt.destination.to_hex(),
            },
        )
        return receipt

    def _bridge_in(
        self, message_hash: Hash, destination_account: Optional[Address]
    ) -> InboundReceipt:
        config = self.config.load()
        impl = self.mode

        message = self.messaging.get_posted(message_hash)
        payload = decode_payload(message.payload)

        if not self.registry.verify(message.emitter_chain, message.emitter_address):
            raise TrustError(
                f"Untrusted emitter for chain {message.emitter_chain}",
                emitter_chain=message.emitter_chain,
                emitter_address=message.emitter_address.to_hex(),
            )
        if int(payload.dest_chain_id) != config.home_chain_id:
            raise ValidationError(
                f"Payload is addressed to chain {int(payload.dest_chain_id)}",
                field="dest_chain_id",
                value=int(payload.dest_chain_id),
                expected=config.home_chain_id,
            )

        destination = impl.resolve_destination(
            config, payload.dest_account_address, destination_account
        )

        decimals = self.tokens.get_mint(config.token_mint).decimals
        amount = denormalize(payload.amount, decimals, self.settings.native_width_bits)
        if amount:
            impl.credit(config, destination, amount)

        self.replay.claim(
            message.emitter_chain,
            message.sequence,
            message.batch_id,
            message.hash,
            message.payload,
        )

        return InboundReceipt(
            emitter_chain=message.emitter_chain,
            sequence=message.sequence,
            message_hash=message.hash,
            destination=destination,
            amount_credited=amount,
            received_address=self.replay.slot_address(message.emitter_chain, message.sequence),
        )

    # Status

    def get_bridge_status(self) -> Dict[str, Any]:
        """Snapshot of configuration, trusted chains and counters."""
        status: Dict[str, Any] = {
            "initialized": self.config.is_initialized,
            "program_id": self.program_id.to_hex(),
            "metrics": self.metrics.to_dict(),
        }
        if not self.config.is_initialized:
            return status

        config = self.config.load()
        impl = self.mode
        status["config"] = config.to_dict()
        status["registered_chains"] = self.registry.registered_chains()
        status["next_sequence"] = self.messaging.reserve_sequence(config.emitter).sequence
        if isinstance(impl, WrappedMode):
            status["vault_balance"] = impl.vault_balance(config)
        elif isinstance(impl, CanonicalMode):
            status["total_supply"] = impl.supply(config)
        return status


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("Amount must be a positive int", field="amount", value=amount)
