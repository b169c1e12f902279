"""
Attested messaging protocol collaborator.

Outbound, the protocol accepts a payload together with a batch id, a
finality level and a prepaid fee, and publishes it under the emitter's next
sequence number. Inbound, it exposes messages that already passed its own
signature checks, looked up by message hash.

:class:`InMemoryMessagingProtocol` keeps its accounts in a
:class:`~catbridge.storage.StateStore`. It does not verify signatures:
:meth:`InMemoryMessagingProtocol.deliver` stands in for a message that the
real protocol has already verified and posted.
"""

import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Optional

from ..crypto import Address, Hash, SHA256Hasher, derive_address
from ..errors import CollaboratorError
from ..logging import LogContext, get_logger
from ..storage import AccountExistsError, StateStore
from .native import NativeLedger

logger = get_logger(__name__)

CORE_BRIDGE_PROGRAM_ID = Address.from_int(0x0C0B)
FIRST_SEQUENCE = 1

_BODY_HEADER = struct.Struct(">IH32sQB")


@dataclass(frozen=True)
class BridgeData:
    fee: int
    chain_id: int
    last_lamports: int = 0


@dataclass(frozen=True)
class SequenceTracker:
    emitter: Address
    next_value: int = FIRST_SEQUENCE


@dataclass(frozen=True)
class SequenceReservation:
    """The one read of an emitter's next sequence, used for everything keyed by it."""

    emitter: Address
    sequence: int
    tracker: Address


@dataclass(frozen=True)
class PostedMessage:
    """An attested message envelope."""

    emitter_chain: int
    emitter_address: Address
    sequence: int
    batch_id: int
    finality: int
    payload: bytes
    hash: Hash


def message_hash(
    emitter_chain: int,
    emitter_address: Address,
    sequence: int,
    batch_id: int,
    finality: int,
    payload: bytes,
) -> Hash:
    """Digest of the envelope body, the identity of a message."""
    header = _BODY_HEADER.pack(
        batch_id, emitter_chain, emitter_address.value, sequence, int(finality)
    )
    return SHA256Hasher.hash_parts(header, payload)


class MessagingProtocol(ABC):
    """What the bridge needs from the messaging protocol."""

    @abstractmethod
    def fee(self) -> int:
        """Flat fee, in native currency, for posting one message."""

    @property
    @abstractmethod
    def bridge_address(self) -> Address:
        """Protocol state account."""

    @property
    @abstractmethod
    def fee_collector_address(self) -> Address:
        """Account the fee must be paid into before posting."""

    @abstractmethod
    def sequence_address(self, emitter: Address) -> Address:
        """Sequence tracker account of ``emitter``."""

    @abstractmethod
    def reserve_sequence(self, emitter: Address) -> SequenceReservation:
        """Read the emitter's next sequence once."""

    @abstractmethod
    def post_message(
        self,
        reservation: SequenceReservation,
        message_address: Address,
        payload: bytes,
        batch_id: int,
        finality: int,
    ) -> PostedMessage:
        """Publish ``payload`` under the reserved sequence."""

    @abstractmethod
    def get_posted(self, digest: Hash) -> PostedMessage:
        """Return a verified inbound message by hash."""


class InMemoryMessagingProtocol(MessagingProtocol):
    """Messaging protocol instance for one chain, held in a state store."""

    def __init__(
        self,
        store: StateStore,
        native: NativeLedger,
        chain_id: int,
        fee: int = 0,
        program_id: Address = CORE_BRIDGE_PROGRAM_ID,
    ):
        self.store = store
        self.native = native
        self.chain_id = chain_id
        self.program_id = program_id

        with store.transaction("messaging.init"):
            if store.get_as(self.bridge_address, BridgeData) is None:
                store.put(self.bridge_address, BridgeData(fee=fee, chain_id=chain_id))

    # Addresses

    @property
    def bridge_address(self) -> Address:
        return derive_address(self.program_id, b"Bridge")

    @property
    def fee_collector_address(self) -> Address:
        return derive_address(self.program_id, b"fee_collector")

    def sequence_address(self, emitter: Address) -> Address:
        return derive_address(self.program_id, b"Sequence", emitter)

    def posted_address(self, digest: Hash) -> Address:
        return derive_address(self.program_id, b"PostedVAA", digest)

    # Fee

    def _bridge_data(self) -> BridgeData:
        return self.store.require(self.bridge_address, BridgeData)

    def fee(self) -> int:
        return self._bridge_data().fee

    def set_fee(self, fee: int) -> None:
        if fee < 0:
            raise ValueError("fee must be non-negative")
        with self.store.transaction("messaging.set_fee"):
            self.store.put(self.bridge_address, replace(self._bridge_data(), fee=fee))

    # Sequences

    def sequence_of(self, emitter: Address) -> int:
        """Next sequence ``emitter`` will publish under."""
        tracker = self.store.get_as(self.sequence_address(emitter), SequenceTracker)
        return tracker.next_value if tracker else FIRST_SEQUENCE

    def reserve_sequence(self, emitter: Address) -> SequenceReservation:
        return SequenceReservation(
            emitter=emitter,
            sequence=self.sequence_of(emitter),
            tracker=self.sequence_address(emitter),
        )

    # Posting

    def post_message(
        self,
        reservation: SequenceReservation,
        message_address: Address,
        payload: bytes,
        batch_id: int,
        finality: int,
    ) -> PostedMessage:
        with self.store.transaction("messaging.post_message"):
            data = self._bridge_data()
            collected = self.native.balance_of(self.fee_collector_address)
            if collected < data.last_lamports + data.fee:
                raise CollaboratorError(
                    "Messaging fee not paid",
                    collaborator="messaging",
                    operation="post_message",
                )

            current = self.sequence_of(reservation.emitter)
            if reservation.tracker != self.sequence_address(reservation.emitter):
                raise CollaboratorError(
                    "Reservation does not belong to this protocol",
                    collaborator="messaging",
                    operation="post_message",
                )
            if reservation.sequence != current:
                raise CollaboratorError(
                    f"Stale sequence reservation {reservation.sequence}, next is {current}",
                    collaborator="messaging",
                    operation="post_message",
                )

            message = PostedMessage(
                emitter_chain=self.chain_id,
                emitter_address=reservation.emitter,
                sequence=reservation.sequence,
                batch_id=batch_id,
                finality=int(finality),
                payload=bytes(payload),
                hash=message_hash(
                    self.chain_id, reservation.emitter, reservation.sequence,
                    batch_id, finality, payload,
                ),
            )
            try:
                self.store.create(message_address, message)
            except AccountExistsError as e:
                raise CollaboratorError(
                    f"Message account for sequence {reservation.sequence} already in use",
                    collaborator="messaging",
                    operation="post_message",
                    cause=e,
                ) from e

            self.store.put(
                reservation.tracker,
                SequenceTracker(emitter=reservation.emitter, next_value=current + 1),
            )
            self.store.put(self.bridge_address, replace(data, last_lamports=collected))

        logger.debug(
            "Posted message",
            context=LogContext(
                component="messaging", chain_id=self.chain_id, sequence=message.sequence
            ),
        )
        return message

    def get_message(self, message_address: Address) -> PostedMessage:
        """Outbound message published at ``message_address``."""
        message = self.store.get_as(message_address, PostedMessage)
        if message is None:
            raise CollaboratorError(
                f"No message at {message_address.to_hex()}",
                collaborator="messaging",
                operation="get_message",
            )
        return message

    # Inbound

    def deliver(
        self,
        emitter_chain: int,
        emitter_address: Address,
        sequence: int,
        payload: bytes,
        batch_id: int = 0,
        finality: int = 0,
    ) -> PostedMessage:
        """Post a foreign message as verified and return it."""
        digest = message_hash(emitter_chain, emitter_address, sequence, batch_id, finality, payload)
        address = self.posted_address(digest)
        existing = self.store.get_as(address, PostedMessage)
        if existing is not None:
            return existing

        message = PostedMessage(
            emitter_chain=emitter_chain,
            emitter_address=emitter_address,
            sequence=sequence,
            batch_id=batch_id,
            finality=int(finality),
            payload=bytes(payload),
            hash=digest,
        )
        with self.store.transaction("messaging.deliver"):
            self.store.create(address, message)
        return message

    def relay(self, message: PostedMessage) -> PostedMessage:
        """Deliver a message published by another protocol instance."""
        return self.deliver(
            message.emitter_chain,
            message.emitter_address,
            message.sequence,
            message.payload,
            batch_id=message.batch_id,
            finality=message.finality,
        )

    def get_posted(self, digest: Hash) -> PostedMessage:
        message = self.store.get_as(self.posted_address(digest), PostedMessage)
        if message is None:
            raise CollaboratorError(
                f"No verified message with hash {digest.to_hex()}",
                collaborator="messaging",
                operation="get_posted",
            )
        return message

    def find_posted(self, digest: Hash) -> Optional[PostedMessage]:
        return self.store.get_as(self.posted_address(digest), PostedMessage)
