"""
Replay protection ledger.

Each processed inbound message claims the account derived from its
``(emitter chain, sequence)`` pair. Account creation at a given address can
only succeed once, so a second delivery of the same message fails before
any funds move. Claims are never removed.
"""

from typing import Optional

from ..crypto import Address, Hash, derive_address, u16_le, u64_le
from ..errors import ReplayError
from ..storage import AccountExistsError, StateStore
from .bridge_types import SEED_RECEIVED, ReceivedMessageRecord


class ReplayLedger:
    """Create-once record of processed ``(chain, sequence)`` slots."""

    def __init__(self, store: StateStore, program_id: Address):
        self.store = store
        self.program_id = program_id

    def slot_address(self, chain_id: int, sequence: int) -> Address:
        return derive_address(self.program_id, SEED_RECEIVED, u16_le(chain_id), u64_le(sequence))

    def claim(
        self,
        chain_id: int,
        sequence: int,
        batch_id: int,
        message_hash: Hash,
        payload: bytes,
    ) -> ReceivedMessageRecord:
        record = ReceivedMessageRecord(
            emitter_chain=chain_id,
            sequence=sequence,
            batch_id=batch_id,
            message_hash=message_hash,
            payload=bytes(payload),
        )
        with self.store.transaction("replay.claim"):
            try:
                self.store.create(self.slot_address(chain_id, sequence), record)
            except AccountExistsError as e:
                raise ReplayError(
                    f"Message {chain_id}/{sequence} was already processed",
                    emitter_chain=chain_id,
                    sequence=sequence,
                    cause=e,
                ) from e
        return record

    def get(self, chain_id: int, sequence: int) -> Optional[ReceivedMessageRecord]:
        return self.store.get_as(self.slot_address(chain_id, sequence), ReceivedMessageRecord)

    def is_claimed(self, chain_id: int, sequence: int) -> bool:
        return self.store.contains(self.slot_address(chain_id, sequence))
