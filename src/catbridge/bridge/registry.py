"""
Foreign emitter registry.

One record per foreign chain naming the only contract whose messages from
that chain are trusted. Records are upserted by the bridge owner and never
deleted.
"""

from typing import List, Optional

from ..crypto import Address, derive_address, u16_le
from ..errors import ValidationError
from ..logging import LogContext, get_logger
from ..storage import StateStore
from .bridge_types import SEED_FOREIGN_EMITTER, U16_MAX, ForeignEmitterRecord
from .config import ConfigManager

logger = get_logger(__name__)


class EmitterRegistry:
    """Per-chain allow-list of trusted counter-party contracts."""

    def __init__(self, store: StateStore, program_id: Address, config: ConfigManager):
        self.store = store
        self.program_id = program_id
        self.config = config

    def address_for(self, chain_id: int) -> Address:
        return derive_address(self.program_id, SEED_FOREIGN_EMITTER, u16_le(chain_id))

    def register(self, caller: Address, chain_id: int, address: Address) -> ForeignEmitterRecord:
        """Owner-only idempotent upsert of the emitter for ``chain_id``."""
        with self.store.transaction("registry.register"):
            config = self.config.require_owner(caller)

            if isinstance(chain_id, bool) or not isinstance(chain_id, int):
                raise ValidationError("Chain id must be an int", field="chain_id", value=chain_id)
            if not 0 < chain_id <= U16_MAX:
                raise ValidationError(
                    f"Chain id {chain_id} out of range",
                    field="chain_id",
                    value=chain_id,
                    expected=f"1..{U16_MAX}",
                )
            if chain_id == config.home_chain_id:
                raise ValidationError(
                    "Cannot register an emitter for the home chain",
                    field="chain_id",
                    value=chain_id,
                )
            if address.is_zero():
                raise ValidationError("Emitter address cannot be zero", field="address")

            record = ForeignEmitterRecord(chain_id=chain_id, address=address)
            key = self.address_for(chain_id)
            previous = self.store.get_as(key, ForeignEmitterRecord)
            if previous != record:
                self.store.put(key, record)

        if previous is None:
            message = "Registered foreign emitter"
        elif previous == record:
            message = "Foreign emitter unchanged"
        else:
            message = "Replaced foreign emitter"
        logger.info(
            message,
            context=LogContext(component="registry", operation="register", chain_id=chain_id),
            extra={"address": address.to_hex()},
        )
        return record

    def get(self, chain_id: int) -> Optional[ForeignEmitterRecord]:
        if not 0 <= chain_id <= U16_MAX:
            return None
        return self.store.get_as(self.address_for(chain_id), ForeignEmitterRecord)

    def is_registered(self, chain_id: int) -> bool:
        return self.get(chain_id) is not None

    def verify(self, chain_id: int, address: Address) -> bool:
        """True only if ``address`` is the registered emitter for ``chain_id``."""
        record = self.get(chain_id)
        return record is not None and record.verify(address)

    def registered_chains(self) -> List[int]:
        # the store may hold records of other bridge programs
        return sorted(
            record.chain_id
            for record in self.store.values_of(ForeignEmitterRecord)
            if self.get(record.chain_id) == record
        )
