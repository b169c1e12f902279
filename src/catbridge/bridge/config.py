"""
Bridge configuration singleton.

The configuration account is created once, at a fixed derived address, and
afterwards only its owner field changes (through ownership transfer).
"""

from dataclasses import replace

from ..crypto import Address, derive_address
from ..errors import AuthorizationError, ConfigurationError, ValidationError
from ..logging import LogContext, get_logger
from ..storage import AccountExistsError, StateStore
from .bridge_types import SEED_CONFIG, BridgeConfig

logger = get_logger(__name__)


class ConfigManager:
    """Reads and administers the :class:`BridgeConfig` account."""

    def __init__(self, store: StateStore, program_id: Address):
        self.store = store
        self.program_id = program_id
        self.address = derive_address(program_id, SEED_CONFIG)

    @property
    def is_initialized(self) -> bool:
        return self.store.get_as(self.address, BridgeConfig) is not None

    def load(self) -> BridgeConfig:
        config = self.store.get_as(self.address, BridgeConfig)
        if config is None:
            raise ConfigurationError("Bridge is not initialized", config_key="config")
        return config

    def create(self, config: BridgeConfig) -> BridgeConfig:
        """Create the singleton; a second call fails."""
        if config.owner.is_zero():
            raise ValidationError("Owner cannot be the zero address", field="owner")
        with self.store.transaction("config.create"):
            try:
                self.store.create(self.address, config)
            except AccountExistsError as e:
                raise ConfigurationError(
                    "Bridge is already initialized", config_key="config", cause=e
                ) from e
        return config

    def require_owner(self, caller: Address) -> BridgeConfig:
        config = self.load()
        if caller != config.owner:
            raise AuthorizationError(
                "Only the bridge owner may do this",
                caller=caller.to_hex(),
                required=config.owner.to_hex(),
            )
        return config

    def transfer_ownership(self, caller: Address, new_owner: Address) -> BridgeConfig:
        with self.store.transaction("config.transfer_ownership"):
            config = self.require_owner(caller)
            if new_owner.is_zero():
                raise ValidationError("New owner cannot be the zero address", field="new_owner")
            updated = replace(config, owner=new_owner)
            self.store.put(self.address, updated)

        logger.info(
            "Ownership transferred",
            context=LogContext(component="config", operation="transfer_ownership"),
            extra={"previous": config.owner.to_hex(), "owner": new_owner.to_hex()},
        )
        return updated
