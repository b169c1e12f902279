"""
Unit tests for the bridge configuration singleton.
"""

import pytest

from catbridge.bridge.bridge_types import (
    BridgeConfig,
    Finality,
    MessagingLinks,
    TransferModeKind,
)
from catbridge.bridge.config import ConfigManager
from catbridge.crypto import Address
from catbridge.errors import AuthorizationError, ConfigurationError, ValidationError
from catbridge.storage import StateStore

PROGRAM = Address.from_int(0xCA7)
OWNER = Address.from_int(0x0E)
STRANGER = Address.from_int(0x5E)


def make_config(owner: Address = OWNER) -> BridgeConfig:
    return BridgeConfig(
        owner=owner,
        messaging=MessagingLinks(
            bridge=Address.from_int(0xB1),
            fee_collector=Address.from_int(0xB2),
            sequence=Address.from_int(0xB3),
        ),
        mode=TransferModeKind.WRAPPED,
        token_mint=Address.from_int(0x70C),
        emitter=Address.from_int(0xE1),
    )


@pytest.fixture
def manager():
    """Fixture for a config manager over an empty store."""
    return ConfigManager(StateStore(), PROGRAM)


class TestBridgeConfig:
    """Test the BridgeConfig record."""

    def test_defaults(self):
        """Test default batch id, finality and home chain."""
        config = make_config()
        assert config.batch_id == 0
        assert config.finality is Finality.CONFIRMED
        assert config.home_chain_id == 1

    def test_to_dict(self):
        """Test dictionary conversion."""
        data = make_config().to_dict()
        assert data["owner"] == OWNER.to_hex()
        assert data["mode"] == "wrapped"
        assert data["finality"] == 0
        assert data["messaging"]["fee_collector"] == Address.from_int(0xB2).to_hex()


class TestConfigManager:
    """Test ConfigManager lifecycle."""

    def test_not_initialized(self, manager):
        """Test loading before initialization."""
        assert not manager.is_initialized
        with pytest.raises(ConfigurationError):
            manager.load()

    def test_create_and_load(self, manager):
        """Test creating the singleton."""
        config = manager.create(make_config())
        assert manager.is_initialized
        assert manager.load() == config

    def test_create_twice(self, manager):
        """Test that a second initialization fails and keeps the first."""
        manager.create(make_config())
        with pytest.raises(ConfigurationError):
            manager.create(make_config(owner=STRANGER))
        assert manager.load().owner == OWNER

    def test_zero_owner(self, manager):
        """Test that the zero address cannot own the bridge."""
        with pytest.raises(ValidationError):
            manager.create(make_config(owner=Address.zero()))
        assert not manager.is_initialized

    def test_address_is_derived(self):
        """Test that the config address depends only on the program."""
        assert ConfigManager(StateStore(), PROGRAM).address == ConfigManager(
            StateStore(), PROGRAM
        ).address
        assert ConfigManager(StateStore(), PROGRAM).address != ConfigManager(
            StateStore(), Address.from_int(0xCA8)
        ).address


class TestOwnership:
    """Test owner checks and ownership transfer."""

    def test_require_owner(self, manager):
        """Test that only the owner passes."""
        manager.create(make_config())
        assert manager.require_owner(OWNER).owner == OWNER
        with pytest.raises(AuthorizationError) as exc_info:
            manager.require_owner(STRANGER)
        assert exc_info.value.caller == STRANGER.to_hex()

    def test_transfer_ownership(self, manager):
        """Test handing the bridge to a new owner."""
        manager.create(make_config())
        updated = manager.transfer_ownership(OWNER, STRANGER)
        assert updated.owner == STRANGER
        assert manager.load().owner == STRANGER
        with pytest.raises(AuthorizationError):
            manager.require_owner(OWNER)

    def test_transfer_by_non_owner(self, manager):
        """Test that a stranger cannot take the bridge."""
        manager.create(make_config())
        with pytest.raises(AuthorizationError):
            manager.transfer_ownership(STRANGER, STRANGER)
        assert manager.load().owner == OWNER

    def test_transfer_to_zero(self, manager):
        """Test that ownership cannot be burned."""
        manager.create(make_config())
        with pytest.raises(ValidationError):
            manager.transfer_ownership(OWNER, Address.zero())
        assert manager.load().owner == OWNER
