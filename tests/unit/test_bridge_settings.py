"""Tests for bridge deployment settings."""

import pytest

from catbridge.bridge import BridgeSettings, DustPolicy, Finality
from catbridge.errors import ConfigurationError
from catbridge.logging import LogLevel


class TestBridgeSettings:
    """Test BridgeSettings."""

    def test_defaults(self):
        """Test the default deployment."""
        settings = BridgeSettings()
        assert settings.home_chain_id == 1
        assert settings.native_width_bits == 64
        assert settings.default_finality is Finality.CONFIRMED
        assert settings.dust_policy is DustPolicy.ACCEPT

    def test_program_id_follows_seed(self):
        """Test that distinct seeds give distinct programs."""
        assert BridgeSettings().program_id == BridgeSettings().program_id
        assert BridgeSettings(program_seed="a").program_id != BridgeSettings(program_seed="b").program_id

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"home_chain_id": 0},
            {"home_chain_id": 1 << 16},
            {"native_width_bits": 48},
            {"default_batch_id": -1},
            {"program_seed": ""},
            {"log_level": "loud"},
        ],
    )
    def test_invalid(self, kwargs):
        """Test that invalid settings are refused at construction."""
        with pytest.raises(ConfigurationError) as info:
            BridgeSettings(**kwargs)
        assert info.value.config_key == next(iter(kwargs))

    def test_from_dict(self):
        """Test coercion of string values and collection of unknown keys."""
        settings = BridgeSettings.from_dict(
            {
                "home_chain_id": "7",
                "default_finality": "finalized",
                "dust_policy": "REJECT",
                "region": "eu",
            }
        )
        assert settings.home_chain_id == 7
        assert settings.default_finality is Finality.FINALIZED
        assert settings.dust_policy is DustPolicy.REJECT
        assert settings.extra == {"region": "eu"}

    def test_from_dict_numeric_finality(self):
        """Test finality given as its wire value."""
        assert BridgeSettings.from_dict({"default_finality": "1"}).default_finality is Finality.FINALIZED

    def test_from_dict_bad_value(self):
        """Test that unparseable values raise configuration errors."""
        with pytest.raises(ConfigurationError):
            BridgeSettings.from_dict({"home_chain_id": "one"})
        with pytest.raises(ConfigurationError):
            BridgeSettings.from_dict({"dust_policy": "maybe"})

    def test_from_env(self):
        """Test reading prefixed variables and ignoring empty ones."""
        settings = BridgeSettings.from_env(
            environ={
                "CATBRIDGE_HOME_CHAIN_ID": "2",
                "CATBRIDGE_LOG_LEVEL": "debug",
                "CATBRIDGE_PROGRAM_SEED": "",
                "OTHER_HOME_CHAIN_ID": "9",
            }
        )
        assert settings.home_chain_id == 2
        assert settings.log_level == "debug"
        assert settings.program_seed == "catbridge"

    def test_to_dict_round_trip(self):
        """Test that a dictionary form rebuilds the same settings."""
        settings = BridgeSettings(home_chain_id=5, dust_policy=DustPolicy.REJECT, extra={"a": 1})
        assert BridgeSettings.from_dict(settings.to_dict()) == settings

    def test_log_config(self):
        """Test the logging configuration derived from the settings."""
        config = BridgeSettings(log_level="WARNING").log_config()
        assert config.level is LogLevel.WARNING
