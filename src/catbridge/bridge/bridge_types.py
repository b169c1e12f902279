"""
Cross-chain bridge types and data structures for CatBridge.

This module defines the enums, persisted records and deployment settings
shared by the bridge components.
"""

import os
from dataclasses import dataclass, field, fields
from enum import Enum, IntEnum
from typing import Any, Dict, Mapping, Optional

from ..crypto import Address, Hash, SHA256Hasher
from ..errors import ConfigurationError
from ..logging import LogConfig, LogLevel
from .wide import WideAmount

# Seeds for program-derived resources
SEED_CONFIG = b"config"
SEED_FOREIGN_EMITTER = b"foreign_emitter"
SEED_RECEIVED = b"received"
SEED_SENT = b"sent"
SEED_EMITTER = b"emitter"
SEED_VAULT = b"cat_sol_proxy"
SEED_MINT = b"spl_cat_token"

DEFAULT_PROGRAM_SEED = "catbridge"
DEFAULT_HOME_CHAIN_ID = 1
U16_MAX = (1 << 16) - 1


class TransferModeKind(Enum):
    """How the home side debits and credits the bridged asset."""

    WRAPPED = "wrapped"  # lock into a vault, release from it
    CANONICAL = "canonical"  # burn on the way out, mint on the way in


class Finality(IntEnum):
    """Consistency level requested from the messaging protocol."""

    CONFIRMED = 0
    FINALIZED = 1


class DustPolicy(Enum):
    """What to do with sub-wire-precision remainders on outbound transfers."""

    ACCEPT = "accept"  # drop the dust, report it on the receipt
    REJECT = "reject"  # refuse amounts that would lose dust


class PayloadVariant(IntEnum):
    """Wire discriminator of the payload sum type. Unused values are reserved."""

    CROSS_CHAIN_TRANSFER = 1


@dataclass(frozen=True)
class MessagingLinks:
    """Addresses of the messaging protocol accounts the bridge talks to."""

    bridge: Address
    fee_collector: Address
    sequence: Address

    def to_dict(self) -> Dict[str, str]:
        return {
            "bridge": self.bridge.to_hex(),
            "fee_collector": self.fee_collector.to_hex(),
            "sequence": self.sequence.to_hex(),
        }


@dataclass(frozen=True)
class BridgeConfig:
    """Init-once bridge configuration singleton."""

    owner: Address
    messaging: MessagingLinks
    mode: TransferModeKind
    token_mint: Address
    emitter: Address
    home_chain_id: int = DEFAULT_HOME_CHAIN_ID
    batch_id: int = 0
    finality: Finality = Finality.CONFIRMED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "owner": self.owner.to_hex(),
            "messaging": self.messaging.to_dict(),
            "mode": self.mode.value,
            "token_mint": self.token_mint.to_hex(),
            "emitter": self.emitter.to_hex(),
            "home_chain_id": self.home_chain_id,
            "batch_id": self.batch_id,
            "finality": int(self.finality),
        }


@dataclass(frozen=True)
class ForeignEmitterRecord:
    """Trusted counter-party contract for one foreign chain."""

    chain_id: int
    address: Address

    def verify(self, address: Address) -> bool:
        return self.address == address


@dataclass(frozen=True)
class ReceivedMessageRecord:
    """Permanent proof that an inbound message was processed."""

    emitter_chain: int
    sequence: int
    batch_id: int
    message_hash: Hash
    payload: bytes


@dataclass(frozen=True)
class OutboundReceipt:
    """Result of a committed ``bridge_out``."""

    sequence: int
    message_address: Address
    message_hash: Hash
    payload: "BridgePayload"
    amount_debited: int
    wire_amount: WideAmount
    dust: int
    fee_paid: int


@dataclass(frozen=True)
class InboundReceipt:
    """Result of a committed ``bridge_in``."""

    emitter_chain: int
    sequence: int
    message_hash: Hash
    destination: Address
    amount_credited: int
    received_address: Address


@dataclass
class BridgeSettings:
    """Deployment settings for a bridge instance.

    Values can be overridden from the environment with ``CATBRIDGE_*``
    variables, e.g. ``CATBRIDGE_HOME_CHAIN_ID=1``.
    """

    home_chain_id: int = DEFAULT_HOME_CHAIN_ID
    program_seed: str = DEFAULT_PROGRAM_SEED
    native_width_bits: int = 64
    default_batch_id: int = 0
    default_finality: Finality = Finality.CONFIRMED
    dust_policy: DustPolicy = DustPolicy.ACCEPT
    log_level: str = "info"
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not 0 < self.home_chain_id <= U16_MAX:
            raise ConfigurationError(
                "home_chain_id must be a non-zero u16",
                config_key="home_chain_id",
                config_value=self.home_chain_id,
            )
        if self.native_width_bits not in (8, 16, 32, 64, 128):
            raise ConfigurationError(
                "native_width_bits must be one of 8, 16, 32, 64, 128",
                config_key="native_width_bits",
                config_value=self.native_width_bits,
            )
        if not 0 <= self.default_batch_id < (1 << 32):
            raise ConfigurationError(
                "default_batch_id must be a u32",
                config_key="default_batch_id",
                config_value=self.default_batch_id,
            )
        if not self.program_seed:
            raise ConfigurationError("program_seed must not be empty", config_key="program_seed")
        try:
            LogLevel.from_name(self.log_level)
        except ValueError as e:
            raise ConfigurationError(
                str(e), config_key="log_level", config_value=self.log_level, cause=e
            ) from e

    def log_config(self) -> LogConfig:
        """Logging configuration matching ``log_level``, for :func:`setup_logging`."""
        return LogConfig(level=LogLevel.from_name(self.log_level))

    @property
    def program_id(self) -> Address:
        """Address of the bridge program, derived from ``program_seed``."""
        return Address(SHA256Hasher.hash(f"program:{self.program_seed}").value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "home_chain_id": self.home_chain_id,
            "program_seed": self.program_seed,
            "native_width_bits": self.native_width_bits,
            "default_batch_id": self.default_batch_id,
            "default_finality": self.default_finality.name.lower(),
            "dust_policy": self.dust_policy.value,
            "log_level": self.log_level,
            "extra": dict(self.extra),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BridgeSettings":
        """Build settings from a mapping; unknown keys land in ``extra``."""
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        extra: Dict[str, Any] = dict(data.get("extra", {}))

        for key, value in data.items():
            if key == "extra":
                continue
            if key not in known:
                extra[key] = value
                continue
            kwargs[key] = _coerce(key, value)

        kwargs["extra"] = extra
        return cls(**kwargs)

    @classmethod
    def from_env(
        cls, prefix: str = "CATBRIDGE_", environ: Optional[Mapping[str, str]] = None
    ) -> "BridgeSettings":
        """Build settings from ``prefix``-ed environment variables."""
        environ = os.environ if environ is None else environ
        known = {f.name for f in fields(cls)} - {"extra"}
        data = {}
        for name in known:
            raw = environ.get(prefix + name.upper())
            if raw is not None and raw != "":
                data[name] = raw
        return cls.from_dict(data)


def _coerce(key: str, value: Any) -> Any:
    try:
        if key in ("home_chain_id", "native_width_bits", "default_batch_id"):
            return int(value)
        if key == "default_finality":
            if isinstance(value, Finality):
                return value
            if isinstance(value, int) or str(value).isdigit():
                return Finality(int(value))
            return Finality[str(value).upper()]
        if key == "dust_policy":
            return value if isinstance(value, DustPolicy) else DustPolicy(str(value).lower())
        return value
    except (KeyError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid value for {key}: {value!r}",
            config_key=key,
            config_value=value,
            cause=e,
        ) from e
