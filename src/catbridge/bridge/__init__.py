"""
Token bridge core for CatBridge.

This package provides the single-asset bridge between a home ledger and
foreign chains:
- Wire payload codec and decimal normalization
- Foreign emitter registry and replay protection
- Lock/release and burn/mint transfer modes
- The transfer engine and its configuration
"""

from .bridge_types import (
    BridgeConfig,
    BridgeSettings,
    DustPolicy,
    Finality,
    ForeignEmitterRecord,
    InboundReceipt,
    MessagingLinks,
    OutboundReceipt,
    PayloadVariant,
    ReceivedMessageRecord,
    TransferModeKind,
)
from .codec import PAYLOAD_SIZE, BridgePayload, decode_payload, encode_payload
from .config import ConfigManager
from .engine import BridgeMetrics, TransferEngine
from .local import LocalChain
from .modes import CanonicalMode, TransferMode, WrappedMode, mode_for
from .normalizer import WIRE_DECIMALS, denormalize, dust, normalize, truncate
from .registry import EmitterRegistry
from .replay import ReplayLedger
from .wide import WIDE_MAX, WideAmount

__all__ = [
    # Types
    "TransferModeKind",
    "Finality",
    "DustPolicy",
    "PayloadVariant",
    "BridgeConfig",
    "BridgeSettings",
    "MessagingLinks",
    "ForeignEmitterRecord",
    "ReceivedMessageRecord",
    "OutboundReceipt",
    "InboundReceipt",
    # Wire format
    "WideAmount",
    "WIDE_MAX",
    "BridgePayload",
    "PAYLOAD_SIZE",
    "encode_payload",
    "decode_payload",
    "WIRE_DECIMALS",
    "normalize",
    "denormalize",
    "dust",
    "truncate",
    # State
    "ConfigManager",
    "EmitterRegistry",
    "ReplayLedger",
    # Transfers
    "TransferMode",
    "WrappedMode",
    "CanonicalMode",
    "mode_for",
    "TransferEngine",
    "BridgeMetrics",
    "LocalChain",
]
