"""
Host collaborators for CatBridge.

Interfaces for the token ledger, the native-currency rails and the attested
messaging protocol, plus in-memory implementations backed by a
:class:`~catbridge.storage.StateStore`.
"""

from .messaging import (
    CORE_BRIDGE_PROGRAM_ID,
    InMemoryMessagingProtocol,
    MessagingProtocol,
    PostedMessage,
    SequenceReservation,
    message_hash,
)
from .native import InMemoryNativeLedger, NativeLedger
from .token_ledger import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    InMemoryTokenLedger,
    TokenAccount,
    TokenLedger,
    TokenMint,
    associated_token_address,
)

__all__ = [
    # Messaging
    "MessagingProtocol",
    "InMemoryMessagingProtocol",
    "PostedMessage",
    "SequenceReservation",
    "message_hash",
    "CORE_BRIDGE_PROGRAM_ID",
    # Native currency
    "NativeLedger",
    "InMemoryNativeLedger",
    # Tokens
    "TokenLedger",
    "InMemoryTokenLedger",
    "TokenMint",
    "TokenAccount",
    "associated_token_address",
    "TOKEN_PROGRAM_ID",
    "ASSOCIATED_TOKEN_PROGRAM_ID",
]
