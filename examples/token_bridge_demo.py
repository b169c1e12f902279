#!/usr/bin/env python3
"""
Token Bridge Demo for CatBridge

This demo wires two in-process chains and moves a token between them:
- Chain 1 bridges an existing 9-decimal token through a vault (wrapped mode)
- Chain 2 mints its own 8-decimal representation (canonical mode)
- Each bridge trusts only the other's emitter
- Messages are relayed by hand, standing in for the attestation network

Run it to see dust handling, replay protection and the bridge status report.
"""

from catbridge.bridge import BridgeSettings, LocalChain, TransferModeKind
from catbridge.crypto import Address
from catbridge.errors import ReplayError
from catbridge.logging import LogConfig, LogLevel, get_logger, setup_logging

logger = get_logger("catbridge.demo")

MINT = Address.from_int(0x70C)
ISSUER = Address.from_int(0x155)
OWNER = Address.from_int(0x0E)
ALICE = Address.from_int(0xA11CE)
BOB = Address.from_int(0xB0B)
RELAYER = Address.from_int(0x4E1A)


class TokenBridgeDemo:
    """Demonstrates a round trip across a wrapped and a canonical bridge."""

    def __init__(self):
        self.home = LocalChain.create(
            BridgeSettings(home_chain_id=1, program_seed="demo-home"), fee=100
        )
        self.remote = LocalChain.create(
            BridgeSettings(home_chain_id=2, program_seed="demo-remote"), fee=100
        )

    def setup_chains(self) -> None:
        """Create the token, initialize both bridges and register emitters."""
        logger.info("Setting up chains...")

        self.home.tokens.create_mint(MINT, 9, ISSUER)
        account = self.home.tokens.get_or_create_associated_account(ALICE, MINT)
        self.home.tokens.mint(MINT, account.address, 10_000_000_000, authority=ISSUER)
        self.home.fund(ALICE, 10_000)
        self.remote.fund(BOB, 10_000)

        self.home.engine.initialize(OWNER, TransferModeKind.WRAPPED, token_mint=MINT)
        self.remote.engine.initialize(OWNER, TransferModeKind.CANONICAL, decimals=8)

        self.home.engine.register_emitter(OWNER, 2, self.remote.engine.emitter_address)
        self.remote.engine.register_emitter(OWNER, 1, self.home.engine.emitter_address)

        logger.info(f"  Alice holds {self.home.token_balance(ALICE)} units on chain 1")

    def demonstrate_transfer_out(self):
        """Lock tokens on chain 1 and redeem them on chain 2."""
        logger.info("\nBridging 15.000000005 tokens from chain 1 to chain 2...")
        remote_mint = self.remote.engine.config.load().token_mint

        receipt = self.home.engine.bridge_out(ALICE, 15_000_000_005, 2, BOB, remote_mint)
        logger.info(
            f"  Published sequence {receipt.sequence}: wire amount {receipt.wire_amount}, "
            f"dust {receipt.dust} stays in the vault"
        )

        message = self.remote.accept(self.home.messaging.get_message(receipt.message_address))
        redeemed = self.remote.engine.bridge_in(RELAYER, message.hash)
        logger.info(f"  Bob received {redeemed.amount_credited} units on chain 2")
        return message

    def demonstrate_replay_protection(self, message) -> None:
        """Try to redeem the same message twice."""
        logger.info("\nRedeeming the same message again...")
        try:
            self.remote.engine.bridge_in(RELAYER, message.hash)
        except ReplayError as e:
            logger.info(f"  Refused: {e.message}")

    def demonstrate_transfer_back(self) -> None:
        """Burn on chain 2 and release from the vault on chain 1."""
        logger.info("\nBridging everything back to chain 1...")
        amount = self.remote.token_balance(BOB)

        receipt = self.remote.engine.bridge_out(BOB, amount, 1, ALICE)
        message = self.home.accept(self.remote.messaging.get_message(receipt.message_address))
        redeemed = self.home.engine.bridge_in(RELAYER, message.hash)

        logger.info(f"  Alice received {redeemed.amount_credited} units on chain 1")
        logger.info(f"  Alice now holds {self.home.token_balance(ALICE)} units")

    def show_bridge_status(self) -> None:
        """Print both bridges' status reports."""
        logger.info("\nBridge status:")
        for name, chain in (("chain 1", self.home), ("chain 2", self.remote)):
            status = chain.engine.get_bridge_status()
            metrics = status["metrics"]
            logger.info(
                f"  {name}: mode={status['config']['mode']}, "
                f"out={metrics['outbound_transfers']}, in={metrics['inbound_transfers']}, "
                f"dust={metrics['dust_dropped']}, next sequence={status['next_sequence']}"
            )
        logger.info(f"  vault on chain 1: {self.home.engine.get_bridge_status()['vault_balance']}")

    def run_demo(self) -> None:
        """Run the complete demo."""
        logger.info("CATBRIDGE TOKEN BRIDGE DEMO")
        logger.info("=" * 60)

        self.setup_chains()
        message = self.demonstrate_transfer_out()
        self.demonstrate_replay_protection(message)
        self.demonstrate_transfer_back()
        self.show_bridge_status()

        logger.info("=" * 60)


def main():
    """Main demo function."""
    setup_logging(LogConfig(level=LogLevel.INFO))
    TokenBridgeDemo().run_demo()


if __name__ == "__main__":
    main()
