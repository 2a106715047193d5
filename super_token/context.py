"""
Client context - transport, wallet and config passed to every orchestrator.

Usage:
    async with ClientContext.open(Config.from_env()) as ctx:
        await VaultOrchestrator(ctx).create_vault(mint, start, end)
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .core.config import Config
from .core.errors import PreconditionNotMet
from .execution.transport import SolanaTransport, Transport

logger = logging.getLogger(__name__)


def load_keypair(path: str) -> Keypair:
    """
    Load a wallet keypair.

    Accepts the Solana CLI format (JSON array of 64 bytes) or a
    base58-encoded secret key string.
    """
    keypair_path = Path(path).expanduser()
    raw = keypair_path.read_text().strip()

    if raw.startswith("["):
        secret = json.loads(raw)
        return Keypair.from_bytes(bytes(secret))

    return Keypair.from_bytes(base58.b58decode(raw))


@dataclass
class ClientContext:
    """Everything one invocation needs. No global provider."""
    transport: Transport
    payer: Keypair
    config: Config = field(default_factory=Config)

    @property
    def wallet(self) -> Pubkey:
        return self.payer.pubkey()

    @classmethod
    def open(cls, config: Config) -> 'ClientContext':
        """Connect to the configured cluster with the configured wallet."""
        try:
            payer = load_keypair(config.keypair_path)
        except (OSError, ValueError) as e:
            raise PreconditionNotMet(f"cannot load wallet {config.keypair_path}: {e}") from e
        transport = SolanaTransport(
            config.rpc_url,
            commitment=config.commitment,
            skip_preflight=config.skip_preflight,
            priority_fee=config.priority_fee,
        )
        logger.info(f"Connected to {config.rpc_url} as {payer.pubkey()}")
        return cls(transport=transport, payer=payer, config=config)

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> 'ClientContext':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
