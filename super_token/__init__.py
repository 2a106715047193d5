"""
super-token - Principal/Yield Vault Client
==========================================

Client for a vault program that splits an SPL token into a principal claim
and a yield claim over a fixed time window, plus constant product pools on
the SPL token-swap program to trade those claims.

Usage:
    from super_token import ClientContext, Config, VaultOrchestrator

    async with ClientContext.open(Config.from_env()) as ctx:
        vaults = VaultOrchestrator(ctx)
        await vaults.create_vault(mint, "2024-01-01", "2024-05-01")
        await vaults.mint(mint, "2024-01-01", "2024-05-01", 100)

Invariant kept by the vault program, per vault:
    principal supply == yield supply == underlying in custody
"""

__version__ = "0.1.0"

# Context
from .context import ClientContext, load_keypair

# Configuration
from .core.config import Config, ProgramConfig, PoolConfig, SwapConfig, FeeSchedule

# Errors
from .core.errors import (
    SuperTokenError,
    PreconditionNotMet,
    ProtocolRejection,
    TransportFailure,
)

# Orchestrators
from .vault import VaultOrchestrator
from .pool import PoolOrchestrator

# Data models
from .models import (
    DerivedAddress,
    TokenAccount,
    MintInfo,
    VaultState,
    TokenSwapState,
    VaultCreation,
    VaultTransfer,
    PoolCreation,
    SwapResult,
    DepositResult,
)


__all__ = [
    # Context
    'ClientContext',
    'load_keypair',

    # Configuration
    'Config',
    'ProgramConfig',
    'PoolConfig',
    'SwapConfig',
    'FeeSchedule',

    # Errors
    'SuperTokenError',
    'PreconditionNotMet',
    'ProtocolRejection',
    'TransportFailure',

    # Orchestrators
    'VaultOrchestrator',
    'PoolOrchestrator',

    # Models
    'DerivedAddress',
    'TokenAccount',
    'MintInfo',
    'VaultState',
    'TokenSwapState',
    'VaultCreation',
    'VaultTransfer',
    'PoolCreation',
    'SwapResult',
    'DepositResult',
]
