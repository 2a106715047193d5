"""
Core modules: configuration, errors and AMM math.
"""
from .config import (
    Config,
    ProgramConfig,
    PoolConfig,
    SwapConfig,
    FeeSchedule,
    CLUSTERS,
)
from .errors import (
    SuperTokenError,
    PreconditionNotMet,
    TokenAccountNotFound,
    AccountNotFound,
    InvalidAccountData,
    MintPoolMismatch,
    InsufficientBootstrapBalance,
    VaultAlreadyExists,
    InvalidAmount,
    InvalidTimeWindow,
    ProtocolRejection,
    TransportFailure,
)
from .amm_math import pool_tokens_for_deposit, swap_amount_out, minimum_out_for_slippage

__all__ = [
    'Config', 'ProgramConfig', 'PoolConfig', 'SwapConfig', 'FeeSchedule', 'CLUSTERS',
    'SuperTokenError', 'PreconditionNotMet', 'TokenAccountNotFound', 'AccountNotFound',
    'InvalidAccountData', 'MintPoolMismatch', 'InsufficientBootstrapBalance', 'VaultAlreadyExists',
    'InvalidAmount', 'InvalidTimeWindow', 'ProtocolRejection', 'TransportFailure',
    'pool_tokens_for_deposit', 'swap_amount_out', 'minimum_out_for_slippage',
]
