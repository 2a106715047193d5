"""
Configuration - Program ids, pool parameters and cluster settings in one place.

Usage:
    from super_token.core import Config

    config = Config()
    print(config.pool.bootstrap_amount)

    # Pick up SUPER_TOKEN_* environment overrides
    config = Config.from_env()
"""
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from solders.pubkey import Pubkey


# Cluster RPC endpoints
CLUSTERS = {
    'devnet': 'https://api.devnet.solana.com',
    'testnet': 'https://api.testnet.solana.com',
    'mainnet-beta': 'https://api.mainnet-beta.solana.com',
    'localnet': 'http://127.0.0.1:8899',
}

# Deployed programs
VAULT_PROGRAM_ID = "DiyQRLEe3AgVV6TV3bGTYWZaS5TN9baFt9tXFSr3zS7e"
TOKEN_SWAP_PROGRAM_ID = "SwaPpA9LAaLfeLi3a68M4DjnLqgtticKg6CnyNwgAC8"

# The stock token-swap deployment only accepts fee accounts owned by this key
SWAP_FEE_OWNER = "HfoTxFR1Tm6kGmWgYWD6J7YHVy1UwqSULUGVLXkJqaKN"

CURVE_CONSTANT_PRODUCT = 0

ENV_PREFIX = "SUPER_TOKEN_"


@dataclass
class ProgramConfig:
    """Addresses of the external programs the client drives."""

    vault_program_id: str = VAULT_PROGRAM_ID
    swap_program_id: str = TOKEN_SWAP_PROGRAM_ID
    fee_owner: str = SWAP_FEE_OWNER

    def to_dict(self) -> Dict[str, Any]:
        return {
            'vault_program_id': self.vault_program_id,
            'swap_program_id': self.swap_program_id,
            'fee_owner': self.fee_owner,
        }


@dataclass(frozen=True)
class FeeSchedule:
    """Token-swap fee schedule, packed in this field order on chain."""

    trade_fee_numerator: int = 25
    trade_fee_denominator: int = 10000
    owner_trade_fee_numerator: int = 5
    owner_trade_fee_denominator: int = 10000
    owner_withdraw_fee_numerator: int = 0
    owner_withdraw_fee_denominator: int = 0
    host_fee_numerator: int = 20
    host_fee_denominator: int = 100

    def as_tuple(self):
        return (
            self.trade_fee_numerator,
            self.trade_fee_denominator,
            self.owner_trade_fee_numerator,
            self.owner_trade_fee_denominator,
            self.owner_withdraw_fee_numerator,
            self.owner_withdraw_fee_denominator,
            self.host_fee_numerator,
            self.host_fee_denominator,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trade_fee': f"{self.trade_fee_numerator}/{self.trade_fee_denominator}",
            'owner_trade_fee': f"{self.owner_trade_fee_numerator}/{self.owner_trade_fee_denominator}",
            'owner_withdraw_fee': f"{self.owner_withdraw_fee_numerator}/{self.owner_withdraw_fee_denominator}",
            'host_fee': f"{self.host_fee_numerator}/{self.host_fee_denominator}",
        }


@dataclass
class PoolConfig:
    """Liquidity pool creation parameters."""

    # Funded into each reserve at creation. A constant product pool
    # refuses empty reserves.
    bootstrap_amount: int = 1_000_000
    # bootstrap_amount is 1 token only for 6-decimal mints; the mint's real
    # decimals are not looked up.
    assumed_decimals: int = 6
    lp_decimals: int = 2
    curve_type: int = CURVE_CONSTANT_PRODUCT
    fees: FeeSchedule = field(default_factory=FeeSchedule)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'bootstrap_amount': self.bootstrap_amount,
            'assumed_decimals': self.assumed_decimals,
            'lp_decimals': self.lp_decimals,
            'curve_type': self.curve_type,
            'fees': self.fees.to_dict(),
        }


@dataclass
class SwapConfig:
    """Swap parameters."""

    # None sends a zero minimum output (no slippage floor).
    # 0.05 = accept at most 5% below the constant product quote.
    slippage: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'slippage': self.slippage}


@dataclass
class Config:
    """Master configuration."""

    rpc_url: str = CLUSTERS['devnet']
    keypair_path: str = "~/.config/solana/id.json"
    commitment: str = "confirmed"
    skip_preflight: bool = False
    # Micro-lamports per compute unit; 0 adds no compute budget instruction
    priority_fee: int = 0
    log_level: str = "WARNING"

    programs: ProgramConfig = field(default_factory=ProgramConfig)
    pool: PoolConfig = field(default_factory=PoolConfig)
    swap: SwapConfig = field(default_factory=SwapConfig)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Config':
        """Build a config from SUPER_TOKEN_* environment variables."""
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value.strip() if value and value.strip() else None

        config = cls()

        cluster = get("CLUSTER")
        if cluster:
            if cluster not in CLUSTERS:
                raise ValueError(
                    f"unknown cluster {cluster!r}, expected one of {', '.join(CLUSTERS)}"
                )
            config.rpc_url = CLUSTERS[cluster]

        # An explicit URL wins over the cluster name
        config.rpc_url = get("RPC_URL") or config.rpc_url
        config.keypair_path = get("KEYPAIR") or config.keypair_path
        config.commitment = get("COMMITMENT") or config.commitment
        config.log_level = (get("LOG_LEVEL") or config.log_level).upper()

        if get("SKIP_PREFLIGHT"):
            config.skip_preflight = get("SKIP_PREFLIGHT").lower() in ("1", "true", "yes")

        if get("PRIORITY_FEE"):
            config.priority_fee = int(get("PRIORITY_FEE"))

        if get("SWAP_SLIPPAGE"):
            slippage = float(get("SWAP_SLIPPAGE"))
            if not 0.0 <= slippage < 1.0:
                raise ValueError(f"swap slippage must be in [0, 1), got {slippage}")
            config.swap.slippage = slippage

        if get("VAULT_PROGRAM_ID"):
            config.programs.vault_program_id = get("VAULT_PROGRAM_ID")
        if get("SWAP_PROGRAM_ID"):
            config.programs.swap_program_id = get("SWAP_PROGRAM_ID")

        for name, value in config.programs.to_dict().items():
            try:
                Pubkey.from_string(value)
            except ValueError:
                raise ValueError(f"{name} is not a valid public key: {value!r}") from None

        return config

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rpc_url': self.rpc_url,
            'keypair_path': self.keypair_path,
            'commitment': self.commitment,
            'skip_preflight': self.skip_preflight,
            'priority_fee': self.priority_fee,
            'log_level': self.log_level,
            'programs': self.programs.to_dict(),
            'pool': self.pool.to_dict(),
            'swap': self.swap.to_dict(),
        }
