"""
Models - On-chain account layouts and operation results
=======================================================

Layouts decode raw account data fetched through the transport:
- TokenAccount: SPL token account (165 bytes)
- MintInfo: SPL mint (82 bytes)
- VaultState: vault program record (Anchor, 152 bytes)
- TokenSwapState: token-swap v3 pool (324 bytes)

All integers are little-endian.
"""

import hashlib
import struct
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from solders.pubkey import Pubkey

from .core.config import FeeSchedule
from .core.errors import InvalidAccountData


def _key(data: bytes, offset: int) -> Pubkey:
    return Pubkey(data[offset:offset + 32])


def anchor_account_discriminator(name: str) -> bytes:
    """First 8 bytes of sha256("account:<Name>")"""
    return hashlib.sha256(f"account:{name}".encode()).digest()[:8]


@dataclass(frozen=True)
class DerivedAddress:
    """Program derived address and the bump that took it off the curve."""
    address: Pubkey
    bump: int

    def __iter__(self):
        return iter((self.address, self.bump))


@dataclass
class TokenAccount:
    """SPL token account: (owner, mint, balance)"""
    address: Pubkey
    mint: Pubkey
    owner: Pubkey
    amount: int

    LEN = 165

    @classmethod
    def decode(cls, address: Pubkey, data: bytes) -> 'TokenAccount':
        if len(data) < cls.LEN:
            raise InvalidAccountData(str(address), "token account", f"{len(data)} bytes")
        amount = struct.unpack_from("<Q", data, 64)[0]
        return cls(address=address, mint=_key(data, 0), owner=_key(data, 32), amount=amount)


@dataclass
class MintInfo:
    """SPL token mint"""
    address: Pubkey
    mint_authority: Optional[Pubkey]
    supply: int
    decimals: int
    is_initialized: bool

    LEN = 82

    @classmethod
    def decode(cls, address: Pubkey, data: bytes) -> 'MintInfo':
        if len(data) < cls.LEN:
            raise InvalidAccountData(str(address), "mint", f"{len(data)} bytes")
        authority_option = struct.unpack_from("<I", data, 0)[0]
        supply = struct.unpack_from("<Q", data, 36)[0]
        return cls(
            address=address,
            mint_authority=_key(data, 4) if authority_option else None,
            supply=supply,
            decimals=data[44],
            is_initialized=bool(data[45]),
        )


@dataclass
class VaultState:
    """
    Vault record written by create_vault.

    Layout after the 8-byte discriminator:
        start_time i64, end_time i64, mint_y, mint_p, mint_u, token_u
    """
    address: Pubkey
    start_time: int
    end_time: int
    mint_y: Pubkey
    mint_p: Pubkey
    mint_u: Pubkey
    token_u: Pubkey

    DISCRIMINATOR = anchor_account_discriminator("SaberVault")
    LEN = 8 + 8 + 8 + 32 * 4

    @classmethod
    def decode(cls, address: Pubkey, data: bytes) -> 'VaultState':
        if len(data) < cls.LEN:
            raise InvalidAccountData(str(address), "vault", f"{len(data)} bytes")
        if data[:8] != cls.DISCRIMINATOR:
            raise InvalidAccountData(str(address), "vault", "discriminator mismatch")
        start_time, end_time = struct.unpack_from("<qq", data, 8)
        return cls(
            address=address,
            start_time=start_time,
            end_time=end_time,
            mint_y=_key(data, 24),
            mint_p=_key(data, 56),
            mint_u=_key(data, 88),
            token_u=_key(data, 120),
        )

    def encode(self) -> bytes:
        return (
            self.DISCRIMINATOR
            + struct.pack("<qq", self.start_time, self.end_time)
            + bytes(self.mint_y)
            + bytes(self.mint_p)
            + bytes(self.mint_u)
            + bytes(self.token_u)
        )


@dataclass
class TokenSwapState:
    """
    Token-swap v3 pool state.

    Offsets:
        0   version u8
        1   is_initialized u8
        2   bump_seed u8
        3   token_program_id
        35  token_a (reserve A)
        67  token_b (reserve B)
        99  pool_mint (LP mint)
        131 token_a_mint
        163 token_b_mint
        195 pool_fee_account
        227 fees, 8 x u64
        291 curve_type u8
        292 curve parameters (32 bytes)
    """
    address: Pubkey
    version: int
    is_initialized: bool
    bump_seed: int
    token_program_id: Pubkey
    token_a: Pubkey
    token_b: Pubkey
    pool_mint: Pubkey
    token_a_mint: Pubkey
    token_b_mint: Pubkey
    pool_fee_account: Pubkey
    fees: FeeSchedule
    curve_type: int

    LEN = 324

    @classmethod
    def decode(cls, address: Pubkey, data: bytes) -> 'TokenSwapState':
        if len(data) < cls.LEN:
            raise InvalidAccountData(str(address), "token swap", f"{len(data)} bytes")
        if not data[1]:
            raise InvalidAccountData(str(address), "token swap", "not initialized")
        fees = FeeSchedule(*struct.unpack_from("<8Q", data, 227))
        return cls(
            address=address,
            version=data[0],
            is_initialized=bool(data[1]),
            bump_seed=data[2],
            token_program_id=_key(data, 3),
            token_a=_key(data, 35),
            token_b=_key(data, 67),
            pool_mint=_key(data, 99),
            token_a_mint=_key(data, 131),
            token_b_mint=_key(data, 163),
            pool_fee_account=_key(data, 195),
            fees=fees,
            curve_type=data[291],
        )

    def encode(self) -> bytes:
        return (
            bytes([self.version, int(self.is_initialized), self.bump_seed])
            + bytes(self.token_program_id)
            + bytes(self.token_a)
            + bytes(self.token_b)
            + bytes(self.pool_mint)
            + bytes(self.token_a_mint)
            + bytes(self.token_b_mint)
            + bytes(self.pool_fee_account)
            + struct.pack("<8Q", *self.fees.as_tuple())
            + bytes([self.curve_type])
            + bytes(32)
        )


# =============================================================================
# OPERATION RESULTS
# =============================================================================

@dataclass
class VaultCreation:
    vault: Pubkey
    bump: int
    mint_p: Pubkey
    mint_y: Pubkey
    token_u: Pubkey
    signature: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'vault': str(self.vault),
            'bump': self.bump,
            'principal_mint': str(self.mint_p),
            'yield_mint': str(self.mint_y),
            'underlying_account': str(self.token_u),
            'signature': self.signature,
        }


@dataclass
class VaultTransfer:
    """Result of mint or redeem. Amount moved 1:1 on all three legs."""
    vault: Pubkey
    amount: int
    underlying_account: Pubkey
    custody_account: Pubkey
    principal_account: Pubkey
    yield_account: Pubkey
    signature: str
    created_accounts: List[Pubkey] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'vault': str(self.vault),
            'amount': self.amount,
            'underlying_account': str(self.underlying_account),
            'custody_account': str(self.custody_account),
            'principal_account': str(self.principal_account),
            'yield_account': str(self.yield_account),
            'signature': self.signature,
            'created_accounts': [str(a) for a in self.created_accounts],
        }


@dataclass
class PoolCreation:
    pool: Pubkey
    authority: Pubkey
    bump: int
    token_a: Pubkey
    token_b: Pubkey
    pool_mint: Pubkey
    fee_account: Pubkey
    creator_lp_account: Pubkey
    signatures: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pool': str(self.pool),
            'authority': str(self.authority),
            'bump': self.bump,
            'token_a': str(self.token_a),
            'token_b': str(self.token_b),
            'pool_mint': str(self.pool_mint),
            'fee_account': str(self.fee_account),
            'creator_lp_account': str(self.creator_lp_account),
            'signatures': list(self.signatures),
        }


@dataclass
class SwapResult:
    pool: Pubkey
    from_mint: Pubkey
    to_mint: Pubkey
    amount_in: int
    minimum_out: int
    source_account: Pubkey
    destination_account: Pubkey
    signature: str


@dataclass
class DepositLeg:
    mint: Pubkey
    source_account: Pubkey
    reserve_balance: int
    pool_token_supply: int
    minimum_pool_tokens: int


@dataclass
class DepositResult:
    pool: Pubkey
    amount: int
    lp_account: Pubkey
    legs: List[DepositLeg]
    signature: str
