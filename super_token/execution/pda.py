"""
Program Derived Addresses
=========================

address = sha256(seeds || bump || program_id || "ProgramDerivedAddress")

The bump walks 255 -> 0 and the first candidate that is NOT a valid
ed25519 point wins, so no private key can exist for the address.
The vault program recomputes the same value from its stored seeds and
rejects the instruction ("A seeds constraint was violated") on mismatch.
"""

import hashlib
from typing import Iterable, List, Union

from solders.pubkey import Pubkey

from ..models import DerivedAddress

PDA_MARKER = b"ProgramDerivedAddress"
MAX_SEEDS = 16
MAX_SEED_LEN = 32

VAULT_SEED = "vault"

Seed = Union[bytes, str, int, Pubkey]


def seed_bytes(seed: Seed) -> bytes:
    """
    Normalize a seed to bytes.

    Strings are utf-8, keys are their 32 raw bytes, and integers are their
    decimal text (the vault program seeds with `start_time.to_string()`).
    """
    if isinstance(seed, Pubkey):
        return bytes(seed)
    if isinstance(seed, bool):
        raise TypeError("bool is not a valid seed")
    if isinstance(seed, int):
        return str(seed).encode()
    if isinstance(seed, str):
        return seed.encode()
    return bytes(seed)


def _check_seeds(seeds: List[bytes]) -> None:
    if len(seeds) > MAX_SEEDS:
        raise ValueError(f"at most {MAX_SEEDS} seeds allowed, got {len(seeds)}")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise ValueError(f"seed longer than {MAX_SEED_LEN} bytes: {seed!r}")


def _candidate(seeds: List[bytes], program_id: Pubkey) -> Pubkey:
    hash_input = b"".join(seeds) + bytes(program_id) + PDA_MARKER
    return Pubkey(hashlib.sha256(hash_input).digest())


def create_program_address(seeds: List[bytes], program_id: Pubkey) -> Pubkey:
    """Hash one candidate. Raises ValueError when it lands on the curve."""
    _check_seeds(seeds)
    candidate = _candidate(seeds, program_id)
    if candidate.is_on_curve():
        raise ValueError("invalid seeds, address must fall off the curve")
    return candidate


def derive_program_address(seeds: Iterable[Seed], program_id: Pubkey) -> DerivedAddress:
    """
    Derive Program Derived Address (PDA).

    Args:
        seeds: Seeds without the bump
        program_id: Owning program

    Returns:
        DerivedAddress(address, bump)
    """
    raw = [seed_bytes(s) for s in seeds]
    # The bump itself is a seed
    _check_seeds(raw + [b"\x00"])

    for bump in range(255, -1, -1):
        address = _candidate(raw + [bytes([bump])], program_id)
        if not address.is_on_curve():
            return DerivedAddress(address, bump)

    raise ValueError("Could not find valid PDA")


def derive_vault_address(
    underlying_mint: Pubkey,
    start_time: int,
    end_time: int,
    program_id: Pubkey,
) -> DerivedAddress:
    """Vault PDA: ["vault", mint_u, str(start), str(end)]"""
    return derive_program_address(
        [VAULT_SEED, underlying_mint, start_time, end_time],
        program_id,
    )


def derive_pool_authority(pool: Pubkey, swap_program_id: Pubkey) -> DerivedAddress:
    """Swap authority PDA: [pool key]"""
    return derive_program_address([pool], swap_program_id)
