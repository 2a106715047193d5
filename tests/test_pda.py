"""
Program derived addresses.
"""
import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from super_token.core.config import TOKEN_SWAP_PROGRAM_ID, VAULT_PROGRAM_ID
from super_token.execution.pda import (
    create_program_address,
    derive_pool_authority,
    derive_program_address,
    derive_vault_address,
    seed_bytes,
)

VAULT_PROGRAM = Pubkey.from_string(VAULT_PROGRAM_ID)
SWAP_PROGRAM = Pubkey.from_string(TOKEN_SWAP_PROGRAM_ID)


def test_vault_address_matches_runtime_derivation():
    mint = Keypair().pubkey()
    derived = derive_vault_address(mint, 1704067200, 1714521600, VAULT_PROGRAM)

    expected, bump = Pubkey.find_program_address(
        [b"vault", bytes(mint), b"1704067200", b"1714521600"], VAULT_PROGRAM
    )
    assert derived.address == expected
    assert derived.bump == bump


def test_pool_authority_matches_runtime_derivation():
    pool = Keypair().pubkey()
    address, bump = derive_pool_authority(pool, SWAP_PROGRAM)

    expected, expected_bump = Pubkey.find_program_address([bytes(pool)], SWAP_PROGRAM)
    assert address == expected
    assert bump == expected_bump


def test_derived_address_is_off_curve_and_reproducible():
    mint = Keypair().pubkey()
    derived = derive_vault_address(mint, 1, 2, VAULT_PROGRAM)

    assert not derived.address.is_on_curve()
    seeds = [b"vault", bytes(mint), b"1", b"2", bytes([derived.bump])]
    assert create_program_address(seeds, VAULT_PROGRAM) == derived.address


def test_window_is_part_of_the_identity():
    mint = Keypair().pubkey()
    a = derive_vault_address(mint, 100, 200, VAULT_PROGRAM)
    b = derive_vault_address(mint, 100, 201, VAULT_PROGRAM)
    c = derive_vault_address(Keypair().pubkey(), 100, 200, VAULT_PROGRAM)
    assert len({a.address, b.address, c.address}) == 3


def test_seed_normalization():
    key = Keypair().pubkey()
    assert seed_bytes(key) == bytes(key)
    assert seed_bytes(1704067200) == b"1704067200"
    assert seed_bytes(-5) == b"-5"
    assert seed_bytes("vault") == b"vault"
    assert seed_bytes(b"\x01\x02") == b"\x01\x02"
    with pytest.raises(TypeError):
        seed_bytes(True)


def test_seed_limits():
    with pytest.raises(ValueError):
        derive_program_address([b"x" * 33], VAULT_PROGRAM)
    with pytest.raises(ValueError):
        derive_program_address([b"x"] * 16, VAULT_PROGRAM)
