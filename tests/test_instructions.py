"""
Instruction encoding for the vault and token-swap programs.
"""
import hashlib
import struct

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from spl.token.constants import TOKEN_PROGRAM_ID

from super_token.core.config import TOKEN_SWAP_PROGRAM_ID, VAULT_PROGRAM_ID, FeeSchedule
from super_token.execution.instructions import (
    CREATE_VAULT_DISCRIMINATOR,
    MINT_TO_DISCRIMINATOR,
    TokenSwapInstructionBuilder,
    VaultInstructionBuilder,
    approve_instruction,
    decode_vault_error,
    find_vault_error,
)

VAULT_PROGRAM = Pubkey.from_string(VAULT_PROGRAM_ID)
SWAP_PROGRAM = Pubkey.from_string(TOKEN_SWAP_PROGRAM_ID)


def _keys(n):
    return [Keypair().pubkey() for _ in range(n)]


def test_anchor_discriminators():
    assert CREATE_VAULT_DISCRIMINATOR == hashlib.sha256(b"global:create_vault").digest()[:8]
    assert MINT_TO_DISCRIMINATOR == hashlib.sha256(b"global:mint_to").digest()[:8]


def test_create_vault_encoding():
    mint_u, token_u, mint_y, mint_p, vault, payer = _keys(6)
    ix = VaultInstructionBuilder(VAULT_PROGRAM).create_vault(
        254, 1704067200, 1714521600,
        mint_u=mint_u, token_u=token_u, mint_y=mint_y, mint_p=mint_p, vault=vault, payer=payer,
    )
    data = bytes(ix.data)
    assert ix.program_id == VAULT_PROGRAM
    assert data[:8] == CREATE_VAULT_DISCRIMINATOR
    assert struct.unpack("<Bqq", data[8:]) == (254, 1704067200, 1714521600)

    assert len(ix.accounts) == 9
    signers = [m.pubkey for m in ix.accounts if m.is_signer]
    assert signers == [token_u, mint_y, mint_p, payer]
    assert not ix.accounts[0].is_writable          # mint_u
    assert ix.accounts[4].is_writable               # vault


def test_mint_to_encoding():
    keys = _keys(9)
    authority, vault, mint_u, mint_p, mint_y, token_p, token_y, token_u, token_u_from = keys
    ix = VaultInstructionBuilder(VAULT_PROGRAM).mint_to(
        255, 10, 20, 500,
        authority=authority, vault=vault, mint_u=mint_u, mint_p=mint_p, mint_y=mint_y,
        token_p=token_p, token_y=token_y, token_u=token_u, token_u_from=token_u_from,
    )
    data = bytes(ix.data)
    assert struct.unpack("<BqqQ", data[8:]) == (255, 10, 20, 500)
    assert [m.pubkey for m in ix.accounts] == keys + [TOKEN_PROGRAM_ID]
    assert [m.is_signer for m in ix.accounts].count(True) == 1
    assert not ix.accounts[1].is_writable           # vault is read-only


def test_swap_initialize_encoding():
    swap, authority, token_a, token_b, pool_mint, fee, dest = _keys(7)
    ix = TokenSwapInstructionBuilder(SWAP_PROGRAM).initialize(
        swap, authority, token_a, token_b, pool_mint, fee, dest, FeeSchedule(), 0
    )
    data = bytes(ix.data)
    assert len(data) == 1 + 64 + 1 + 32
    assert data[0] == 0
    assert struct.unpack_from("<8Q", data, 1) == FeeSchedule().as_tuple()
    assert data[65] == 0
    assert ix.accounts[0].is_signer


def test_swap_encoding():
    keys = _keys(11)
    ix = TokenSwapInstructionBuilder(SWAP_PROGRAM).swap(
        swap=keys[0], authority=keys[1], user_transfer_authority=keys[2], source=keys[3],
        pool_source=keys[4], pool_destination=keys[5], destination=keys[6], pool_mint=keys[7],
        fee_account=keys[8], source_mint=keys[9], destination_mint=keys[10],
        amount_in=1000, minimum_amount_out=900,
    )
    assert struct.unpack("<BQQ", bytes(ix.data)) == (1, 1000, 900)
    assert len(ix.accounts) == 14
    assert [m.pubkey for m in ix.accounts if m.is_signer] == [keys[2]]


def test_deposit_single_encoding():
    keys = _keys(9)
    ix = TokenSwapInstructionBuilder(SWAP_PROGRAM).deposit_single_token_type_exact_amount_in(
        swap=keys[0], authority=keys[1], user_transfer_authority=keys[2], source=keys[3],
        token_a=keys[4], token_b=keys[5], pool_mint=keys[6], destination=keys[7],
        source_mint=keys[8], source_token_amount=500, minimum_pool_token_amount=97,
    )
    assert struct.unpack("<BQQ", bytes(ix.data)) == (4, 500, 97)
    assert len(ix.accounts) == 11


def test_approve_instruction():
    source, delegate, owner = _keys(3)
    ix = approve_instruction(source, delegate, owner, 42)
    assert ix.program_id == TOKEN_PROGRAM_ID
    assert bytes(ix.data) == struct.pack("<BQ", 4, 42)


def test_decode_vault_error():
    assert decode_vault_error(6000) == "InsufficientUnderlyingFunds: Insufficient funds from underlying token account"
    assert decode_vault_error(304).startswith("BurnPrincipalToken")
    assert decode_vault_error(6008) is None
    assert decode_vault_error(1) is None


def test_find_vault_error():
    assert find_vault_error("Error processing Instruction 0: custom program error: 0x1770").startswith(
        "InsufficientUnderlyingFunds"
    )
    assert find_vault_error("Program log: Error: Failed to burn yield token").startswith("BurnYieldToken")
    assert find_vault_error("custom program error: 0x1") is None
    assert find_vault_error("blockhash not found") is None
