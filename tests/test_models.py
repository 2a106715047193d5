"""
Account layout decoding.
"""
import pytest
from solders.keypair import Keypair

from super_token.core.config import FeeSchedule
from super_token.core.errors import InvalidAccountData
from super_token.models import MintInfo, TokenAccount, TokenSwapState, VaultState
from tests.ledger import MintRecord, TokenRecord


def test_token_account_decode():
    address, mint, owner = (Keypair().pubkey() for _ in range(3))
    data = TokenRecord(mint=mint, owner=owner, amount=123456789).encode()
    account = TokenAccount.decode(address, data)
    assert (account.mint, account.owner, account.amount) == (mint, owner, 123456789)


def test_mint_decode():
    address, authority = Keypair().pubkey(), Keypair().pubkey()
    info = MintInfo.decode(address, MintRecord(authority=authority, decimals=6, supply=77).encode())
    assert info.mint_authority == authority
    assert (info.supply, info.decimals, info.is_initialized) == (77, 6, True)

    no_authority = MintInfo.decode(address, MintRecord(authority=None, decimals=2).encode())
    assert no_authority.mint_authority is None


def test_vault_state_rejects_foreign_account():
    keys = [Keypair().pubkey() for _ in range(5)]
    data = bytearray(VaultState(keys[0], 1, 2, *keys[1:]).encode())
    assert len(data) == VaultState.LEN
    data[0] ^= 0xFF
    with pytest.raises(InvalidAccountData):
        VaultState.decode(keys[0], bytes(data))


def test_vault_state_rejects_short_data():
    with pytest.raises(InvalidAccountData):
        VaultState.decode(Keypair().pubkey(), b"\x00" * 40)


def test_token_swap_state_layout():
    keys = [Keypair().pubkey() for _ in range(8)]
    state = TokenSwapState(keys[0], 1, True, 253, *keys[1:], fees=FeeSchedule(), curve_type=0)
    data = state.encode()
    assert len(data) == TokenSwapState.LEN
    decoded = TokenSwapState.decode(keys[0], data)
    assert decoded.token_a_mint == keys[5]
    assert decoded.pool_fee_account == keys[7]
    assert decoded.fees == FeeSchedule()
    assert decoded.bump_seed == 253


def test_token_swap_state_requires_initialized():
    with pytest.raises(InvalidAccountData):
        TokenSwapState.decode(Keypair().pubkey(), bytes(TokenSwapState.LEN))
