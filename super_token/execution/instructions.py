"""
Instruction Builders
====================

Raw instruction encoding for the two external programs plus the SPL token
and system program helpers the orchestrators need.

Vault program (Anchor):
    data = sha256("global:<ix>")[:8] + borsh args (little-endian)

Token-swap program (v3):
    data = u8 tag + packed args
"""

import hashlib
import re
import struct
from typing import List, Optional

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.system_program import CreateAccountParams, create_account
from solders.sysvar import RENT
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    ApproveParams,
    InitializeAccountParams,
    InitializeMintParams,
    TransferParams,
    approve,
    initialize_account,
    initialize_mint,
    transfer,
)

from ..core.config import FeeSchedule


def anchor_sighash(name: str) -> bytes:
    """8-byte Anchor instruction discriminator"""
    return hashlib.sha256(f"global:{name}".encode()).digest()[:8]


# Discriminators (first 8 bytes of instruction)
CREATE_VAULT_DISCRIMINATOR = anchor_sighash("create_vault")
MINT_TO_DISCRIMINATOR = anchor_sighash("mint_to")
REDEEM_DISCRIMINATOR = anchor_sighash("redeem")

# Token-swap instruction tags
SWAP_IX_INITIALIZE = 0
SWAP_IX_SWAP = 1
SWAP_IX_DEPOSIT_SINGLE = 4

# Vault program error codes, in declaration order
VAULT_ERRORS = [
    ("InsufficientUnderlyingFunds", "Insufficient funds from underlying token account"),
    ("DepositUnderlyingToken", "Failed to deposit underlying token"),
    ("MintPrincipalToken", "Failed to mint principal token"),
    ("MintYieldToken", "Failed to mint yield token"),
    ("BurnPrincipalToken", "Failed to burn principal token"),
    ("BurnYieldToken", "Failed to burn yield token"),
    ("WithdrawUnderlyingToken", "Failed to withdraw underlying token"),
    ("SetAuthorityTokenU", "Failed to set authority on underlying token account"),
]
# Anchor moved user error codes from 300 to 6000; deployed builds may use either
ANCHOR_ERROR_OFFSETS = (6000, 300)

_CUSTOM_ERROR_RE = re.compile(r"custom program error: (0x[0-9a-fA-F]+|\d+)")


def decode_vault_error(code: int) -> Optional[str]:
    """Map a custom program error code to "Name: message", if it is ours."""
    for offset in ANCHOR_ERROR_OFFSETS:
        index = code - offset
        if 0 <= index < len(VAULT_ERRORS):
            name, message = VAULT_ERRORS[index]
            return f"{name}: {message}"
    return None


def find_vault_error(text: str) -> Optional[str]:
    """Find a vault error in a node message or log line."""
    for name, message in VAULT_ERRORS:
        if message in text:
            return f"{name}: {message}"
    match = _CUSTOM_ERROR_RE.search(text)
    if match:
        return decode_vault_error(int(match.group(1), 0))
    return None


# =============================================================================
# VAULT PROGRAM
# =============================================================================

class VaultInstructionBuilder:
    """
    Build vault program instructions.

    Account layout for CREATE_VAULT (9 accounts):
        0: mint_u (read)
        1: token_u (signer, write)      new custody account
        2: mint_y (signer, write)       new yield mint
        3: mint_p (signer, write)       new principal mint
        4: vault (write)                PDA
        5: payer (signer, write)
        6: rent sysvar (read)
        7: system program (read)
        8: token program (read)

    Account layout for MINT_TO / REDEEM (10 accounts):
        0: authority (signer)
        1: vault (read)
        2: mint_u (write)
        3: mint_p (write)
        4: mint_y (write)
        5: token_p (write)
        6: token_y (write)
        7: token_u (write)              vault custody
        8: token_u_from / token_u_to (write)
        9: token program (read)
    """

    def __init__(self, program_id: Pubkey):
        self.program_id = program_id

    def create_vault(
        self,
        bump: int,
        start_time: int,
        end_time: int,
        mint_u: Pubkey,
        token_u: Pubkey,
        mint_y: Pubkey,
        mint_p: Pubkey,
        vault: Pubkey,
        payer: Pubkey,
    ) -> Instruction:
        data = CREATE_VAULT_DISCRIMINATOR + struct.pack("<Bqq", bump, start_time, end_time)
        accounts = [
            AccountMeta(mint_u, False, False),
            AccountMeta(token_u, True, True),
            AccountMeta(mint_y, True, True),
            AccountMeta(mint_p, True, True),
            AccountMeta(vault, False, True),
            AccountMeta(payer, True, True),
            AccountMeta(RENT, False, False),
            AccountMeta(SYSTEM_PROGRAM_ID, False, False),
            AccountMeta(TOKEN_PROGRAM_ID, False, False),
        ]
        return Instruction(self.program_id, data, accounts)

    def _transfer_accounts(
        self,
        authority: Pubkey,
        vault: Pubkey,
        mint_u: Pubkey,
        mint_p: Pubkey,
        mint_y: Pubkey,
        token_p: Pubkey,
        token_y: Pubkey,
        token_u: Pubkey,
        token_u_user: Pubkey,
    ) -> List[AccountMeta]:
        return [
            AccountMeta(authority, True, False),
            AccountMeta(vault, False, False),
            AccountMeta(mint_u, False, True),
            AccountMeta(mint_p, False, True),
            AccountMeta(mint_y, False, True),
            AccountMeta(token_p, False, True),
            AccountMeta(token_y, False, True),
            AccountMeta(token_u, False, True),
            AccountMeta(token_u_user, False, True),
            AccountMeta(TOKEN_PROGRAM_ID, False, False),
        ]

    def mint_to(
        self,
        bump: int,
        start_time: int,
        end_time: int,
        amount: int,
        *,
        authority: Pubkey,
        vault: Pubkey,
        mint_u: Pubkey,
        mint_p: Pubkey,
        mint_y: Pubkey,
        token_p: Pubkey,
        token_y: Pubkey,
        token_u: Pubkey,
        token_u_from: Pubkey,
    ) -> Instruction:
        data = MINT_TO_DISCRIMINATOR + struct.pack("<BqqQ", bump, start_time, end_time, amount)
        accounts = self._transfer_accounts(
            authority, vault, mint_u, mint_p, mint_y, token_p, token_y, token_u, token_u_from
        )
        return Instruction(self.program_id, data, accounts)

    def redeem(
        self,
        bump: int,
        start_time: int,
        end_time: int,
        amount: int,
        *,
        authority: Pubkey,
        vault: Pubkey,
        mint_u: Pubkey,
        mint_p: Pubkey,
        mint_y: Pubkey,
        token_p: Pubkey,
        token_y: Pubkey,
        token_u: Pubkey,
        token_u_to: Pubkey,
    ) -> Instruction:
        data = REDEEM_DISCRIMINATOR + struct.pack("<BqqQ", bump, start_time, end_time, amount)
        accounts = self._transfer_accounts(
            authority, vault, mint_u, mint_p, mint_y, token_p, token_y, token_u, token_u_to
        )
        return Instruction(self.program_id, data, accounts)


# =============================================================================
# TOKEN-SWAP PROGRAM
# =============================================================================

class TokenSwapInstructionBuilder:
    """
    Build token-swap v3 instructions.

    Account layout for INITIALIZE (8 accounts):
        0: swap (signer, write)
        1: authority (read)             PDA of [swap]
        2: token_a (read)               reserve, owned by authority
        3: token_b (read)
        4: pool_mint (write)
        5: fee account (read)
        6: destination LP account (write)
        7: token program (read)

    Account layout for SWAP (14 accounts):
        0: swap, 1: authority, 2: user transfer authority (signer)
        3: source (write), 4: pool source reserve (write),
        5: pool destination reserve (write), 6: destination (write)
        7: pool_mint (write), 8: fee account (write)
        9: source mint, 10: destination mint
        11: source token program, 12: destination token program,
        13: pool token program

    Account layout for DEPOSIT_SINGLE (11 accounts):
        0: swap, 1: authority, 2: user transfer authority (signer)
        3: source (write), 4: token_a (write), 5: token_b (write)
        6: pool_mint (write), 7: destination LP account (write)
        8: source mint, 9: source token program, 10: pool token program
    """

    def __init__(self, program_id: Pubkey):
        self.program_id = program_id

    def initialize(
        self,
        swap: Pubkey,
        authority: Pubkey,
        token_a: Pubkey,
        token_b: Pubkey,
        pool_mint: Pubkey,
        fee_account: Pubkey,
        destination: Pubkey,
        fees: FeeSchedule,
        curve_type: int,
    ) -> Instruction:
        # u8 tag, 8 x u64 fees, u8 curve type, 32 bytes curve parameters
        data = (
            struct.pack("<B", SWAP_IX_INITIALIZE)
            + struct.pack("<8Q", *fees.as_tuple())
            + struct.pack("<B", curve_type)
            + bytes(32)
        )
        accounts = [
            AccountMeta(swap, True, True),
            AccountMeta(authority, False, False),
            AccountMeta(token_a, False, False),
            AccountMeta(token_b, False, False),
            AccountMeta(pool_mint, False, True),
            AccountMeta(fee_account, False, False),
            AccountMeta(destination, False, True),
            AccountMeta(TOKEN_PROGRAM_ID, False, False),
        ]
        return Instruction(self.program_id, data, accounts)

    def swap(
        self,
        *,
        swap: Pubkey,
        authority: Pubkey,
        user_transfer_authority: Pubkey,
        source: Pubkey,
        pool_source: Pubkey,
        pool_destination: Pubkey,
        destination: Pubkey,
        pool_mint: Pubkey,
        fee_account: Pubkey,
        source_mint: Pubkey,
        destination_mint: Pubkey,
        amount_in: int,
        minimum_amount_out: int,
    ) -> Instruction:
        data = struct.pack("<BQQ", SWAP_IX_SWAP, amount_in, minimum_amount_out)
        accounts = [
            AccountMeta(swap, False, False),
            AccountMeta(authority, False, False),
            AccountMeta(user_transfer_authority, True, False),
            AccountMeta(source, False, True),
            AccountMeta(pool_source, False, True),
            AccountMeta(pool_destination, False, True),
            AccountMeta(destination, False, True),
            AccountMeta(pool_mint, False, True),
            AccountMeta(fee_account, False, True),
            AccountMeta(source_mint, False, False),
            AccountMeta(destination_mint, False, False),
            AccountMeta(TOKEN_PROGRAM_ID, False, False),
            AccountMeta(TOKEN_PROGRAM_ID, False, False),
            AccountMeta(TOKEN_PROGRAM_ID, False, False),
        ]
        return Instruction(self.program_id, data, accounts)

    def deposit_single_token_type_exact_amount_in(
        self,
        *,
        swap: Pubkey,
        authority: Pubkey,
        user_transfer_authority: Pubkey,
        source: Pubkey,
        token_a: Pubkey,
        token_b: Pubkey,
        pool_mint: Pubkey,
        destination: Pubkey,
        source_mint: Pubkey,
        source_token_amount: int,
        minimum_pool_token_amount: int,
    ) -> Instruction:
        data = struct.pack(
            "<BQQ", SWAP_IX_DEPOSIT_SINGLE, source_token_amount, minimum_pool_token_amount
        )
        accounts = [
            AccountMeta(swap, False, False),
            AccountMeta(authority, False, False),
            AccountMeta(user_transfer_authority, True, False),
            AccountMeta(source, False, True),
            AccountMeta(token_a, False, True),
            AccountMeta(token_b, False, True),
            AccountMeta(pool_mint, False, True),
            AccountMeta(destination, False, True),
            AccountMeta(source_mint, False, False),
            AccountMeta(TOKEN_PROGRAM_ID, False, False),
            AccountMeta(TOKEN_PROGRAM_ID, False, False),
        ]
        return Instruction(self.program_id, data, accounts)


# =============================================================================
# SYSTEM + SPL TOKEN HELPERS
# =============================================================================

def create_account_instruction(
    payer: Pubkey,
    new_account: Pubkey,
    lamports: int,
    space: int,
    owner: Pubkey,
) -> Instruction:
    return create_account(
        CreateAccountParams(
            from_pubkey=payer,
            to_pubkey=new_account,
            lamports=lamports,
            space=space,
            owner=owner,
        )
    )


def create_token_account_instructions(
    payer: Pubkey,
    new_account: Pubkey,
    mint: Pubkey,
    owner: Pubkey,
    lamports: int,
    space: int,
) -> List[Instruction]:
    """Allocate a token-account-sized account and bind it to (mint, owner)."""
    return [
        create_account_instruction(payer, new_account, lamports, space, TOKEN_PROGRAM_ID),
        initialize_account(
            InitializeAccountParams(
                program_id=TOKEN_PROGRAM_ID,
                account=new_account,
                mint=mint,
                owner=owner,
            )
        ),
    ]


def create_mint_instructions(
    payer: Pubkey,
    new_mint: Pubkey,
    mint_authority: Pubkey,
    decimals: int,
    lamports: int,
    space: int,
) -> List[Instruction]:
    return [
        create_account_instruction(payer, new_mint, lamports, space, TOKEN_PROGRAM_ID),
        initialize_mint(
            InitializeMintParams(
                decimals=decimals,
                program_id=TOKEN_PROGRAM_ID,
                mint=new_mint,
                mint_authority=mint_authority,
                freeze_authority=None,
            )
        ),
    ]


def approve_instruction(source: Pubkey, delegate: Pubkey, owner: Pubkey, amount: int) -> Instruction:
    """Let `delegate` move at most `amount` out of `source`."""
    return approve(
        ApproveParams(
            program_id=TOKEN_PROGRAM_ID,
            source=source,
            delegate=delegate,
            owner=owner,
            amount=amount,
        )
    )


def transfer_instruction(source: Pubkey, dest: Pubkey, owner: Pubkey, amount: int) -> Instruction:
    return transfer(
        TransferParams(
            program_id=TOKEN_PROGRAM_ID,
            source=source,
            dest=dest,
            owner=owner,
            amount=amount,
        )
    )
