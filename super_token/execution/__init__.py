"""
Execution: address derivation, instruction encoding, transaction
assembly, account provisioning and cluster transport.

Usage:
    from super_token.execution import SolanaTransport, TransactionBuilder

    transport = SolanaTransport("https://api.devnet.solana.com")
    builder = TransactionBuilder(payer)
    builder.add(ix)
    sig = await builder.submit(transport)
"""

from .pda import (
    derive_program_address,
    derive_vault_address,
    derive_pool_authority,
    create_program_address,
)
from .instructions import (
    VaultInstructionBuilder,
    TokenSwapInstructionBuilder,
    create_token_account_instructions,
    create_mint_instructions,
    approve_instruction,
    transfer_instruction,
    decode_vault_error,
    find_vault_error,
)
from .transaction import TransactionBuilder
from .transport import Transport, SolanaTransport
from .provisioner import ResourceProvisioner, select_token_account


__all__ = [
    # Addresses
    'derive_program_address',
    'derive_vault_address',
    'derive_pool_authority',
    'create_program_address',

    # Instructions
    'VaultInstructionBuilder',
    'TokenSwapInstructionBuilder',
    'create_token_account_instructions',
    'create_mint_instructions',
    'approve_instruction',
    'transfer_instruction',
    'decode_vault_error',
    'find_vault_error',

    # Transactions
    'TransactionBuilder',
    'Transport',
    'SolanaTransport',

    # Provisioning
    'ResourceProvisioner',
    'select_token_account',
]
