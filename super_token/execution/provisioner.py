"""
Resource Provisioner
====================

Find-or-create for token accounts.

If the owner already holds one or more accounts for a mint, the one with the
lexicographically smallest base58 address is used, whatever order the RPC
node returned them in. Otherwise a fresh keypair is generated and the
create + initialize pair is appended to the caller's TransactionBuilder so
it commits atomically with the primary instruction.
"""

import logging
from typing import List, Optional, Tuple

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ..core.errors import TokenAccountNotFound
from ..models import TokenAccount
from .instructions import create_token_account_instructions
from .transaction import TransactionBuilder
from .transport import Transport

logger = logging.getLogger(__name__)


def select_token_account(accounts: List[TokenAccount]) -> Optional[TokenAccount]:
    """Deterministic pick: smallest base58 address."""
    if not accounts:
        return None
    return min(accounts, key=lambda acc: str(acc.address))


class ResourceProvisioner:
    """
    Idempotent token account provisioning.

    Example:
        provisioner = ResourceProvisioner(transport, payer.pubkey())
        builder = TransactionBuilder(payer)
        account, created = await provisioner.find_or_create_token_account(
            builder, owner, mint
        )
    """

    def __init__(self, transport: Transport, payer: Pubkey):
        self.transport = transport
        self.payer = payer

    async def find_token_account(self, owner: Pubkey, mint: Pubkey) -> Optional[TokenAccount]:
        accounts = await self.transport.find_token_accounts(owner, mint)
        chosen = select_token_account(accounts)
        if chosen is not None and len(accounts) > 1:
            logger.debug(
                f"{len(accounts)} accounts for mint {mint}, using {chosen.address}"
            )
        return chosen

    async def require_token_account(
        self,
        owner: Pubkey,
        mint: Pubkey,
        role: str = "token",
    ) -> TokenAccount:
        """Existing account or TokenAccountNotFound. Never creates."""
        account = await self.find_token_account(owner, mint)
        if account is None:
            raise TokenAccountNotFound(str(mint), str(owner), role)
        return account

    async def create_token_account(
        self,
        builder: TransactionBuilder,
        owner: Pubkey,
        mint: Pubkey,
    ) -> Pubkey:
        """Schedule creation of a new token account unconditionally."""
        new_account = Keypair()
        lamports = await self.transport.minimum_balance_for_rent_exemption(TokenAccount.LEN)
        builder.extend(
            create_token_account_instructions(
                payer=self.payer,
                new_account=new_account.pubkey(),
                mint=mint,
                owner=owner,
                lamports=lamports,
                space=TokenAccount.LEN,
            ),
            signers=[new_account],
        )
        logger.debug(f"Scheduled token account {new_account.pubkey()} for mint {mint}")
        return new_account.pubkey()

    async def find_or_create_token_account(
        self,
        builder: TransactionBuilder,
        owner: Pubkey,
        mint: Pubkey,
    ) -> Tuple[Pubkey, bool]:
        """
        Returns:
            (address, created) where created is True when the account is new
            in this builder.
        """
        pending = builder.pending_accounts.get((owner, mint))
        if pending is not None:
            return pending, False

        existing = await self.find_token_account(owner, mint)
        if existing is not None:
            return existing.address, False

        address = await self.create_token_account(builder, owner, mint)
        builder.pending_accounts[(owner, mint)] = address
        return address, True
