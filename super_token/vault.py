"""
Vault Orchestrator
==================

create / mint / redeem against the vault program.

A vault is identified by (underlying mint, start, end) and lives at
PDA ["vault", mint_u, str(start), str(end)]. It owns mint authority over a
principal mint and a yield mint, and custody of the deposited underlying:

    principal supply == yield supply == underlying in custody

mint moves `amount` underlying into custody and mints `amount` of each
claim; redeem burns `amount` of each claim and releases `amount` underlying.
Both legs are one instruction, so there is no half-done state.
"""

import logging
from typing import Tuple

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .context import ClientContext
from .core.errors import VaultAlreadyExists
from .core.validation import TimeLike, require_positive_amount, time_window, to_pubkey
from .execution.instructions import VaultInstructionBuilder
from .execution.pda import derive_vault_address
from .execution.provisioner import ResourceProvisioner
from .execution.transaction import TransactionBuilder
from .models import DerivedAddress, VaultCreation, VaultState, VaultTransfer

logger = logging.getLogger(__name__)


class VaultOrchestrator:
    """
    Builds and submits vault program transactions.

    Example:
        vaults = VaultOrchestrator(ctx)
        created = await vaults.create_vault(mint, "2024-01-01", "2024-05-01")
        await vaults.mint(mint, "2024-01-01", "2024-05-01", 100)
    """

    def __init__(self, ctx: ClientContext):
        self.ctx = ctx
        self.program_id = Pubkey.from_string(ctx.config.programs.vault_program_id)
        self.builder = VaultInstructionBuilder(self.program_id)
        self.provisioner = ResourceProvisioner(ctx.transport, ctx.wallet)

    def vault_address(self, underlying_mint: Pubkey, start_time: int, end_time: int) -> DerivedAddress:
        return derive_vault_address(underlying_mint, start_time, end_time, self.program_id)

    async def load_vault(
        self,
        underlying_mint: Pubkey,
        start_time: int,
        end_time: int,
    ) -> Tuple[DerivedAddress, VaultState]:
        derived = self.vault_address(underlying_mint, start_time, end_time)
        state = await self.ctx.transport.fetch_account(derived.address, VaultState, "vault")
        return derived, state

    async def create_vault(self, underlying_mint, start: TimeLike, end: TimeLike) -> VaultCreation:
        """
        Create the vault record, both claim mints and the custody account in
        one instruction. Fails if the vault PDA is already initialized.
        """
        mint_u = to_pubkey(underlying_mint)
        start_time, end_time = time_window(start, end)
        logger.info(f"Creating vault for mint {mint_u} from {start_time} to {end_time}")

        vault, bump = self.vault_address(mint_u, start_time, end_time)
        if await self.ctx.transport.account_exists(vault):
            raise VaultAlreadyExists(str(vault))

        mint_p = Keypair()
        mint_y = Keypair()
        token_u = Keypair()

        tx = TransactionBuilder(self.ctx.payer, "create_vault")
        tx.add(
            self.builder.create_vault(
                bump,
                start_time,
                end_time,
                mint_u=mint_u,
                token_u=token_u.pubkey(),
                mint_y=mint_y.pubkey(),
                mint_p=mint_p.pubkey(),
                vault=vault,
                payer=self.ctx.wallet,
            ),
            signers=[token_u, mint_p, mint_y],
        )
        signature = await tx.submit(self.ctx.transport)

        return VaultCreation(
            vault=vault,
            bump=bump,
            mint_p=mint_p.pubkey(),
            mint_y=mint_y.pubkey(),
            token_u=token_u.pubkey(),
            signature=signature,
        )

    async def mint(self, underlying_mint, start: TimeLike, end: TimeLike, amount: int) -> VaultTransfer:
        """
        Deposit `amount` underlying and receive `amount` principal + yield.

        The balance check is the program's; the client only requires the
        underlying account to exist.
        """
        amount = require_positive_amount(amount)
        mint_u = to_pubkey(underlying_mint)
        start_time, end_time = time_window(start, end, ordered=False)
        wallet = self.ctx.wallet
        logger.info(f"Minting {amount} superposition tokens")

        token_u_from = await self.provisioner.require_token_account(wallet, mint_u, "underlying token")
        derived, vault = await self.load_vault(mint_u, start_time, end_time)

        tx = TransactionBuilder(self.ctx.payer, "mint_to")
        token_p, p_created = await self.provisioner.find_or_create_token_account(tx, wallet, vault.mint_p)
        token_y, y_created = await self.provisioner.find_or_create_token_account(tx, wallet, vault.mint_y)

        tx.add(
            self.builder.mint_to(
                derived.bump,
                start_time,
                end_time,
                amount,
                authority=wallet,
                vault=derived.address,
                mint_u=mint_u,
                mint_p=vault.mint_p,
                mint_y=vault.mint_y,
                token_p=token_p,
                token_y=token_y,
                token_u=vault.token_u,
                token_u_from=token_u_from.address,
            )
        )
        signature = await tx.submit(self.ctx.transport)

        created = [acc for acc, new in ((token_p, p_created), (token_y, y_created)) if new]
        return VaultTransfer(
            vault=derived.address,
            amount=amount,
            underlying_account=token_u_from.address,
            custody_account=vault.token_u,
            principal_account=token_p,
            yield_account=token_y,
            signature=signature,
            created_accounts=created,
        )

    async def redeem(self, underlying_mint, start: TimeLike, end: TimeLike, amount: int) -> VaultTransfer:
        """
        Burn `amount` principal + `amount` yield, withdraw `amount` underlying.

        Both claim accounts must exist. An underlying account is created if
        the caller has none (claims can be bought without ever holding the
        underlying).
        """
        amount = require_positive_amount(amount)
        mint_u = to_pubkey(underlying_mint)
        start_time, end_time = time_window(start, end, ordered=False)
        wallet = self.ctx.wallet
        logger.info(f"Redeeming {amount} superposition tokens")

        derived, vault = await self.load_vault(mint_u, start_time, end_time)
        token_p = await self.provisioner.require_token_account(wallet, vault.mint_p, "principal token")
        token_y = await self.provisioner.require_token_account(wallet, vault.mint_y, "yield token")

        tx = TransactionBuilder(self.ctx.payer, "redeem")
        token_u_to, u_created = await self.provisioner.find_or_create_token_account(tx, wallet, mint_u)

        tx.add(
            self.builder.redeem(
                derived.bump,
                start_time,
                end_time,
                amount,
                authority=wallet,
                vault=derived.address,
                mint_u=vault.mint_u,
                mint_p=vault.mint_p,
                mint_y=vault.mint_y,
                token_p=token_p.address,
                token_y=token_y.address,
                token_u=vault.token_u,
                token_u_to=token_u_to,
            )
        )
        signature = await tx.submit(self.ctx.transport)

        return VaultTransfer(
            vault=derived.address,
            amount=amount,
            underlying_account=token_u_to,
            custody_account=vault.token_u,
            principal_account=token_p.address,
            yield_account=token_y.address,
            signature=signature,
            created_accounts=[token_u_to] if u_created else [],
        )
