"""
Pool Orchestrator
=================

create-liquidity-pool / swap / deposit against the SPL token-swap program.

Pools are constant product (k = x * y) with a fixed fee schedule. Every
creation makes a new, independent pool; pools are not deduplicated by
mint pair.

Known risks, reproduced on purpose:
- swap sends a zero minimum output unless SwapConfig.slippage is set
- deposit puts the literal `amount` into BOTH sides as two single-sided
  deposits, without rebalancing to the pool's live price. Each side's LP
  minimum is computed from a fresh read, but the second deposit is sized
  against state the first one is about to change, and an unbalanced pair
  of deposits pays the implicit swap fee on the excess
- the bootstrap quantity assumes 6-decimal mints
"""

import logging
from typing import List, Tuple

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .context import ClientContext
from .core.amm_math import minimum_out_for_slippage, pool_tokens_for_deposit, swap_amount_out
from .core.errors import (
    InsufficientBootstrapBalance,
    MintPoolMismatch,
    PreconditionNotMet,
    ProtocolRejection,
)
from .core.validation import require_positive_amount, to_pubkey
from .execution.instructions import (
    TokenSwapInstructionBuilder,
    approve_instruction,
    create_account_instruction,
    create_mint_instructions,
    transfer_instruction,
)
from .execution.pda import derive_pool_authority
from .execution.provisioner import ResourceProvisioner
from .execution.transaction import TransactionBuilder
from .models import (
    DepositLeg,
    DepositResult,
    MintInfo,
    PoolCreation,
    SwapResult,
    TokenAccount,
    TokenSwapState,
)

logger = logging.getLogger(__name__)


class PoolOrchestrator:
    """
    Builds and submits token-swap transactions.

    Example:
        pools = PoolOrchestrator(ctx)
        created = await pools.create_liquidity_pool(mint_a, mint_b)
        await pools.swap(created.pool, mint_a, 10_000)
        await pools.deposit(created.pool, 5_000)
    """

    def __init__(self, ctx: ClientContext):
        self.ctx = ctx
        self.program_id = Pubkey.from_string(ctx.config.programs.swap_program_id)
        self.builder = TokenSwapInstructionBuilder(self.program_id)
        self.provisioner = ResourceProvisioner(ctx.transport, ctx.wallet)

    async def load_pool(self, pool: Pubkey) -> TokenSwapState:
        return await self.ctx.transport.fetch_account(pool, TokenSwapState, "liquidity pool")

    def pool_authority(self, pool: Pubkey) -> Pubkey:
        return derive_pool_authority(pool, self.program_id).address

    async def _submit_stage(self, tx: TransactionBuilder) -> str:
        try:
            return await tx.submit(self.ctx.transport)
        except ProtocolRejection as e:
            e.stage = tx.label
            raise

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create_liquidity_pool(self, mint_a, mint_b) -> PoolCreation:
        """
        Create a constant product pool for (mint_a, mint_b).

        Three transactions, in order: fund the reserves, create the LP mint
        and LP accounts, create and initialize the pool. Each is atomic on its
        own; a later failure leaves the earlier stages in place.
        """
        mint_a = to_pubkey(mint_a)
        mint_b = to_pubkey(mint_b)
        if mint_a == mint_b:
            raise PreconditionNotMet(f"a pool needs two different mints, got {mint_a} twice")

        cfg = self.ctx.config
        wallet = self.ctx.wallet
        transport = self.ctx.transport
        bootstrap = cfg.pool.bootstrap_amount
        logger.info(f"Creating liquidity pool for mint {mint_a} and mint {mint_b}")

        pool = Keypair()
        authority, bump = derive_pool_authority(pool.pubkey(), self.program_id)

        # A constant product pool refuses an empty reserve, so the wallet
        # funds both sides up front.
        wallet_a = await self.provisioner.require_token_account(wallet, mint_a)
        wallet_b = await self.provisioner.require_token_account(wallet, mint_b)
        for account in (wallet_a, wallet_b):
            if account.amount < bootstrap:
                raise InsufficientBootstrapBalance(str(account.mint), account.amount, bootstrap)

        # Stage 1: reserves owned by the pool authority
        reserves = TransactionBuilder(self.ctx.payer, "pool reserves")
        token_a = await self.provisioner.create_token_account(reserves, authority, mint_a)
        reserves.add(transfer_instruction(wallet_a.address, token_a, wallet, bootstrap))
        token_b = await self.provisioner.create_token_account(reserves, authority, mint_b)
        reserves.add(transfer_instruction(wallet_b.address, token_b, wallet, bootstrap))
        reserves_sig = await self._submit_stage(reserves)

        # Stage 2: LP mint, protocol fee account, creator's LP account
        lp_accounts = TransactionBuilder(self.ctx.payer, "pool LP accounts")
        pool_mint = Keypair()
        mint_rent = await transport.minimum_balance_for_rent_exemption(MintInfo.LEN)
        lp_accounts.extend(
            create_mint_instructions(
                payer=wallet,
                new_mint=pool_mint.pubkey(),
                mint_authority=authority,
                decimals=cfg.pool.lp_decimals,
                lamports=mint_rent,
                space=MintInfo.LEN,
            ),
            signers=[pool_mint],
        )
        fee_owner = Pubkey.from_string(cfg.programs.fee_owner)
        fee_account = await self.provisioner.create_token_account(lp_accounts, fee_owner, pool_mint.pubkey())
        creator_lp = await self.provisioner.create_token_account(lp_accounts, wallet, pool_mint.pubkey())
        lp_sig = await self._submit_stage(lp_accounts)

        # Stage 3: the pool itself
        init = TransactionBuilder(self.ctx.payer, "pool initialize")
        swap_rent = await transport.minimum_balance_for_rent_exemption(TokenSwapState.LEN)
        init.add(
            create_account_instruction(wallet, pool.pubkey(), swap_rent, TokenSwapState.LEN, self.program_id),
            signers=[pool],
        )
        init.add(
            self.builder.initialize(
                swap=pool.pubkey(),
                authority=authority,
                token_a=token_a,
                token_b=token_b,
                pool_mint=pool_mint.pubkey(),
                fee_account=fee_account,
                destination=creator_lp,
                fees=cfg.pool.fees,
                curve_type=cfg.pool.curve_type,
            )
        )
        init_sig = await self._submit_stage(init)

        return PoolCreation(
            pool=pool.pubkey(),
            authority=authority,
            bump=bump,
            token_a=token_a,
            token_b=token_b,
            pool_mint=pool_mint.pubkey(),
            fee_account=fee_account,
            creator_lp_account=creator_lp,
            signatures=[reserves_sig, lp_sig, init_sig],
        )

    # =========================================================================
    # SWAP
    # =========================================================================

    def _route(self, state: TokenSwapState, from_mint: Pubkey) -> Tuple[Pubkey, Pubkey, Pubkey]:
        """(to_mint, pool source reserve, pool destination reserve)"""
        if from_mint == state.token_a_mint:
            return state.token_b_mint, state.token_a, state.token_b
        if from_mint == state.token_b_mint:
            return state.token_a_mint, state.token_b, state.token_a
        raise MintPoolMismatch(str(from_mint), str(state.address))

    async def _minimum_out(
        self,
        state: TokenSwapState,
        pool_source: Pubkey,
        pool_destination: Pubkey,
        amount: int,
    ) -> int:
        slippage = self.ctx.config.swap.slippage
        if slippage is None:
            return 0

        transport = self.ctx.transport
        reserve_in = await transport.fetch_account(pool_source, TokenAccount, "pool reserve")
        reserve_out = await transport.fetch_account(pool_destination, TokenAccount, "pool reserve")
        expected = swap_amount_out(amount, reserve_in.amount, reserve_out.amount, state.fees)
        minimum = minimum_out_for_slippage(expected, slippage)
        logger.info(f"Expected output {expected}, minimum at {slippage:.2%} slippage: {minimum}")
        return minimum

    async def swap(self, pool, from_mint, amount: int) -> SwapResult:
        """
        Swap `amount` of `from_mint` for the pool's other mint.

        A one-shot delegate is approved for exactly `amount` on the source
        account and signs the swap.
        """
        amount = require_positive_amount(amount)
        pool = to_pubkey(pool)
        from_mint = to_pubkey(from_mint)
        wallet = self.ctx.wallet
        logger.info(f"Swapping {amount} of mint {from_mint} on LP {pool}")

        state = await self.load_pool(pool)
        to_mint, pool_source, pool_destination = self._route(state, from_mint)
        source = await self.provisioner.require_token_account(wallet, from_mint)
        minimum_out = await self._minimum_out(state, pool_source, pool_destination, amount)

        tx = TransactionBuilder(self.ctx.payer, "swap")
        destination, _ = await self.provisioner.find_or_create_token_account(tx, wallet, to_mint)

        delegate = Keypair()
        tx.add(approve_instruction(source.address, delegate.pubkey(), wallet, amount), signers=[delegate])
        tx.add(
            self.builder.swap(
                swap=pool,
                authority=self.pool_authority(pool),
                user_transfer_authority=delegate.pubkey(),
                source=source.address,
                pool_source=pool_source,
                pool_destination=pool_destination,
                destination=destination,
                pool_mint=state.pool_mint,
                fee_account=state.pool_fee_account,
                source_mint=from_mint,
                destination_mint=to_mint,
                amount_in=amount,
                minimum_amount_out=minimum_out,
            )
        )
        signature = await tx.submit(self.ctx.transport)

        return SwapResult(
            pool=pool,
            from_mint=from_mint,
            to_mint=to_mint,
            amount_in=amount,
            minimum_out=minimum_out,
            source_account=source.address,
            destination_account=destination,
            signature=signature,
        )

    # =========================================================================
    # DEPOSIT
    # =========================================================================

    async def deposit(self, pool, amount: int) -> DepositResult:
        """
        Deposit `amount` of mint A and `amount` of mint B as two single-sided
        deposits in one transaction. Not rebalanced to the pool price.
        """
        amount = require_positive_amount(amount)
        pool = to_pubkey(pool)
        wallet = self.ctx.wallet
        transport = self.ctx.transport
        logger.info(f"Depositing {amount} to {pool}")

        state = await self.load_pool(pool)
        sides = [
            (state.token_a_mint, state.token_a),
            (state.token_b_mint, state.token_b),
        ]
        sources = [await self.provisioner.require_token_account(wallet, mint) for mint, _ in sides]

        tx = TransactionBuilder(self.ctx.payer, "deposit")
        lp_account, _ = await self.provisioner.find_or_create_token_account(tx, wallet, state.pool_mint)
        authority = self.pool_authority(pool)

        legs: List[DepositLeg] = []
        for (mint, reserve), source in zip(sides, sources):
            reserve_account = await transport.fetch_account(reserve, TokenAccount, "pool reserve")
            lp_mint = await transport.fetch_account(state.pool_mint, MintInfo, "LP mint")
            minimum = pool_tokens_for_deposit(
                amount,
                reserve_account.amount,
                lp_mint.supply,
                state.fees.trade_fee_numerator,
                state.fees.trade_fee_denominator,
            )
            logger.debug(
                f"Deposit leg {mint}: reserve={reserve_account.amount} "
                f"supply={lp_mint.supply} minimum={minimum}"
            )

            delegate = Keypair()
            tx.add(approve_instruction(source.address, delegate.pubkey(), wallet, amount), signers=[delegate])
            tx.add(
                self.builder.deposit_single_token_type_exact_amount_in(
                    swap=pool,
                    authority=authority,
                    user_transfer_authority=delegate.pubkey(),
                    source=source.address,
                    token_a=state.token_a,
                    token_b=state.token_b,
                    pool_mint=state.pool_mint,
                    destination=lp_account,
                    source_mint=mint,
                    source_token_amount=amount,
                    minimum_pool_token_amount=minimum,
                )
            )
            legs.append(
                DepositLeg(
                    mint=mint,
                    source_account=source.address,
                    reserve_balance=reserve_account.amount,
                    pool_token_supply=lp_mint.supply,
                    minimum_pool_tokens=minimum,
                )
            )

        signature = await tx.submit(transport)
        return DepositResult(pool=pool, amount=amount, lp_account=lp_account, legs=legs, signature=signature)
