"""
Transport - The only code that talks to the cluster.

Transport is the contract orchestrators depend on; SolanaTransport
implements it over solana-py's AsyncClient. Tests substitute an in-memory
ledger.

Requirements:
    pip install solana solders
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException, TransactionExpiredBlockheightExceededError, UnconfirmedTxError
from solana.rpc.types import TokenAccountOpts, TxOpts
from solders.compute_budget import set_compute_unit_price
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from ..core.errors import AccountNotFound, ProtocolRejection, TransportFailure
from ..models import TokenAccount
from .instructions import find_vault_error

logger = logging.getLogger(__name__)


class Transport(ABC):
    """
    Cluster access used by the orchestrators.

    submit() raises ProtocolRejection when the cluster refuses the
    transaction and TransportFailure when it cannot be reached.
    """

    @abstractmethod
    async def submit(self, instructions: Sequence[Instruction], signers: Sequence[Keypair]) -> str:
        """Send one atomic transaction; signers[0] pays. Returns the signature."""

    @abstractmethod
    async def find_token_accounts(self, owner: Pubkey, mint: Pubkey) -> List[TokenAccount]:
        """Token accounts of `owner` for `mint`, in whatever order the node returns."""

    @abstractmethod
    async def get_account_data(self, address: Pubkey) -> Optional[bytes]:
        """Raw account data, or None when the account does not exist."""

    @abstractmethod
    async def minimum_balance_for_rent_exemption(self, size: int) -> int:
        pass

    async def fetch_account(self, address: Pubkey, layout, what: Optional[str] = None):
        """Fetch and decode with `layout.decode(address, data)`."""
        data = await self.get_account_data(address)
        if data is None:
            raise AccountNotFound(str(address), what or layout.__name__)
        return layout.decode(address, data)

    async def account_exists(self, address: Pubkey) -> bool:
        return await self.get_account_data(address) is not None

    async def close(self) -> None:
        pass


class SolanaTransport(Transport):
    """
    Transport over a Solana JSON-RPC node.

    Example:
        transport = SolanaTransport("https://api.devnet.solana.com")
        accounts = await transport.find_token_accounts(owner, mint)
        await transport.close()
    """

    def __init__(
        self,
        rpc_url: str,
        commitment: str = "confirmed",
        skip_preflight: bool = False,
        priority_fee: int = 0,
        client: Optional[AsyncClient] = None,
    ):
        self.rpc_url = rpc_url
        self.commitment = Commitment(commitment)
        self.skip_preflight = skip_preflight
        self.priority_fee = priority_fee
        self._client = client or AsyncClient(rpc_url, commitment=self.commitment)
        self._rent_cache: Dict[int, int] = {}

    async def _call(self, what: str, coro):
        try:
            return await coro
        except (
            SolanaRpcException,
            RPCException,
            UnconfirmedTxError,
            TransactionExpiredBlockheightExceededError,
            OSError,
        ) as e:
            raise TransportFailure(f"{what} failed: {e}") from e

    async def find_token_accounts(self, owner: Pubkey, mint: Pubkey) -> List[TokenAccount]:
        logger.debug(f"getTokenAccountsByOwner owner={owner} mint={mint}")
        resp = await self._call(
            "getTokenAccountsByOwner",
            self._client.get_token_accounts_by_owner(owner, TokenAccountOpts(mint=mint)),
        )
        return [
            TokenAccount.decode(keyed.pubkey, bytes(keyed.account.data))
            for keyed in resp.value
        ]

    async def get_account_data(self, address: Pubkey) -> Optional[bytes]:
        logger.debug(f"getAccountInfo {address}")
        resp = await self._call("getAccountInfo", self._client.get_account_info(address))
        if resp.value is None:
            return None
        return bytes(resp.value.data)

    async def minimum_balance_for_rent_exemption(self, size: int) -> int:
        if size not in self._rent_cache:
            resp = await self._call(
                "getMinimumBalanceForRentExemption",
                self._client.get_minimum_balance_for_rent_exemption(size),
            )
            self._rent_cache[size] = resp.value
        return self._rent_cache[size]

    async def submit(self, instructions: Sequence[Instruction], signers: Sequence[Keypair]) -> str:
        payer = signers[0]
        ixs = list(instructions)
        if self.priority_fee:
            ixs.insert(0, set_compute_unit_price(self.priority_fee))

        blockhash_resp = await self._call("getLatestBlockhash", self._client.get_latest_blockhash())
        recent_blockhash = blockhash_resp.value.blockhash

        message = Message.new_with_blockhash(ixs, payer.pubkey(), recent_blockhash)
        tx = Transaction(list(signers), message, recent_blockhash)

        try:
            resp = await self._client.send_transaction(
                tx,
                opts=TxOpts(
                    skip_preflight=self.skip_preflight,
                    preflight_commitment=self.commitment,
                ),
            )
        except RPCException as e:
            raise self._rejection(e) from e
        except (SolanaRpcException, OSError) as e:
            raise TransportFailure(f"sendTransaction failed: {e}") from e

        signature = resp.value
        confirm = await self._call(
            "confirmTransaction",
            self._client.confirm_transaction(signature, commitment=self.commitment),
        )
        status = confirm.value[0] if confirm.value else None
        if status is not None and status.err is not None:
            reason = str(status.err)
            raise ProtocolRejection(reason, program_error=find_vault_error(reason))

        return str(signature)

    @staticmethod
    def _rejection(exc: RPCException) -> ProtocolRejection:
        """Preflight failure -> ProtocolRejection with the node's message and logs."""
        err = exc.args[0] if exc.args else exc
        reason = getattr(err, "message", None) or str(err)
        data = getattr(err, "data", None)
        logs = list(getattr(data, "logs", None) or [])

        program_error = None
        for line in [reason] + logs:
            program_error = find_vault_error(line)
            if program_error:
                break

        return ProtocolRejection(reason, logs=logs, program_error=program_error)

    async def close(self) -> None:
        await self._client.close()
