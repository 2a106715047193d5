"""
SolanaTransport against a scripted RPC client.
"""
from types import SimpleNamespace

import pytest
from solana.rpc.core import RPCException, UnconfirmedTxError
from solders.hash import Hash
from solders.keypair import Keypair
from solders.signature import Signature

from super_token.core.errors import AccountNotFound, ProtocolRejection, TransportFailure
from super_token.execution.instructions import transfer_instruction
from super_token.execution.transport import SolanaTransport
from super_token.models import TokenAccount
from tests.ledger import TokenRecord


def _response(value):
    return SimpleNamespace(value=value)


class ScriptedClient:
    """Just the AsyncClient calls SolanaTransport makes."""

    def __init__(self, accounts=None, send_error=None, status_err=None, fail_with=None, confirm_error=None):
        self.accounts = accounts or {}
        self.send_error = send_error
        self.status_err = status_err
        self.fail_with = fail_with
        self.confirm_error = confirm_error
        self.sent = []
        self.rent_calls = 0
        self.closed = False

    async def get_account_info(self, address):
        if self.fail_with:
            raise self.fail_with
        data = self.accounts.get(address)
        return _response(None if data is None else SimpleNamespace(data=data))

    async def get_minimum_balance_for_rent_exemption(self, size):
        self.rent_calls += 1
        return _response(size * 10)

    async def get_latest_blockhash(self):
        return _response(SimpleNamespace(blockhash=Hash.default()))

    async def send_transaction(self, tx, opts=None):
        if self.send_error:
            raise self.send_error
        self.sent.append((tx, opts))
        return _response(Signature.default())

    async def confirm_transaction(self, signature, commitment=None):
        if self.confirm_error:
            raise self.confirm_error
        return _response([SimpleNamespace(err=self.status_err)])

    async def close(self):
        self.closed = True


def _transfer(payer):
    source, dest = Keypair().pubkey(), Keypair().pubkey()
    return transfer_instruction(source, dest, payer.pubkey(), 5)


async def test_fetch_account_decodes_and_reports_missing():
    address, mint, owner = (Keypair().pubkey() for _ in range(3))
    client = ScriptedClient(accounts={address: TokenRecord(mint=mint, owner=owner, amount=9).encode()})
    transport = SolanaTransport("http://localhost:8899", client=client)

    account = await transport.fetch_account(address, TokenAccount)
    assert account.amount == 9
    with pytest.raises(AccountNotFound):
        await transport.fetch_account(Keypair().pubkey(), TokenAccount, "vault")
    assert not await transport.account_exists(Keypair().pubkey())


async def test_rent_is_cached():
    client = ScriptedClient()
    transport = SolanaTransport("http://localhost:8899", client=client)
    assert await transport.minimum_balance_for_rent_exemption(165) == 1650
    assert await transport.minimum_balance_for_rent_exemption(165) == 1650
    assert client.rent_calls == 1


async def test_network_errors_become_transport_failures():
    cause = OSError("connection refused")
    transport = SolanaTransport("http://localhost:8899", client=ScriptedClient(fail_with=cause))
    with pytest.raises(TransportFailure) as exc:
        await transport.get_account_data(Keypair().pubkey())
    assert exc.value.__cause__ is cause


async def test_submit_signs_and_adds_priority_fee():
    payer = Keypair()
    client = ScriptedClient()
    transport = SolanaTransport("http://localhost:8899", priority_fee=5_000, client=client)

    signature = await transport.submit([_transfer(payer)], [payer])

    assert signature == str(Signature.default())
    tx, opts = client.sent[0]
    assert len(tx.message.instructions) == 2
    assert tx.message.account_keys[0] == payer.pubkey()
    assert opts.skip_preflight is False


async def test_preflight_rejection_keeps_reason_and_logs():
    payer = Keypair()
    error = SimpleNamespace(
        message="Transaction simulation failed: Error processing Instruction 0: custom program error: 0x1770",
        data=SimpleNamespace(logs=["Program log: Error: Insufficient funds from underlying token account"]),
    )
    transport = SolanaTransport("http://localhost:8899", client=ScriptedClient(send_error=RPCException(error)))

    with pytest.raises(ProtocolRejection) as exc:
        await transport.submit([_transfer(payer)], [payer])

    assert exc.value.reason == error.message
    assert exc.value.logs == error.data.logs
    assert exc.value.program_error.startswith("InsufficientUnderlyingFunds")


async def test_failed_confirmation_is_a_rejection():
    payer = Keypair()
    transport = SolanaTransport("http://localhost:8899", client=ScriptedClient(status_err="InstructionError(0, Custom(6004))"))
    with pytest.raises(ProtocolRejection):
        await transport.submit([_transfer(payer)], [payer])


async def test_close_closes_client():
    client = ScriptedClient()
    await SolanaTransport("http://localhost:8899", client=client).close()
    assert client.closed


async def test_confirmation_timeout_is_a_transport_failure():
    payer = Keypair()
    cause = UnconfirmedTxError("Unable to confirm transaction 5x...")
    transport = SolanaTransport("http://localhost:8899", client=ScriptedClient(confirm_error=cause))

    with pytest.raises(TransportFailure) as exc:
        await transport.submit([_transfer(payer)], [payer])

    assert exc.value.__cause__ is cause
    assert "confirmTransaction" in str(exc.value)
