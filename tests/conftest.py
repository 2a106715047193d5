"""
Shared fixtures: a funded wallet on an in-memory ledger.
"""
import pytest
from solders.keypair import Keypair

from super_token.context import ClientContext
from super_token.core.config import Config
from tests.ledger import LedgerTransport


@pytest.fixture
def payer():
    return Keypair()


@pytest.fixture
def wallet(payer):
    return payer.pubkey()


@pytest.fixture
def ledger():
    return LedgerTransport()


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def ctx(ledger, payer, config):
    return ClientContext(transport=ledger, payer=payer, config=config)


@pytest.fixture
def underlying(ledger):
    """6-decimal underlying mint."""
    return ledger.add_mint(decimals=6)


@pytest.fixture
def funded(ledger, wallet, underlying):
    """Wallet's underlying account holding 1,000 base units."""
    return ledger.add_token_account(wallet, underlying, amount=1_000)
