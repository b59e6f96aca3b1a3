"""Shared fixtures: deterministic accounts and a wired deployment."""

import pytest
from eth_account import Account

from fx_oracle.src.Chain import Chain
from fx_oracle.src.Deployment import deploy

ADMIN_KEY = "0x" + "11" * 32
SIGNER_A_KEY = "0x" + "22" * 32
SIGNER_B_KEY = "0x" + "33" * 32
SIGNER_C_KEY = "0x" + "44" * 32
OUTSIDER_KEY = "0x" + "55" * 32


@pytest.fixture
def admin():
    return Account.from_key(ADMIN_KEY)


@pytest.fixture
def signer_a():
    return Account.from_key(SIGNER_A_KEY)


@pytest.fixture
def signer_b():
    return Account.from_key(SIGNER_B_KEY)


@pytest.fixture
def signer_c():
    return Account.from_key(SIGNER_C_KEY)


@pytest.fixture
def outsider():
    return Account.from_key(OUTSIDER_KEY)


@pytest.fixture
def chain():
    return Chain(chain_id=421614, block_number=100, timestamp=1_700_000_000)


@pytest.fixture
def deployment(admin, signer_a, signer_b, chain):
    """Roster [A, B], quorum of two, 20-block tolerance."""
    return deploy(
        admin.address,
        chain=chain,
        signers=[signer_a.address, signer_b.address],
        min_signers=2,
        max_block_age=20,
        with_simplified_oracle=True,
    )
