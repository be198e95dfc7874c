from types import SimpleNamespace

import pytest

from kpitokens.chain import Chain
from kpitokens.core.addresses import account_address
from kpitokens.core.contracts import Collateral, ScalarBounds, TokenData
from kpitokens.factory import KPITokensFactory, kpi_token_address_from_receipt
from kpitokens.kpi_token import KPIToken
from kpitokens.ledger.token import MintableERC20
from kpitokens.oracle.reality import Reality, encode_reality_question

START = 1_700_000_000
UNIT = 10 ** 18
QUESTION = encode_reality_question("Will the protocol reach 1M TVL?")


@pytest.fixture
def chain():
    """Fresh chain with a fixed clock."""
    return Chain(timestamp=START)


@pytest.fixture
def accounts():
    return SimpleNamespace(
        deployer=account_address("deployer"),
        creator=account_address("creator"),
        alice=account_address("alice"),
        bob=account_address("bob"),
        carol=account_address("carol"),
        reporter=account_address("reporter"),
        fee_receiver=account_address("fee-receiver"),
        arbitrator=account_address("arbitrator"),
        stranger=account_address("stranger"),
    )


@pytest.fixture
def suite(chain, accounts):
    """
    Collateral token, oracle, KPI token implementation and factory
    (fee 30 bps, vote timeout 120 s), all owned by the deployer.
    """
    collateral = chain.deploy(MintableERC20("Collateral", "CLT", accounts.deployer), accounts.deployer)
    reality = chain.deploy(Reality(), accounts.deployer)
    implementation = chain.deploy(KPIToken(), accounts.deployer)
    factory = KPITokensFactory.deploy(
        chain,
        accounts.deployer,
        kpi_token_implementation=implementation.address,
        oracle=reality.address,
        fee_receiver=accounts.fee_receiver,
        arbitrator=accounts.arbitrator,
        fee=30,
        vote_timeout=120,
    )
    return SimpleNamespace(
        chain=chain,
        collateral=collateral,
        reality=reality,
        implementation=implementation,
        factory=factory,
    )


@pytest.fixture
def fund(suite, accounts):
    """Mint collateral to an account and approve the factory for it."""
    def _fund(account, amount):
        suite.collateral.mint(accounts.deployer, account, amount)
        suite.collateral.approve(account, suite.factory.address, amount)

    return _fund


@pytest.fixture
def create_token(suite, accounts, fund):
    """Fund the creator and create a KPI token; returns the KPIToken."""
    def _create(
        amount=100 * UNIT,
        bounds=ScalarBounds(),
        total_supply=100 * UNIT,
        expiry_in=300,
        question=QUESTION,
        **kwargs,
    ):
        fund(accounts.creator, amount)
        receipt = suite.factory.create_kpi_token(
            accounts.creator,
            question,
            suite.chain.timestamp + expiry_in,
            Collateral(suite.collateral.address, amount),
            TokenData("KPI", "KPI", total_supply),
            bounds,
            **kwargs,
        )
        return suite.chain.contract_at(kpi_token_address_from_receipt(receipt), KPIToken)

    return _create


@pytest.fixture
def settle(suite, accounts):
    """Answer a KPI token's question at expiry and wait out the timeout."""
    def _settle(kpi_token, answer):
        suite.chain.advance_to(max(kpi_token.expiry, suite.chain.timestamp))
        suite.reality.submit_answer(accounts.reporter, kpi_token.question_id, answer, 0, 1)
        suite.chain.advance(suite.factory.vote_timeout + 1)

    return _settle


@pytest.fixture
def boolean_token(create_token):
    return create_token()


@pytest.fixture
def scalar_token(create_token):
    return create_token(bounds=ScalarBounds(0, 100))
