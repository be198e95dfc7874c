import pytest

from kpitokens.core.contracts import ScalarBounds
from kpitokens.core.errors import (
    AlreadyFinalized,
    AlreadyInitialized,
    NoBalance,
    NotFinalized,
    NotYetFinalized,
)
from kpitokens.core.settlement import INVALID_ANSWER, NO_ANSWER, YES_ANSWER

UNIT = 10 ** 18
NET = 100 * UNIT - 100 * UNIT * 30 // 10_000    # 99.7 after the .3% fee


# -------------------------------------------------
# Initialization
# -------------------------------------------------

def test_initialized_state(boolean_token, suite, accounts):
    assert boolean_token.initialized
    assert boolean_token.creator == accounts.creator
    assert boolean_token.collateral_token == suite.collateral.address
    assert boolean_token.oracle == suite.reality.address
    assert boolean_token.collateral_amount == NET
    assert boolean_token.collateral_balance() == NET
    assert boolean_token.holders() == {accounts.creator: 100 * UNIT}
    assert boolean_token.is_boolean
    assert not boolean_token.finalized


def test_cannot_initialize_twice(boolean_token, accounts):
    with pytest.raises(AlreadyInitialized):
        boolean_token.initialize(
            creator=accounts.stranger,
            name="Hijack",
            symbol="HJK",
            total_supply=1,
            collateral_token=accounts.stranger,
            collateral_amount=1,
            oracle=accounts.stranger,
            question_id=b"\x00" * 32,
            bounds=ScalarBounds(),
            expiry=0,
        )
    assert boolean_token.creator == accounts.creator
    assert boolean_token.total_supply == 100 * UNIT


# -------------------------------------------------
# Finalize
# -------------------------------------------------

def test_finalize_before_answer(boolean_token):
    with pytest.raises(NotYetFinalized):
        boolean_token.finalize()


def test_finalize_before_timeout_elapses(boolean_token, suite, accounts):
    suite.chain.advance_to(boolean_token.expiry)
    suite.reality.submit_answer(accounts.reporter, boolean_token.question_id, YES_ANSWER)
    suite.chain.advance(60)

    with pytest.raises(NotYetFinalized):
        boolean_token.finalize()
    assert not boolean_token.finalized


def test_boolean_yes_keeps_everything_for_holders(boolean_token, suite, accounts, settle):
    settle(boolean_token, YES_ANSWER)

    assert boolean_token.finalize() == 1

    assert boolean_token.final_kpi_progress == 1
    assert suite.collateral.balance_of(accounts.creator) == 0
    assert boolean_token.collateral_balance() == NET


def test_boolean_no_returns_everything_to_creator(boolean_token, suite, accounts, settle):
    settle(boolean_token, NO_ANSWER)

    assert boolean_token.finalize() == 0
    assert suite.collateral.balance_of(accounts.creator) == NET
    assert boolean_token.collateral_balance() == 0


@pytest.mark.parametrize("answer", [INVALID_ANSWER, 2, (1).to_bytes(32, "little")])
def test_boolean_non_canonical_answers_count_as_missed(boolean_token, suite, accounts, settle, answer):
    settle(boolean_token, answer)

    assert boolean_token.finalize() == 0
    assert suite.collateral.balance_of(accounts.creator) == NET


def test_finalize_only_once(boolean_token, settle):
    settle(boolean_token, YES_ANSWER)
    boolean_token.finalize()

    with pytest.raises(AlreadyFinalized):
        boolean_token.finalize()


def test_finalize_emits_split(boolean_token, suite, settle):
    settle(boolean_token, YES_ANSWER)
    boolean_token.finalize()

    event = suite.chain.events[-1]
    assert event.name == "Finalized"
    assert event.emitter == boolean_token.address
    assert event.args == {"progress": 1, "creator_share": 0, "holder_share": NET}


def test_arbitrator_answer_finalizes_immediately(boolean_token, suite, accounts):
    suite.reality.submit_answer_by_arbitrator(accounts.arbitrator, boolean_token.question_id, YES_ANSWER)

    assert boolean_token.finalize() == 1


def test_scalar_half_splits_evenly(scalar_token, suite, accounts, settle):
    settle(scalar_token, 50)

    assert scalar_token.finalize() == 50
    assert suite.collateral.balance_of(accounts.creator) == NET // 2
    assert scalar_token.collateral_balance() == NET // 2


@pytest.mark.parametrize(
    "answer, progress",
    [
        (0, 0),
        (100, 100),
        (10 ** 30, 100),
        (37, 37),
        (INVALID_ANSWER, 0),
    ],
)
def test_scalar_answers_are_clamped(scalar_token, suite, accounts, settle, answer, progress):
    settle(scalar_token, answer)

    assert scalar_token.finalize() == progress
    holder_share = NET * progress // 100
    assert scalar_token.collateral_balance() == holder_share
    assert suite.collateral.balance_of(accounts.creator) == NET - holder_share


def test_scalar_with_offset_bounds(create_token, settle):
    kpi_token = create_token(bounds=ScalarBounds(10, 110))

    settle(kpi_token, 5)
    assert kpi_token.finalize() == 0

    other = create_token(bounds=ScalarBounds(10, 110))
    settle(other, 60)
    assert other.finalize() == 50


# -------------------------------------------------
# Redeem
# -------------------------------------------------

def test_redeem_before_finalize(boolean_token, accounts):
    with pytest.raises(NotFinalized):
        boolean_token.redeem(accounts.creator)


def test_redeem_without_balance(boolean_token, accounts, settle):
    settle(boolean_token, YES_ANSWER)
    boolean_token.finalize()

    with pytest.raises(NoBalance):
        boolean_token.redeem(accounts.stranger)


def test_single_holder_receives_whole_pool(boolean_token, suite, accounts, settle):
    boolean_token.transfer(accounts.creator, accounts.alice, 100 * UNIT)
    settle(boolean_token, YES_ANSWER)
    boolean_token.finalize()

    assert boolean_token.redeem(accounts.alice) == NET
    assert suite.collateral.balance_of(accounts.alice) == NET
    assert boolean_token.total_supply == 0
    assert boolean_token.collateral_balance() == 0


def test_redeem_burns_whole_balance(boolean_token, accounts, settle):
    settle(boolean_token, YES_ANSWER)
    boolean_token.finalize()
    boolean_token.redeem(accounts.creator)

    assert boolean_token.balance_of(accounts.creator) == 0
    with pytest.raises(NoBalance):
        boolean_token.redeem(accounts.creator)


def test_sequential_redemptions_are_exact(suite, accounts, create_token, settle):
    suite.factory.set_fee(accounts.deployer, 0)
    kpi_token = create_token(amount=90 * UNIT)
    kpi_token.transfer(accounts.creator, accounts.alice, 60 * UNIT)
    kpi_token.transfer(accounts.creator, accounts.bob, 30 * UNIT)
    kpi_token.transfer(accounts.creator, accounts.carol, 10 * UNIT)
    settle(kpi_token, YES_ANSWER)
    kpi_token.finalize()

    assert kpi_token.redeem(accounts.alice) == 54 * UNIT
    assert kpi_token.redeem(accounts.bob) == 27 * UNIT
    assert kpi_token.redeem(accounts.carol) == 9 * UNIT
    assert kpi_token.collateral_balance() == 0


def test_rounding_dust_goes_to_last_redeemer(suite, accounts, create_token, settle):
    kpi_token = create_token(amount=10, total_supply=3)
    kpi_token.transfer(accounts.creator, accounts.alice, 1)
    kpi_token.transfer(accounts.creator, accounts.bob, 1)
    settle(kpi_token, YES_ANSWER)
    kpi_token.finalize()

    payouts = [
        kpi_token.redeem(accounts.alice),
        kpi_token.redeem(accounts.bob),
        kpi_token.redeem(accounts.creator),
    ]

    assert payouts == [3, 3, 4]
    assert sum(payouts) == 10
    assert kpi_token.collateral_balance() == 0


def test_collateral_is_conserved_for_scalar_outcome(scalar_token, suite, accounts, settle):
    scalar_token.transfer(accounts.creator, accounts.alice, 33 * UNIT)
    scalar_token.transfer(accounts.creator, accounts.bob, 33 * UNIT)
    settle(scalar_token, 71)
    scalar_token.finalize()

    paid = sum(scalar_token.redeem(holder) for holder in (accounts.alice, accounts.bob, accounts.creator))

    fee = suite.collateral.balance_of(accounts.fee_receiver)
    creator_refund = NET - NET * 71 // 100
    assert fee + paid + creator_refund == 100 * UNIT
    assert scalar_token.collateral_balance() == 0


def test_reentrant_redeem_sees_zero_balance(boolean_token, suite, accounts, settle):
    boolean_token.transfer(accounts.creator, accounts.alice, 50 * UNIT)
    settle(boolean_token, YES_ANSWER)
    boolean_token.finalize()

    errors = []

    def reenter(token, sender, amount):
        if token != suite.collateral.address:
            return
        try:
            boolean_token.redeem(accounts.alice)
        except NoBalance as exc:
            errors.append(exc)

    suite.chain.set_receive_hook(accounts.alice, reenter)
    payout = boolean_token.redeem(accounts.alice)

    assert payout == NET // 2
    assert len(errors) == 1
    assert suite.collateral.balance_of(accounts.alice) == NET // 2
    assert boolean_token.redeem(accounts.creator) == NET - NET // 2
