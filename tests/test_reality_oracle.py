import pytest

from kpitokens.core.addresses import ZERO_ADDRESS
from kpitokens.core.errors import (
    AnswerTooSoon,
    InsufficientBond,
    InvalidExpiry,
    InvalidTimeout,
    NotYetFinalized,
    QuestionAlreadyExists,
    QuestionAlreadyFinalized,
    Unauthorized,
    UnknownQuestion,
    ZeroAddressArbitrator,
)
from kpitokens.core.settlement import NO_ANSWER, YES_ANSWER
from kpitokens.oracle.reality import (
    BOOLEAN_TEMPLATE_ID,
    QUESTION_SEPARATOR,
    encode_reality_question,
    reality_question_id,
)


@pytest.fixture
def question_id(suite, accounts):
    return suite.reality.ask_question(
        accounts.alice,
        BOOLEAN_TEMPLATE_ID,
        encode_reality_question("Did it happen?"),
        accounts.arbitrator,
        100,
        suite.chain.timestamp + 50,
        0,
    )


def test_encode_question_escapes_text():
    encoded = encode_reality_question('Reach "1M" users\nby Q4?')

    assert encoded == 'Reach \\"1M\\" users\\nby Q4?' + QUESTION_SEPARATOR + "kpi" + QUESTION_SEPARATOR + "en_US"


def test_question_id_is_deterministic(suite, accounts, question_id):
    expected = reality_question_id(
        BOOLEAN_TEMPLATE_ID,
        suite.chain.timestamp + 50,
        encode_reality_question("Did it happen?"),
        accounts.arbitrator,
        100,
        accounts.alice,
        0,
    )
    assert question_id == expected
    assert len(question_id) == 32


def test_duplicate_question_is_rejected(suite, accounts, question_id):
    with pytest.raises(QuestionAlreadyExists):
        suite.reality.ask_question(
            accounts.alice,
            BOOLEAN_TEMPLATE_ID,
            encode_reality_question("Did it happen?"),
            accounts.arbitrator,
            100,
            suite.chain.timestamp + 50,
            0,
        )


def test_ask_validation(suite, accounts):
    with pytest.raises(ZeroAddressArbitrator):
        suite.reality.ask_question(accounts.alice, 0, "q", ZERO_ADDRESS, 100, 0, 0)
    with pytest.raises(InvalidTimeout):
        suite.reality.ask_question(accounts.alice, 0, "q", accounts.arbitrator, 0, 0, 0)


def test_unknown_question(suite):
    with pytest.raises(UnknownQuestion):
        suite.reality.question(b"\x01" * 32)
    assert not suite.reality.is_finalized(b"\x01" * 32)


def test_answer_before_opening(suite, accounts, question_id):
    with pytest.raises(AnswerTooSoon):
        suite.reality.submit_answer(accounts.bob, question_id, YES_ANSWER)


def test_answer_finalizes_after_timeout(suite, accounts, question_id):
    suite.chain.advance(50)
    suite.reality.submit_answer(accounts.bob, question_id, YES_ANSWER, 0, 1)

    assert not suite.reality.is_finalized(question_id)
    with pytest.raises(NotYetFinalized):
        suite.reality.result_for(question_id)

    suite.chain.advance(100)
    assert suite.reality.is_finalized(question_id)
    assert suite.reality.result_for(question_id) == YES_ANSWER


def test_new_answer_must_double_bond(suite, accounts, question_id):
    suite.chain.advance(50)
    suite.reality.submit_answer(accounts.bob, question_id, YES_ANSWER, 0, 5)

    with pytest.raises(InsufficientBond):
        suite.reality.submit_answer(accounts.carol, question_id, NO_ANSWER, 0, 9)

    suite.reality.submit_answer(accounts.carol, question_id, NO_ANSWER, 0, 10)
    assert suite.reality.question(question_id).best_answer == NO_ANSWER
    assert suite.reality.question(question_id).bond == 10


def test_max_previous_guards_against_front_running(suite, accounts, question_id):
    suite.chain.advance(50)
    suite.reality.submit_answer(accounts.bob, question_id, YES_ANSWER, 0, 8)

    with pytest.raises(InsufficientBond):
        suite.reality.submit_answer(accounts.carol, question_id, NO_ANSWER, 4, 16)


def test_later_answer_restarts_timeout(suite, accounts, question_id):
    suite.chain.advance(50)
    suite.reality.submit_answer(accounts.bob, question_id, YES_ANSWER, 0, 1)
    suite.chain.advance(90)
    suite.reality.submit_answer(accounts.carol, question_id, NO_ANSWER, 0, 2)
    suite.chain.advance(90)

    assert not suite.reality.is_finalized(question_id)
    suite.chain.advance(10)
    assert suite.reality.result_for(question_id) == NO_ANSWER


def test_no_answers_after_finalization(suite, accounts, question_id):
    suite.chain.advance(50)
    suite.reality.submit_answer(accounts.bob, question_id, YES_ANSWER, 0, 1)
    suite.chain.advance(100)

    with pytest.raises(QuestionAlreadyFinalized):
        suite.reality.submit_answer(accounts.carol, question_id, NO_ANSWER, 0, 2)


def test_arbitrator_override(suite, accounts, question_id):
    with pytest.raises(Unauthorized):
        suite.reality.submit_answer_by_arbitrator(accounts.bob, question_id, YES_ANSWER)

    suite.reality.submit_answer_by_arbitrator(accounts.arbitrator, question_id, 7)

    assert suite.reality.is_finalized(question_id)
    assert suite.reality.result_for(question_id) == (7).to_bytes(32, "big")
    with pytest.raises(QuestionAlreadyFinalized):
        suite.reality.submit_answer_by_arbitrator(accounts.arbitrator, question_id, YES_ANSWER)


def test_malformed_answer_is_rejected(suite, accounts, question_id):
    suite.chain.advance(50)
    with pytest.raises(ValueError):
        suite.reality.submit_answer(accounts.bob, question_id, b"\x01")


def test_ask_rejects_values_beyond_uint32(suite, accounts):
    with pytest.raises(InvalidTimeout):
        suite.reality.ask_question(accounts.alice, 0, "q", accounts.arbitrator, 2 ** 32, 0, 0)
    with pytest.raises(InvalidExpiry):
        suite.reality.ask_question(accounts.alice, 0, "q", accounts.arbitrator, 100, 2 ** 32, 0)
