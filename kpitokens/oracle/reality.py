"""
Reality-style question arbitration.

Minimal, deterministic rendition of the external dispute-resolution
protocol the KPI tokens read from:

- questions open for answers at `opening_ts`
- every new answer must at least double the previous bond
- a question finalizes `timeout` seconds after its latest answer, or
  immediately when the arbitrator answers
- bonds are bookkeeping only; no value moves
"""

import hashlib
import json
import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional, Union

from kpitokens.chain import Contract
from kpitokens.core.addresses import address_bytes, is_zero_address, to_address
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
from kpitokens.core.settlement import ANSWER_SIZE, MAX_UINT32, encode_answer
from kpitokens.oracle.base import OracleAdapter

logger = logging.getLogger(__name__)

QUESTION_SEPARATOR = "␟"

BOOLEAN_TEMPLATE_ID = 0
UINT_TEMPLATE_ID = 1


def encode_reality_question(text: str, category: str = "kpi", language: str = "en_US") -> str:
    """JSON-escape the text and append category and language fields."""
    escaped = json.dumps(text, ensure_ascii=False)[1:-1]
    return QUESTION_SEPARATOR.join([escaped, category, language])


def reality_question_id(
    template_id: int,
    opening_ts: int,
    question: str,
    arbitrator: str,
    timeout: int,
    asker: str,
    nonce: int,
) -> bytes:
    content_hash = hashlib.sha256(
        template_id.to_bytes(32, "big")
        + opening_ts.to_bytes(4, "big")
        + question.encode("utf-8")
    ).digest()
    return hashlib.sha256(
        content_hash
        + address_bytes(arbitrator)
        + timeout.to_bytes(4, "big")
        + address_bytes(asker)
        + nonce.to_bytes(32, "big")
    ).digest()


@dataclass
class Question:
    template_id: int
    question: str
    arbitrator: str
    timeout: int
    opening_ts: int
    best_answer: Optional[bytes] = None
    bond: int = 0
    finalize_ts: int = 0


class Reality(Contract, OracleAdapter):
    def __init__(self):
        self._questions: Dict[bytes, Question] = {}

    # -------------------------------------------------
    # QUESTIONS
    # -------------------------------------------------
    def ask_question(
        self,
        caller: str,
        template_id: int,
        question: str,
        arbitrator: str,
        timeout: int,
        opening_ts: int,
        nonce: int,
    ) -> bytes:
        with self.chain.transaction():
            if is_zero_address(arbitrator):
                raise ZeroAddressArbitrator("Questions need an arbitrator")
            if not 0 < timeout <= MAX_UINT32:
                raise InvalidTimeout(f"Answer timeout must be in (0, {MAX_UINT32}], got {timeout}")
            if not 0 <= opening_ts <= MAX_UINT32:
                raise InvalidExpiry(f"Opening time {opening_ts} does not fit a uint32 timestamp")

            question_id = reality_question_id(
                template_id, opening_ts, question, arbitrator, timeout, caller, nonce
            )
            if question_id in self._questions:
                raise QuestionAlreadyExists(f"Question {question_id.hex()} already asked")

            self._questions[question_id] = Question(
                template_id=template_id,
                question=question,
                arbitrator=to_address(arbitrator),
                timeout=timeout,
                opening_ts=opening_ts,
            )
            self._emit(
                "LogNewQuestion",
                question_id=question_id,
                asker=to_address(caller),
                template_id=template_id,
                question=question,
                opening_ts=opening_ts,
                timeout=timeout,
            )

        logger.info("Question %s asked (opens at %s)", question_id.hex()[:12], opening_ts)
        return question_id

    def question(self, question_id: bytes) -> Question:
        return replace(self._question(question_id))

    def _question(self, question_id: bytes) -> Question:
        stored = self._questions.get(question_id)
        if stored is None:
            raise UnknownQuestion(f"Unknown question {bytes(question_id).hex()}")
        return stored

    # -------------------------------------------------
    # ANSWERS
    # -------------------------------------------------
    def submit_answer(
        self,
        caller: str,
        question_id: bytes,
        answer: Union[bytes, int],
        max_previous: int = 0,
        bond: int = 1,
    ) -> None:
        with self.chain.transaction():
            stored = self._question(question_id)
            if self.is_finalized(question_id):
                raise QuestionAlreadyFinalized("Question is already finalized")
            if self.chain.timestamp < stored.opening_ts:
                raise AnswerTooSoon(
                    f"Question opens at {stored.opening_ts}, now {self.chain.timestamp}"
                )
            if max_previous and stored.bond > max_previous:
                raise InsufficientBond(
                    f"Current bond {stored.bond} exceeds max_previous {max_previous}"
                )
            if bond <= 0 or bond < 2 * stored.bond:
                raise InsufficientBond(
                    f"Bond {bond} must be positive and at least double {stored.bond}"
                )

            stored.best_answer = self._normalize(answer)
            stored.bond = bond
            stored.finalize_ts = self.chain.timestamp + stored.timeout
            self._emit(
                "LogNewAnswer",
                question_id=question_id,
                answer=stored.best_answer,
                user=to_address(caller),
                bond=bond,
            )

    def submit_answer_by_arbitrator(
        self, caller: str, question_id: bytes, answer: Union[bytes, int]
    ) -> None:
        with self.chain.transaction():
            stored = self._question(question_id)
            if to_address(caller) != stored.arbitrator:
                raise Unauthorized(f"{caller} is not the arbitrator of this question")
            if self.is_finalized(question_id):
                raise QuestionAlreadyFinalized("Question is already finalized")

            stored.best_answer = self._normalize(answer)
            stored.finalize_ts = self.chain.timestamp
            self._emit(
                "LogFinalize",
                question_id=question_id,
                answer=stored.best_answer,
            )

    @staticmethod
    def _normalize(answer: Union[bytes, int]) -> bytes:
        if isinstance(answer, int):
            return encode_answer(answer)
        answer = bytes(answer)
        if len(answer) != ANSWER_SIZE:
            raise ValueError(f"Answers must be {ANSWER_SIZE} bytes, got {len(answer)}")
        return answer

    # -------------------------------------------------
    # ORACLE ADAPTER
    # -------------------------------------------------
    def is_finalized(self, question_id: bytes) -> bool:
        stored = self._questions.get(question_id)
        if stored is None or stored.best_answer is None:
            return False
        return stored.finalize_ts <= self.chain.timestamp

    def result_for(self, question_id: bytes) -> bytes:
        if not self.is_finalized(question_id):
            raise NotYetFinalized("Question must be finalized")
        return self._questions[question_id].best_answer
