from abc import ABC, abstractmethod


class OracleAdapter(ABC):
    """
    Read contract the KPI token relies on.

    Answers are 32 byte big-endian words; interpretation (boolean or
    scalar) is up to the consumer.
    """

    @abstractmethod
    def is_finalized(self, question_id: bytes) -> bool:
        pass

    @abstractmethod
    def result_for(self, question_id: bytes) -> bytes:
        pass
