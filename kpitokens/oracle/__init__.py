from .base import OracleAdapter
from .reality import (
    BOOLEAN_TEMPLATE_ID,
    UINT_TEMPLATE_ID,
    Reality,
    encode_reality_question,
    reality_question_id,
)

__all__ = [
    "OracleAdapter",
    "Reality",
    "BOOLEAN_TEMPLATE_ID",
    "UINT_TEMPLATE_ID",
    "encode_reality_question",
    "reality_question_id",
]
