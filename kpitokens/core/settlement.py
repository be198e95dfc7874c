"""
Settlement math (pure functions).

Shared by the factory (fees), the KPI token (progress, split, payout)
and the reporting layer. All arithmetic is integer and floors.
"""

from typing import Optional, Tuple

BPS_DENOMINATOR = 10_000
ANSWER_SIZE = 32

# question timestamps and timeouts are encoded as 4-byte words
MAX_UINT32 = 2 ** 32 - 1

YES_ANSWER = (1).to_bytes(ANSWER_SIZE, "big")
NO_ANSWER = bytes(ANSWER_SIZE)
INVALID_ANSWER = b"\xff" * ANSWER_SIZE


def compute_fee(amount: int, fee: int) -> Tuple[int, int]:
    """Returns (fee_amount, net_amount) for `fee` basis points."""
    fee_amount = amount * fee // BPS_DENOMINATOR
    return fee_amount, amount - fee_amount


def encode_answer(value: int) -> bytes:
    return int(value).to_bytes(ANSWER_SIZE, "big")


def decode_answer(raw) -> Optional[int]:
    """
    Decode a 32 byte big-endian oracle answer.
    Returns None for the invalid sentinel or a malformed answer.
    """
    if not isinstance(raw, (bytes, bytearray)) or len(raw) != ANSWER_SIZE:
        return None
    if bytes(raw) == INVALID_ANSWER:
        return None
    return int.from_bytes(raw, "big")


def compute_progress(raw, lower_bound: int, higher_bound: int) -> int:
    """
    Map a raw oracle answer to progress in [0, higher_bound - lower_bound].

    - boolean KPI (0, 1): 1 only for the canonical yes answer
    - scalar KPI: clamped linear position inside the bounds
    - invalid / unparseable answers count as "not reached"
    """
    value = decode_answer(raw)
    if value is None:
        return 0

    if lower_bound == 0 and higher_bound == 1:
        return 1 if value == 1 else 0

    if value <= lower_bound:
        return 0
    if value >= higher_bound:
        return higher_bound - lower_bound
    return value - lower_bound


def split_collateral(collateral_amount: int, progress: int, kpi_range: int) -> Tuple[int, int]:
    """Returns (creator_share, holder_share); the two always sum to the input."""
    holder_share = collateral_amount * progress // kpi_range
    return collateral_amount - holder_share, holder_share


def redemption_payout(held_collateral: int, balance: int, supply: int) -> int:
    if supply <= 0:
        return 0
    return held_collateral * balance // supply
