"""Core Module - addresses, settlement math, contracts and errors."""

from .addresses import (
    ZERO_ADDRESS,
    account_address,
    encode_init_data,
    instance_salt,
    is_zero_address,
    predict_clone_address,
)
from .contracts import Collateral, Event, Receipt, ScalarBounds, TokenData
from .settlement import (
    INVALID_ANSWER,
    YES_ANSWER,
    compute_fee,
    compute_progress,
    encode_answer,
    redemption_payout,
    split_collateral,
)

__all__ = [
    "ZERO_ADDRESS",
    "account_address",
    "encode_init_data",
    "instance_salt",
    "is_zero_address",
    "predict_clone_address",
    "Collateral",
    "Event",
    "Receipt",
    "ScalarBounds",
    "TokenData",
    "INVALID_ANSWER",
    "YES_ANSWER",
    "compute_fee",
    "compute_progress",
    "encode_answer",
    "redemption_payout",
    "split_collateral",
]
