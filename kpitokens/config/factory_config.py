from dataclasses import dataclass

from kpitokens.core.addresses import is_zero_address, to_address
from kpitokens.core.errors import (
    InvalidFee,
    InvalidTimeout,
    ZeroAddressArbitrator,
    ZeroAddressFeeReceiver,
)
from kpitokens.core.settlement import BPS_DENOMINATOR, MAX_UINT32


# -------------------------------------------------
# FACTORY CONFIG
# -------------------------------------------------
@dataclass(frozen=True)
class FactoryConfig:
    """
    Process-wide factory parameters.

    Rules:
    - fee is in basis points, 0 <= fee < 10000
    - vote_timeout is strictly positive
    - fee_receiver / arbitrator are never the zero address
    - frozen: setters replace the whole object, creations read it by value
    """
    fee_receiver: str
    arbitrator: str
    fee: int = 30
    vote_timeout: int = 120

    def __post_init__(self):
        validate_fee(self.fee)
        validate_vote_timeout(self.vote_timeout)
        if is_zero_address(self.fee_receiver):
            raise ZeroAddressFeeReceiver("Fee receiver cannot be the zero address")
        if is_zero_address(self.arbitrator):
            raise ZeroAddressArbitrator("Arbitrator cannot be the zero address")

        object.__setattr__(self, "fee_receiver", to_address(self.fee_receiver))
        object.__setattr__(self, "arbitrator", to_address(self.arbitrator))


def validate_fee(fee: int) -> None:
    if not isinstance(fee, int) or not 0 <= fee < BPS_DENOMINATOR:
        raise InvalidFee(f"Fee must be in [0, {BPS_DENOMINATOR}) basis points, got {fee!r}")


def validate_vote_timeout(vote_timeout: int) -> None:
    if not isinstance(vote_timeout, int) or not 0 < vote_timeout <= MAX_UINT32:
        raise InvalidTimeout(
            f"Vote timeout must be in (0, {MAX_UINT32}] seconds, got {vote_timeout!r}"
        )
