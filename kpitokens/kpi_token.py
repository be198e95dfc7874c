"""
KPI Token (settlement engine)

One escrow, one oracle question, one claim-token supply.

Lifecycle:
    Created --finalize()--> Finalized --redeem()*--> (supply drains to 0)

- finalize() reads the settled oracle answer, fixes the progress and
  sends the creator its share right away
- redeem() burns the caller's whole claim balance, then pays its
  pro-rata share of the collateral still held, computed against the
  live balance and live supply so the last redeemer drains the escrow
"""

import logging

from kpitokens.core.addresses import ZERO_ADDRESS, to_address
from kpitokens.core.contracts import ScalarBounds
from kpitokens.core.errors import (
    AlreadyFinalized,
    AlreadyInitialized,
    NoBalance,
    NotFinalized,
    NotYetFinalized,
)
from kpitokens.core.settlement import compute_progress, redemption_payout, split_collateral
from kpitokens.ledger.token import ERC20
from kpitokens.oracle.base import OracleAdapter

logger = logging.getLogger(__name__)


class KPIToken(ERC20):
    def __init__(self):
        super().__init__()
        self.initialized = False

        self.creator = ZERO_ADDRESS
        self.collateral_token = ZERO_ADDRESS
        self.collateral_amount = 0
        self.oracle = ZERO_ADDRESS
        self.question_id = b""
        self.lower_bound = 0
        self.higher_bound = 1
        self.expiry = 0

        self.finalized = False
        self.final_kpi_progress = 0

    # -------------------------------------------------
    # INITIALIZATION (once, by the factory)
    # -------------------------------------------------
    def initialize(
        self,
        *,
        creator: str,
        name: str,
        symbol: str,
        total_supply: int,
        collateral_token: str,
        collateral_amount: int,
        oracle: str,
        question_id: bytes,
        bounds: ScalarBounds,
        expiry: int,
    ) -> None:
        with self.chain.transaction():
            if self.initialized:
                raise AlreadyInitialized(f"KPI token {self.address} is already initialized")

            self.initialized = True
            self.name = name
            self.symbol = symbol
            self.creator = to_address(creator)
            self.collateral_token = to_address(collateral_token)
            self.collateral_amount = collateral_amount
            self.oracle = to_address(oracle)
            self.question_id = bytes(question_id)
            self.lower_bound = bounds.lower_bound
            self.higher_bound = bounds.higher_bound
            self.expiry = expiry

            self._mint(self.creator, total_supply)

    # -------------------------------------------------
    # VIEWS
    # -------------------------------------------------
    @property
    def kpi_range(self) -> int:
        return self.higher_bound - self.lower_bound

    @property
    def is_boolean(self) -> bool:
        return self.lower_bound == 0 and self.higher_bound == 1

    def collateral_balance(self) -> int:
        return self._contract(self.collateral_token, ERC20).balance_of(self.address)

    # -------------------------------------------------
    # FINALIZE
    # -------------------------------------------------
    def finalize(self) -> int:
        """Settle the KPI from the oracle answer. Callable by anyone, once."""
        with self.chain.transaction():
            oracle = self._contract(self.oracle, OracleAdapter)
            if not oracle.is_finalized(self.question_id):
                raise NotYetFinalized("The oracle question is not finalized yet")
            if self.finalized:
                raise AlreadyFinalized(f"KPI token {self.address} is already finalized")

            progress = compute_progress(
                oracle.result_for(self.question_id), self.lower_bound, self.higher_bound
            )
            creator_share, holder_share = split_collateral(
                self.collateral_amount, progress, self.kpi_range
            )

            self.final_kpi_progress = progress
            self.finalized = True

            self._contract(self.collateral_token, ERC20).transfer(
                self.address, self.creator, creator_share
            )
            self._emit(
                "Finalized",
                progress=progress,
                creator_share=creator_share,
                holder_share=holder_share,
            )

        logger.info(
            "KPI token %s finalized: progress %s/%s, creator %s, holders %s",
            self.address, progress, self.kpi_range, creator_share, holder_share,
        )
        return progress

    # -------------------------------------------------
    # REDEEM
    # -------------------------------------------------
    def redeem(self, caller: str) -> int:
        """Burn the caller's claim balance and pay its share of the escrow."""
        with self.chain.transaction():
            if not self.finalized:
                raise NotFinalized(f"KPI token {self.address} is not finalized")

            balance = self.balance_of(caller)
            if balance == 0:
                raise NoBalance(f"{caller} holds no {self.symbol}")

            collateral = self._contract(self.collateral_token, ERC20)
            payout = redemption_payout(
                collateral.balance_of(self.address), balance, self.total_supply
            )

            # burn before paying out: a re-entrant redeem sees a zero balance
            self._burn(caller, balance)
            collateral.transfer(self.address, caller, payout)
            self._emit("Redeemed", account=to_address(caller), burned=balance, payout=payout)

        logger.info("%s redeemed %s %s for %s collateral", caller, balance, self.symbol, payout)
        return payout
