"""
Settlement scenario runner.

Runs one KPI token through its whole life on a fresh chain:

1. deploy collateral, oracle, KPI token implementation and factory
2. fund the creator and create the KPI token
3. hand claim tokens to the scenario holders
4. answer the question, wait out the vote timeout, finalize
5. redeem every holder (listed order, creator last)
"""

from dataclasses import dataclass, field
from datetime import timezone
from fractions import Fraction
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

from kpitokens.chain import Chain
from kpitokens.config.loader import load_config, load_factory_config, load_scenario
from kpitokens.core.addresses import account_address
from kpitokens.core.contracts import Collateral, Event, ScalarBounds, TokenData
from kpitokens.core.settlement import INVALID_ANSWER, NO_ANSWER, YES_ANSWER, encode_answer
from kpitokens.factory import KPITokensFactory, kpi_token_address_from_receipt
from kpitokens.kpi_token import KPIToken
from kpitokens.ledger.token import MintableERC20
from kpitokens.observability.factory import build_observers
from kpitokens.oracle.reality import Reality, encode_reality_question
from kpitokens.utils.logger import configure_logging, get_logger

log = get_logger("scenario-runner")

CLAIM_DECIMALS = 18
CREATOR_LABEL = "creator"


@dataclass
class HolderPayout:
    holder: str
    address: str
    claim_balance: int
    payout: int


@dataclass
class SettlementResult:
    name: str
    kpi_token: str
    creator: str
    collateral_symbol: str
    collateral_decimals: int
    gross_amount: int
    fee_amount: int
    net_amount: int
    total_supply: int
    lower_bound: int
    higher_bound: int
    progress: int
    creator_share: int
    holder_share: int
    payouts: List[HolderPayout] = field(default_factory=list)
    remaining_supply: int = 0
    remaining_collateral: int = 0
    events: List[Event] = field(default_factory=list)


# -------------------------------------------------
# INPUT PARSING
# -------------------------------------------------
def parse_units(value: Any, decimals: int) -> int:
    """'1.5' with 6 decimals -> 1500000. Exact; fractions beyond `decimals` are rejected."""
    scaled = Fraction(str(value)) * 10 ** decimals
    if scaled.denominator != 1:
        raise ValueError(f"{value!r} has more than {decimals} decimals")
    return scaled.numerator


def parse_expiry(value: Any, now: int) -> int:
    """Epoch seconds, '+<seconds>' relative to `now`, or an ISO-8601 datetime (UTC if naive)."""
    if isinstance(value, int):
        return value

    text = str(value).strip()
    if text.startswith("+"):
        return now + int(text[1:])
    if text.isdigit():
        return int(text)

    moment = date_parser.isoparse(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def parse_answer(value: Any) -> bytes:
    if isinstance(value, bool):
        return YES_ANSWER if value else NO_ANSWER
    if isinstance(value, int):
        return encode_answer(value)

    text = str(value).strip().lower()
    if text == "yes":
        return YES_ANSWER
    if text == "no":
        return NO_ANSWER
    if text == "invalid":
        return INVALID_ANSWER
    if text.startswith("0x"):
        return int(text, 16).to_bytes(32, "big")
    return encode_answer(int(text))


# -------------------------------------------------
# RUNNER
# -------------------------------------------------
def run_scenario(
    scenario: Dict[str, Any],
    config: Optional[Dict[str, Any]] = None,
    chain: Optional[Chain] = None,
) -> SettlementResult:
    config = config if config is not None else load_config(None)
    configure_logging(config, log.name)
    chain = chain or Chain(timestamp=scenario.get("start_timestamp"))
    for observer in build_observers(config):
        chain.register_observer(observer)

    factory_config = config.get("factory_config") or load_factory_config(config)

    deployer = account_address("deployer")
    creator = account_address(CREATOR_LABEL)
    reporter = account_address("reporter")

    collateral_cfg = scenario["collateral"]
    token_cfg = scenario["token"]
    bounds = ScalarBounds(
        lower_bound=int(scenario["bounds"]["lower"]),
        higher_bound=int(scenario["bounds"]["higher"]),
    )

    decimals = int(collateral_cfg.get("decimals", 18))
    gross_amount = parse_units(collateral_cfg["amount"], decimals)
    total_supply = parse_units(token_cfg["total_supply"], CLAIM_DECIMALS)

    # -------------------------------------------------
    # 1. Deployment
    # -------------------------------------------------
    collateral = chain.deploy(
        MintableERC20(collateral_cfg["name"], collateral_cfg["symbol"], deployer, decimals),
        deployer,
    )
    reality = chain.deploy(Reality(), deployer)
    implementation = chain.deploy(KPIToken(), deployer)
    factory = KPITokensFactory.deploy(
        chain,
        deployer,
        kpi_token_implementation=implementation.address,
        oracle=reality.address,
        fee_receiver=factory_config.fee_receiver,
        arbitrator=factory_config.arbitrator,
        fee=factory_config.fee,
        vote_timeout=factory_config.vote_timeout,
    )

    # -------------------------------------------------
    # 2. Creation
    # -------------------------------------------------
    collateral.mint(deployer, creator, gross_amount)
    collateral.approve(creator, factory.address, gross_amount)

    expiry = parse_expiry(scenario["expiry"], chain.timestamp)
    receipt = factory.create_kpi_token(
        creator,
        encode_reality_question(scenario["question"]),
        expiry,
        Collateral(token=collateral.address, amount=gross_amount),
        TokenData(name=token_cfg["name"], symbol=token_cfg["symbol"], total_supply=total_supply),
        bounds,
        description=scenario.get("name", ""),
    )
    kpi_token = chain.contract_at(kpi_token_address_from_receipt(receipt), KPIToken)
    created = receipt.find("KpiTokenCreated").args

    # -------------------------------------------------
    # 3. Distribution
    # -------------------------------------------------
    holders = dict(scenario.get("holders") or {})
    if sum(Fraction(str(share)) for share in holders.values()) > 100:
        raise ValueError("Holder shares exceed 100% of the claim supply")

    accounts = {}
    for label, share in holders.items():
        accounts[label] = account_address(label)
        amount = total_supply * Fraction(str(share)) // 100
        if amount:
            kpi_token.transfer(creator, accounts[label], amount)
    accounts[CREATOR_LABEL] = creator

    # -------------------------------------------------
    # 4. Oracle answer + finalization
    # -------------------------------------------------
    chain.advance_to(max(expiry, chain.timestamp))
    reality.submit_answer(reporter, kpi_token.question_id, parse_answer(scenario["answer"]), 0, 1)
    chain.advance(factory_config.vote_timeout + 1)

    kpi_token.finalize()
    finalized = next(
        event.args for event in reversed(chain.events)
        if event.name == "Finalized" and event.emitter == kpi_token.address
    )

    # -------------------------------------------------
    # 5. Redemption
    # -------------------------------------------------
    payouts = []
    for label, address in accounts.items():
        balance = kpi_token.balance_of(address)
        if balance == 0:
            continue
        payout = kpi_token.redeem(address)
        payouts.append(HolderPayout(label, address, balance, payout))

    log.info(
        "Scenario '%s' settled: progress %s/%s, %s redemptions",
        scenario.get("name"), kpi_token.final_kpi_progress, kpi_token.kpi_range, len(payouts),
    )

    return SettlementResult(
        name=scenario.get("name", ""),
        kpi_token=kpi_token.address,
        creator=creator,
        collateral_symbol=collateral.symbol,
        collateral_decimals=decimals,
        gross_amount=gross_amount,
        fee_amount=created["fee_amount"],
        net_amount=created["collateral_amount"],
        total_supply=total_supply,
        lower_bound=bounds.lower_bound,
        higher_bound=bounds.higher_bound,
        progress=kpi_token.final_kpi_progress,
        creator_share=finalized["creator_share"],
        holder_share=finalized["holder_share"],
        payouts=payouts,
        remaining_supply=kpi_token.total_supply,
        remaining_collateral=kpi_token.collateral_balance(),
        events=list(chain.events),
    )


def run_scenario_file(path: str, config: Optional[Dict[str, Any]] = None) -> SettlementResult:
    return run_scenario(load_scenario(path), config)
