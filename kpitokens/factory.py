"""
KPI Tokens Factory

Creates KPI tokens: validates the request, skims the protocol fee,
asks the oracle question, clones the KPI token template at its
predicted address, escrows the net collateral and mints the claim
supply to the creator.

The `KpiTokenCreated` event of the returned receipt is the discovery
channel for the new token address (see kpi_token_address_from_receipt).
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Union

from kpitokens.chain import Chain, Contract
from kpitokens.config.factory_config import FactoryConfig
from kpitokens.core.addresses import encode_init_data, is_zero_address, to_address
from kpitokens.core.contracts import Collateral, Receipt, ScalarBounds, TokenData
from kpitokens.core.errors import (
    InvalidAmount,
    InvalidBounds,
    InvalidExpiry,
    InvalidMetadata,
    Unauthorized,
    UnknownContract,
    ZeroAddressCollateralToken,
    ZeroAddressKpiTokenImplementation,
    ZeroAddressOracle,
)
from kpitokens.core.settlement import MAX_UINT32, compute_fee
from kpitokens.kpi_token import KPIToken
from kpitokens.ledger.token import ERC20
from kpitokens.oracle.reality import (
    BOOLEAN_TEMPLATE_ID,
    UINT_TEMPLATE_ID,
    Reality,
    reality_question_id,
)
from kpitokens.templates.registry import Template, TemplateRegistry, Version, VersionBump

logger = logging.getLogger(__name__)

DEFAULT_KPI_TOKEN_SPECIFICATION = "erc20-kpi-token"
DEFAULT_ORACLE_SPECIFICATION = "reality-oracle"


def kpi_token_address_from_receipt(receipt: Receipt) -> str:
    event = receipt.find("KpiTokenCreated")
    if event is None:
        raise ValueError("No KpiTokenCreated event in receipt")

    address = event.args.get("kpi_token")
    if is_zero_address(address):
        raise ValueError("KpiTokenCreated event carries the zero address")
    return address


class KPITokensFactory(Contract):
    def __init__(self, owner: str, config: FactoryConfig):
        self.owner = to_address(owner)
        self.config = config
        self.kpi_token_templates = None
        self.oracle_templates = None
        self.kpi_tokens: List[str] = []

    # -------------------------------------------------
    # DEPLOYMENT
    # -------------------------------------------------
    @classmethod
    def deploy(
        cls,
        chain: Chain,
        deployer: str,
        *,
        kpi_token_implementation: str,
        oracle: str,
        fee_receiver: str,
        arbitrator: str,
        fee: int = 30,
        vote_timeout: int = 120,
        kpi_token_specification: str = DEFAULT_KPI_TOKEN_SPECIFICATION,
        oracle_specification: str = DEFAULT_ORACLE_SPECIFICATION,
    ) -> "KPITokensFactory":
        """
        Deploy a factory with its two template registries.
        The KPI token implementation and the oracle become template 0
        of their registry.
        """
        with chain.transaction():
            if is_zero_address(kpi_token_implementation):
                raise ZeroAddressKpiTokenImplementation("KPI token implementation cannot be the zero address")
            if is_zero_address(oracle):
                raise ZeroAddressOracle("Oracle cannot be the zero address")

            config = FactoryConfig(
                fee_receiver=fee_receiver,
                arbitrator=arbitrator,
                fee=fee,
                vote_timeout=vote_timeout,
            )
            factory = chain.deploy(cls(deployer, config), deployer)

            kpi_registry = chain.deploy(
                TemplateRegistry(owner=factory.address, factory=factory.address), deployer
            )
            oracle_registry = chain.deploy(
                TemplateRegistry(owner=factory.address, factory=factory.address), deployer
            )
            factory.kpi_token_templates = kpi_registry.address
            factory.oracle_templates = oracle_registry.address

            kpi_registry.add_template(factory.address, kpi_token_implementation, kpi_token_specification)
            oracle_registry.add_template(factory.address, oracle, oracle_specification)

        logger.info("KPI tokens factory deployed at %s", factory.address)
        return factory

    # -------------------------------------------------
    # ACCESS
    # -------------------------------------------------
    def _only_owner(self, caller: str) -> None:
        if to_address(caller) != self.owner:
            raise Unauthorized(f"{caller} is not the factory owner")

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        with self.chain.transaction():
            self._only_owner(caller)
            if is_zero_address(new_owner):
                raise Unauthorized("Ownership cannot go to the zero address")
            previous, self.owner = self.owner, to_address(new_owner)
            self._emit("OwnershipTransferred", previous_owner=previous, new_owner=self.owner)

    # -------------------------------------------------
    # VIEWS
    # -------------------------------------------------
    def kpi_token_registry(self) -> TemplateRegistry:
        return self._contract(self.kpi_token_templates, TemplateRegistry)

    def oracle_registry(self) -> TemplateRegistry:
        return self._contract(self.oracle_templates, TemplateRegistry)

    @property
    def kpi_token_implementation(self) -> str:
        return self.kpi_token_registry().template(0).address

    @property
    def oracle(self) -> str:
        return self.oracle_registry().template(0).address

    @property
    def fee(self) -> int:
        return self.config.fee

    @property
    def vote_timeout(self) -> int:
        return self.config.vote_timeout

    @property
    def fee_receiver(self) -> str:
        return self.config.fee_receiver

    @property
    def arbitrator(self) -> str:
        return self.config.arbitrator

    def kpi_tokens_amount(self) -> int:
        return len(self.kpi_tokens)

    # -------------------------------------------------
    # CONFIGURATION (owner-gated)
    # -------------------------------------------------
    def _update_config(self, caller: str, event: str, **changes: Any) -> None:
        with self.chain.transaction():
            self._only_owner(caller)
            # FactoryConfig re-validates every field on replace
            self.config = replace(self.config, **changes)
            updated = {key: getattr(self.config, key) for key in changes}
            self._emit(event, **updated)
        logger.info("Factory config updated: %s", updated)

    def set_fee(self, caller: str, fee: int) -> None:
        self._update_config(caller, "FeeUpdated", fee=fee)

    def set_vote_timeout(self, caller: str, vote_timeout: int) -> None:
        self._update_config(caller, "VoteTimeoutUpdated", vote_timeout=vote_timeout)

    def set_fee_receiver(self, caller: str, fee_receiver: str) -> None:
        self._update_config(caller, "FeeReceiverUpdated", fee_receiver=fee_receiver)

    def set_arbitrator(self, caller: str, arbitrator: str) -> None:
        self._update_config(caller, "ArbitratorUpdated", arbitrator=arbitrator)

    # -------------------------------------------------
    # TEMPLATES (owner-gated)
    # -------------------------------------------------
    def add_kpi_token_template(self, caller: str, implementation: str, specification: str) -> int:
        self._only_owner(caller)
        return self.kpi_token_registry().add_template(self.address, implementation, specification)

    def upgrade_kpi_token_template(
        self,
        caller: str,
        template_id: int,
        implementation: str,
        version_bump: Union[VersionBump, str, Version],
        specification: str,
    ) -> Template:
        self._only_owner(caller)
        return self.kpi_token_registry().upgrade_template(
            self.address, template_id, implementation, version_bump, specification
        )

    def add_oracle_template(self, caller: str, implementation: str, specification: str) -> int:
        self._only_owner(caller)
        return self.oracle_registry().add_template(self.address, implementation, specification)

    def upgrade_oracle_template(
        self,
        caller: str,
        template_id: int,
        implementation: str,
        version_bump: Union[VersionBump, str, Version],
        specification: str,
    ) -> Template:
        self._only_owner(caller)
        return self.oracle_registry().upgrade_template(
            self.address, template_id, implementation, version_bump, specification
        )

    def upgrade_kpi_token_implementation(self, caller: str, implementation: str) -> Template:
        """Patch-bump the default KPI token template to a new implementation."""
        self._only_owner(caller)
        if is_zero_address(implementation):
            raise ZeroAddressKpiTokenImplementation("KPI token implementation cannot be the zero address")

        registry = self.kpi_token_registry()
        return registry.upgrade_template(
            self.address,
            0,
            implementation,
            VersionBump.PATCH,
            registry.template(0).specification,
        )

    # -------------------------------------------------
    # CREATION
    # -------------------------------------------------
    def _validate_creation(
        self,
        question: str,
        expiry: int,
        collateral: Collateral,
        token_data: TokenData,
        bounds: ScalarBounds,
    ) -> None:
        if is_zero_address(collateral.token):
            raise ZeroAddressCollateralToken("Collateral token cannot be the zero address")
        if not isinstance(collateral.amount, int) or collateral.amount <= 0:
            raise InvalidAmount(f"Collateral amount must be positive, got {collateral.amount!r}")
        if not token_data.name:
            raise InvalidMetadata("Token name cannot be empty")
        if not token_data.symbol:
            raise InvalidMetadata("Token symbol cannot be empty")
        if not isinstance(token_data.total_supply, int) or token_data.total_supply <= 0:
            raise InvalidAmount(f"Total supply must be positive, got {token_data.total_supply!r}")
        if not question:
            raise InvalidMetadata("Question cannot be empty")
        if expiry <= self.chain.timestamp:
            raise InvalidExpiry(f"Expiry {expiry} is not after the current time {self.chain.timestamp}")
        if expiry > MAX_UINT32:
            raise InvalidExpiry(f"Expiry {expiry} does not fit a uint32 timestamp")
        if bounds.lower_bound < 0 or bounds.higher_bound <= bounds.lower_bound:
            raise InvalidBounds(
                f"Bounds must satisfy 0 <= lower < higher, got "
                f"({bounds.lower_bound}, {bounds.higher_bound})"
            )

    def _question_id(self, question: str, expiry: int, bounds: ScalarBounds, nonce: int) -> bytes:
        return reality_question_id(
            BOOLEAN_TEMPLATE_ID if bounds.is_boolean else UINT_TEMPLATE_ID,
            expiry,
            question,
            self.config.arbitrator,
            self.config.vote_timeout,
            self.address,
            nonce,
        )

    def _init_data(
        self,
        oracle: str,
        question_id: bytes,
        expiry: int,
        collateral: Collateral,
        token_data: TokenData,
        bounds: ScalarBounds,
    ) -> bytes:
        payload: Dict[str, Any] = {
            "collateral_token": to_address(collateral.token),
            "collateral_amount": collateral.amount,
            "name": token_data.name,
            "symbol": token_data.symbol,
            "total_supply": token_data.total_supply,
            "oracle": to_address(oracle),
            "question_id": question_id.hex(),
            "expiry": expiry,
            "lower_bound": bounds.lower_bound,
            "higher_bound": bounds.higher_bound,
        }
        return encode_init_data(payload)

    def predict_kpi_token_address(
        self,
        creator: str,
        question: str,
        expiry: int,
        collateral: Collateral,
        token_data: TokenData,
        bounds: ScalarBounds,
        *,
        kpi_template_id: int = 0,
        oracle_template_id: int = 0,
        description: str = "",
    ) -> str:
        """Address the next create_kpi_token call with these inputs deploys to."""
        self._validate_creation(question, expiry, collateral, token_data, bounds)
        oracle = self.oracle_registry().template(oracle_template_id).address
        question_id = self._question_id(question, expiry, bounds, len(self.kpi_tokens))
        init_data = self._init_data(oracle, question_id, expiry, collateral, token_data, bounds)
        return self.kpi_token_registry().predict_instance_address(
            creator, kpi_template_id, description, init_data
        )

    def create_kpi_token(
        self,
        caller: str,
        question: str,
        expiry: int,
        collateral: Collateral,
        token_data: TokenData,
        bounds: ScalarBounds = ScalarBounds(),
        *,
        kpi_template_id: int = 0,
        oracle_template_id: int = 0,
        description: str = "",
    ) -> Receipt:
        with self.chain.transaction() as receipt:
            config = self.config
            self._validate_creation(question, expiry, collateral, token_data, bounds)

            kpi_registry = self.kpi_token_registry()
            kpi_registry.template(kpi_template_id)
            oracle = self._contract(
                self.oracle_registry().template(oracle_template_id).address, Reality
            )

            # 1. fee split
            fee_amount, net_amount = compute_fee(collateral.amount, config.fee)

            # 2. collateral pull, fee forward
            collateral_token = self._contract(collateral.token, ERC20)
            collateral_token.transfer_from(self.address, caller, self.address, collateral.amount)
            collateral_token.transfer(self.address, config.fee_receiver, fee_amount)

            # 3. question + clone at the predicted address
            nonce = len(self.kpi_tokens)
            question_id = oracle.ask_question(
                self.address,
                BOOLEAN_TEMPLATE_ID if bounds.is_boolean else UINT_TEMPLATE_ID,
                question,
                config.arbitrator,
                config.vote_timeout,
                expiry,
                nonce,
            )
            init_data = self._init_data(
                oracle.address, question_id, expiry, collateral, token_data, bounds
            )
            kpi_token = kpi_registry.instantiate(
                self.address, caller, kpi_template_id, description, init_data
            )
            if not isinstance(kpi_token, KPIToken):
                raise UnknownContract(
                    f"Template {kpi_template_id} does not implement a KPI token"
                )

            # 4. escrow + claim supply
            collateral_token.transfer(self.address, kpi_token.address, net_amount)
            kpi_token.initialize(
                creator=caller,
                name=token_data.name,
                symbol=token_data.symbol,
                total_supply=token_data.total_supply,
                collateral_token=collateral.token,
                collateral_amount=net_amount,
                oracle=oracle.address,
                question_id=question_id,
                bounds=bounds,
                expiry=expiry,
            )
            self.kpi_tokens.append(kpi_token.address)

            # 5. discovery event
            self._emit(
                "KpiTokenCreated",
                kpi_token=kpi_token.address,
                creator=to_address(caller),
                template_id=kpi_template_id,
                fee_amount=fee_amount,
                collateral_amount=net_amount,
            )

        logger.info(
            "KPI token %s created by %s (escrow %s, fee %s)",
            kpi_token.address, caller, net_amount, fee_amount,
        )
        return receipt
