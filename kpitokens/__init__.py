"""
KPI Tokens v1.0

Collateral escrow that settles against an oracle-reported KPI:
factory, template registry, KPI token finalize/redeem, and an
in-process chain runtime to host them.
"""

from .__version__ import __version__

# Keep package init lightweight; reporting (pandas) and the CLI
# are imported explicitly.

from .chain import Chain, Contract
from .core import (
    Collateral,
    Event,
    Receipt,
    ScalarBounds,
    TokenData,
    predict_clone_address,
)
from .core.errors import KPITokensError
from .config import FactoryConfig, load_config, load_scenario
from .factory import KPITokensFactory, kpi_token_address_from_receipt
from .kpi_token import KPIToken
from .ledger import ERC20, MintableERC20
from .oracle import OracleAdapter, Reality, encode_reality_question
from .templates import Template, TemplateRegistry, Version, VersionBump

__all__ = [
    "__version__",
    "Chain",
    "Contract",
    "Collateral",
    "Event",
    "Receipt",
    "ScalarBounds",
    "TokenData",
    "predict_clone_address",
    "KPITokensError",
    "FactoryConfig",
    "load_config",
    "load_scenario",
    "KPITokensFactory",
    "kpi_token_address_from_receipt",
    "KPIToken",
    "ERC20",
    "MintableERC20",
    "OracleAdapter",
    "Reality",
    "encode_reality_question",
    "Template",
    "TemplateRegistry",
    "Version",
    "VersionBump",
]
