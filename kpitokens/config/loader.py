import yaml
import copy
from pathlib import Path

from .defaults import DEFAULT_CONFIG, DEFAULT_SCENARIO
from kpitokens.config.factory_config import FactoryConfig
from kpitokens.core.addresses import account_address


# -------------------------------------------------
# YAML HELPERS
# -------------------------------------------------
def _read_yaml(path, kind: str) -> dict:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{kind} file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{kind} file must contain a YAML dictionary")
    return data


def _merge(defaults: dict, overrides: dict) -> dict:
    """Nested sections merge one level deep; everything else is replaced."""
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


# -------------------------------------------------
# FACTORY CONFIG LOADER
# -------------------------------------------------
def load_factory_config(cfg: dict) -> FactoryConfig:
    factory_cfg = cfg.get("factory", {}) or {}

    return FactoryConfig(
        fee=factory_cfg.get("fee", 30),
        vote_timeout=factory_cfg.get("vote_timeout", 120),
        fee_receiver=factory_cfg.get("fee_receiver") or account_address("fee-receiver"),
        arbitrator=factory_cfg.get("arbitrator") or account_address("arbitrator"),
    )


# -------------------------------------------------
# MAIN CONFIG LOADER
# -------------------------------------------------
def load_config(path: str | None) -> dict:
    """
    Load a user YAML config over the package defaults.

    Rules:
    - omitted fields keep their default
    - output_dir, metadata, observers and logging always exist
    - the factory section is validated up front (FactoryConfig)
    """
    user_config = _read_yaml(path, "Config") if path else {}
    config = _merge(DEFAULT_CONFIG, user_config)

    config.setdefault("output_dir", "runs")
    config.setdefault("metadata", {})
    config.setdefault("observers", [])
    config.setdefault("logging", {"level": "INFO"})

    config["factory_config"] = load_factory_config(config)
    return config


# -------------------------------------------------
# SCENARIO LOADER
# -------------------------------------------------
def load_scenario(path: str) -> dict:
    """
    Load a settlement scenario YAML and merge it with DEFAULT_SCENARIO.
    A top-level `scenario:` key is accepted as a wrapper.
    """
    raw = _read_yaml(path, "Scenario")
    return _merge(DEFAULT_SCENARIO, raw.get("scenario", raw))
