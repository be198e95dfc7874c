from .loader import load_config, load_factory_config, load_scenario
from .defaults import DEFAULT_CONFIG, DEFAULT_SCENARIO
from .factory_config import FactoryConfig

__all__ = [
    "load_config",
    "load_factory_config",
    "load_scenario",
    "DEFAULT_CONFIG",
    "DEFAULT_SCENARIO",
    "FactoryConfig",
]
