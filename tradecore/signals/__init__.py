"""
Signal composition and configuration.

- SignalComposer: weighted trend/momentum/volume/volatility signal
- Config dataclasses validated at construction, YAML loading
"""
from .composer import SignalComposer, majority_direction
from .config import EngineConfig, MonteCarloConfig, RiskConfig, SignalConfig, SimulatorConfig
from .config_loader import ConfigError, config_from_dict, load_config_from_yaml, save_config_to_yaml

__all__ = [
    'SignalComposer',
    'majority_direction',
    'EngineConfig',
    'MonteCarloConfig',
    'RiskConfig',
    'SignalConfig',
    'SimulatorConfig',
    'ConfigError',
    'config_from_dict',
    'load_config_from_yaml',
    'save_config_to_yaml',
]
