"""
YAML configuration loader.

Loads engine configurations from YAML files, allowing easy sharing and
modification of parameters without code changes. Sections map one-to-one to
the config dataclasses:

    name: baseline
    description: ...
    signal:       {rsi_period: 14, trend_weight: 0.3, ...}
    risk:         {shock_sigma: 3.0, ...}
    simulator:    {slippage_min: 0.0001, ...}
    monte_carlo:  {num_paths: 1000, seed: 42, ...}
"""
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional, Type, Union

import yaml

from .config import EngineConfig, MonteCarloConfig, RiskConfig, SignalConfig, SimulatorConfig


class ConfigError(ValueError):
    """Invalid or malformed configuration file."""


_SECTIONS = {
    "signal": SignalConfig,
    "risk": RiskConfig,
    "simulator": SimulatorConfig,
    "monte_carlo": MonteCarloConfig,
}


def _build_section(cls: Type, section: Optional[Dict[str, Any]], name: str):
    if section is None:
        return cls()
    if not isinstance(section, dict):
        raise ConfigError(f"Section '{name}' must be a mapping, got {type(section).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ConfigError(f"Unknown keys in section '{name}': {unknown}")
    try:
        return cls(**section)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid section '{name}': {e}") from e


def config_from_dict(config_dict: Dict[str, Any], default_name: str = "default") -> EngineConfig:
    """Build a validated EngineConfig from a nested dict (as read from YAML)."""
    if not isinstance(config_dict, dict):
        raise ConfigError(f"Config must be a mapping, got {type(config_dict).__name__}")
    unknown = sorted(set(config_dict) - set(_SECTIONS) - {"name", "description"})
    if unknown:
        raise ConfigError(f"Unknown top-level keys: {unknown}")
    sections = {
        key: _build_section(cls, config_dict.get(key), key)
        for key, cls in _SECTIONS.items()
    }
    return EngineConfig(
        name=str(config_dict.get("name", default_name)),
        description=str(config_dict.get("description", "")),
        **sections,
    )


def load_config_from_yaml(yaml_path: Union[str, Path]) -> EngineConfig:
    """
    Load engine configuration from YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        EngineConfig object

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ConfigError: If YAML is invalid, empty, or contains bad values
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(yaml_path, 'r') as f:
        try:
            config_dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {yaml_path}: {e}") from e

    if not config_dict:
        raise ConfigError(f"Empty config file: {yaml_path}")

    return config_from_dict(config_dict, default_name=yaml_path.stem)


def save_config_to_yaml(config: EngineConfig, yaml_path: Union[str, Path]) -> None:
    """
    Save engine configuration to YAML file.

    Args:
        config: EngineConfig object to save
        yaml_path: Path where to save YAML file
    """
    yaml_path = Path(yaml_path)
    config_dict = {
        'name': config.name,
        'description': config.description,
        **{key: asdict(getattr(config, key)) for key in _SECTIONS},
    }

    # Ensure parent directory exists
    yaml_path.parent.mkdir(parents=True, exist_ok=True)

    with open(yaml_path, 'w') as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
