# PATH: config/__init__.py
"""
Configuration files for SETTLESIM.

- chains.yaml: chains whose live state can seed a simulation
- simulation.yaml: gas schedule and overhead correction
  (parsed by simulation.config.load_simulation_config)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


CONFIG_DIR = Path(__file__).parent


@dataclass(frozen=True)
class ChainConfig:
    """One entry of chains.yaml."""
    key: str
    chain_id: int
    native_wrapper: Optional[str] = None
    rpc_endpoints: List[str] = field(default_factory=list)


def load_yaml(filename: str) -> Dict[str, Any]:
    """
    Load a YAML file from the config directory.

    Raises:
        FileNotFoundError: if the file does not exist
    """
    filepath = CONFIG_DIR / filename
    if not filepath.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    with open(filepath, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_chains() -> Dict[str, Any]:
    return load_yaml("chains.yaml")


def get_chain_config(chain_key: str) -> ChainConfig:
    """
    Look up a chain by its key (e.g. 'ethereum').

    Raises:
        KeyError: for chains missing from chains.yaml
    """
    chains = load_chains()
    if chain_key not in chains:
        raise KeyError(f"Unknown chain: {chain_key}")
    entry = chains[chain_key]
    wrapper = entry.get("native_wrapper")
    return ChainConfig(
        key=chain_key,
        chain_id=int(entry["chain_id"]),
        native_wrapper=wrapper.lower() if wrapper else None,
        rpc_endpoints=list(entry.get("rpc_endpoints") or []),
    )
