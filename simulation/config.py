"""
simulation/config.py - Simulation configuration.

Gas schedule, transaction gas limit and the overhead correction constant.
"""

from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from chains.gas import GasSchedule
from core.constants import DEFAULT_OVERHEAD_CORRECTION_GAS, DEFAULT_TX_GAS_LIMIT

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "simulation.yaml"


@dataclass
class SimulationConfig:
    """Full simulation configuration."""

    gas: GasSchedule = field(default_factory=GasSchedule)
    tx_gas_limit: int = DEFAULT_TX_GAS_LIMIT

    # Gas of an overhead-counted balance read spent outside its metered
    # region. Calibrated against ``gas``; not portable across schedules.
    overhead_correction_gas: int = DEFAULT_OVERHEAD_CORRECTION_GAS


def load_simulation_config(config_path: Path | None = None) -> SimulationConfig:
    """
    Load simulation configuration from YAML.

    Args:
        config_path: Path to simulation.yaml (default: config/simulation.yaml)

    Returns:
        SimulationConfig; missing file or keys fall back to defaults
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return SimulationConfig()

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    gas_data = data.get("gas", {}) or {}
    known = {f.name for f in fields(GasSchedule)}
    unknown = set(gas_data) - known
    if unknown:
        raise ValueError(f"Unknown gas schedule keys: {sorted(unknown)}")

    return SimulationConfig(
        gas=GasSchedule(**{k: int(v) for k, v in gas_data.items()}),
        tx_gas_limit=int(data.get("tx_gas_limit", DEFAULT_TX_GAS_LIMIT)),
        overhead_correction_gas=int(
            data.get("overhead_correction_gas", DEFAULT_OVERHEAD_CORRECTION_GAS)
        ),
    )
