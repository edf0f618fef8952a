"""
SETTLESIM simulation layer.

This module contains the simulation components:
- recorder: Balance observations and overhead bookkeeping
- executor: Gas-isolated settlement execution
- trader: Trader-side precondition preparer
- harness: Simulation harness (privileged entry point)
- driver: Trusted orchestrator, one fresh harness per run
- config: Gas schedule and correction constant
"""

from simulation.config import SimulationConfig, load_simulation_config
from simulation.recorder import BalanceRecorder
from simulation.executor import SettlementExecutor
from simulation.trader import TraderPreconditions
from simulation.harness import DriverCapability, SimulationHarness
from simulation.driver import SimulationDriver

__all__ = [
    # Config
    "SimulationConfig",
    "load_simulation_config",
    # Components
    "BalanceRecorder",
    "SettlementExecutor",
    "TraderPreconditions",
    "DriverCapability",
    "SimulationHarness",
    "SimulationDriver",
]
