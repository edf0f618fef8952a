"""
simulation/executor.py - Gas-isolated settlement execution.

SETTLEMENT EXECUTION CONTRACT:
  execute(state, settlement, payload) -> gas_used
    - dispatches the opaque payload with ChainState.call
    - gas_used = gas consumed by that single call - recorder overhead
    - a failed call raises SettlementFailure with the return data as-is
    - no retries, no interpretation of the failure
"""

from chains.state import ChainState
from core.exceptions import SettlementFailure, SimulationInvariantError
from core.logging import get_logger

from simulation.recorder import BalanceRecorder

logger = get_logger(__name__)


class SettlementExecutor:
    """Runs the settlement payload and reports net gas."""

    def __init__(self, recorder: BalanceRecorder):
        self.recorder = recorder

    def execute(self, state: ChainState, settlement: str, payload: bytes) -> int:
        gas_start = state.gas_left
        result = state.call(settlement, payload)
        total_gas = gas_start - state.gas_left

        if not result.success:
            raise SettlementFailure(
                result.return_data,
                details={"settlement": settlement, "gas_consumed": total_gas},
            )

        overhead = self.recorder.overhead
        if overhead > total_gas:
            raise SimulationInvariantError(
                f"Instrumentation overhead {overhead} exceeds settlement gas {total_gas}",
                details={"overhead": overhead, "total_gas": total_gas},
            )

        logger.debug(
            "Settlement executed",
            extra={"context": {"total_gas": total_gas, "overhead": overhead}},
        )
        return total_gas - overhead
