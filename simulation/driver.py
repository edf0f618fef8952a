"""
simulation/driver.py - Trusted orchestrator of settlement simulations.

Every run gets a fresh fork of the chain state and a freshly built
harness, so that queried balances and overhead never leak between runs
and the base state is never modified.
"""

from typing import Optional

from chains.overrides import StateOverrides
from chains.state import ChainState
from core.exceptions import SimError
from core.logging import get_logger, log_simulation
from core.models import SimulationResult, SwapRequest
from core.validators import normalize_address

from simulation.config import SimulationConfig
from simulation.harness import SimulationHarness
from simulation.trader import TraderPreconditions

logger = get_logger(__name__)


class SimulationDriver:
    """
    Runs SwapRequests against a base chain state.

    Args:
        state: Base state; forked per run, never mutated
        config: Gas schedule, gas limit and overhead correction
    """

    def __init__(self, state: ChainState, config: Optional[SimulationConfig] = None):
        self.state = state
        self.config = config or SimulationConfig()

    def simulate(
        self,
        request: SwapRequest,
        solver: str,
        overrides: Optional[StateOverrides] = None,
    ) -> SimulationResult:
        """
        Simulate one settlement on behalf of ``request.trader``.

        Raises:
            Unauthorized / InsufficientTraderBalance / SettlementFailure:
                propagated from the harness
            OutOfGas: the transaction gas limit was exhausted
        """
        solver = normalize_address(solver, "solver")

        fork = self.state.fork()
        fork.schedule = self.config.gas
        if overrides is not None:
            overrides.apply(fork)

        harness = SimulationHarness(self.config)
        fork.deploy(solver, harness)
        capability = harness.grant_driver()
        if request.mock_preconditions:
            fork.deploy(request.trader, TraderPreconditions())

        try:
            with fork.transaction(solver, self.config.tx_gas_limit) as meter:
                gas_used, balances = fork.invoke(
                    solver,
                    "swap",
                    capability,
                    request.settlement,
                    request.trader,
                    request.sell_token,
                    request.sell_amount,
                    request.native_token,
                    request.tokens,
                    request.receiver,
                    request.settlement_call,
                    request.mock_preconditions,
                )
        except SimError as e:
            logger.warning(
                f"Simulation failed: {e}",
                extra={"context": {
                    "error_code": e.code.value,
                    "settlement": request.settlement,
                    "trader": request.trader,
                    "details": e.details,
                }},
            )
            raise

        result = SimulationResult(
            gas_used=gas_used,
            balances=balances,
            total_gas=meter.used,
            overhead_gas=harness.simulation_overhead,
            token_count=len(request.tokens),
            metadata={
                "solver": solver,
                "tokens": list(request.tokens),
                "mock_preconditions": request.mock_preconditions,
            },
        )
        log_simulation(
            logger,
            request.settlement,
            request.trader,
            "SIMULATED",
            gas_used=gas_used,
            total_gas=meter.used,
            overhead_gas=result.overhead_gas,
        )
        return result
