"""
simulation/harness.py - Settlement simulation harness.

SIMULATION HARNESS CONTRACT:
============================

Deployed as code at the solver's address and driven by exactly one
SimulationDriver, which receives the harness's DriverCapability.

swap(capability, settlement, trader, sell_token, sell_amount,
     native_token, tokens, receiver, settlement_call, mock_preconditions)
  -> (gas_used, balances)

  1. Unauthorized unless ``capability`` is the one granted to the driver
  2. mock_preconditions: prepare_swap runs as the trader, then any
     sell-token shortfall is topped up best-effort from the solver;
     InsufficientTraderBalance if the trader is still short
  3. Zero-value call to ``receiver`` (outcome ignored) so the settlement
     pays steady-state cost when paying out to it
  4. Settlement balances of ``tokens`` recorded (not overhead-counted)
  5. Settlement executed; gas_used excludes instrumentation overhead
  6. Settlement balances of ``tokens`` recorded again, same order

store_balance(token, owner, count_gas, capability=None)
  Instrumentation hook. Open while a swap is running (the settlement may
  call it), otherwise requires the driver capability.

A harness serves one run; its balances and overhead are never reset.

Unlike other contracts, the harness keeps its recorder and swap flag as
Python attributes outside the chain journal. A store_balance made inside
a nested call that later reverts stays recorded. A failed swap leaves its
partial balances behind, which the driver discards with the fork.
============================
"""

from typing import List, Optional, Sequence, Tuple

from chains.contracts import Contract, external
from chains.tokens import token_balance, try_transfer
from core.exceptions import InsufficientTraderBalance, Unauthorized
from core.logging import get_logger

from simulation.config import SimulationConfig
from simulation.executor import SettlementExecutor
from simulation.recorder import BalanceRecorder

logger = get_logger(__name__)


class DriverCapability:
    """Opaque token proving the holder is the harness's driver."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "DriverCapability(<redacted>)"


class SimulationHarness(Contract):
    """Root of one settlement simulation."""

    def __init__(self, config: Optional[SimulationConfig] = None):
        super().__init__()
        self.config = config or SimulationConfig()
        self.recorder = BalanceRecorder(self.config.overhead_correction_gas)
        self.executor = SettlementExecutor(self.recorder)
        self._capability = DriverCapability()
        self._granted = False
        self._in_swap = False

    def grant_driver(self) -> DriverCapability:
        """Hand out the driver capability. Only the first caller gets it."""
        if self._granted:
            raise Unauthorized("driver capability already granted")
        self._granted = True
        return self._capability

    def _authorize(self, capability: Optional[DriverCapability]) -> None:
        if capability is None or capability is not self._capability:
            raise Unauthorized(details={"harness": self.address})

    @property
    def queried_balances(self) -> List[int]:
        return list(self.recorder.balances)

    @property
    def simulation_overhead(self) -> int:
        return self.recorder.overhead

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    @external
    def store_balance(
        self,
        token: str,
        owner: str,
        count_gas: bool = False,
        capability: Optional[DriverCapability] = None,
    ) -> int:
        if not self._in_swap:
            self._authorize(capability)
        return self.recorder.record(self.state, token, owner, count_gas)

    @external
    def swap(
        self,
        capability: DriverCapability,
        settlement: str,
        trader: str,
        sell_token: str,
        sell_amount: int,
        native_token: str,
        tokens: Sequence[str],
        receiver: str,
        settlement_call: bytes,
        mock_preconditions: bool,
    ) -> Tuple[int, List[int]]:
        self._authorize(capability)
        if self._in_swap:
            raise Unauthorized("swap is not reentrant")

        self._in_swap = True
        try:
            if mock_preconditions:
                self._mock_preconditions(settlement, trader, sell_token, sell_amount, native_token)

            self._warm_up(receiver)

            self._store_balances(tokens, settlement)
            gas_used = self.executor.execute(self.state, settlement, settlement_call)
            self._store_balances(tokens, settlement)
        finally:
            self._in_swap = False

        logger.debug(
            "Swap simulated",
            extra={"context": {
                "settlement": settlement,
                "gas_used": gas_used,
                "overhead": self.recorder.overhead,
                "balances": len(self.recorder),
            }},
        )
        return gas_used, self.queried_balances

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _mock_preconditions(
        self,
        settlement: str,
        trader: str,
        sell_token: str,
        sell_amount: int,
        native_token: str,
    ) -> None:
        state = self.state
        state.invoke(trader, "prepare_swap", settlement, sell_token, sell_amount, native_token)

        balance = token_balance(state, sell_token, trader)
        if balance < sell_amount:
            shortfall = sell_amount - balance
            result = try_transfer(state, sell_token, trader, shortfall)
            logger.debug(
                "Solver top-up attempted",
                extra={"context": {
                    "trader": trader,
                    "sell_token": sell_token,
                    "shortfall": shortfall,
                    "success": result.success,
                    "reason": result.reason,
                }},
            )
            balance = token_balance(state, sell_token, trader)

        if balance < sell_amount:
            raise InsufficientTraderBalance(details={
                "trader": trader,
                "sell_token": sell_token,
                "balance": balance,
                "sell_amount": sell_amount,
            })

    def _warm_up(self, receiver: str) -> None:
        # Outcome ignored: a real payout failure resurfaces in the settlement.
        result = self.state.call(receiver, b"", value=0)
        logger.debug(
            "Receiver warm-up",
            extra={"context": {"receiver": receiver, "success": result.success}},
        )

    def _store_balances(self, tokens: Sequence[str], owner: str) -> None:
        for token in tokens:
            self.recorder.record(self.state, token, owner, count_gas=False)
