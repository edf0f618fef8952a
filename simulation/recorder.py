"""
simulation/recorder.py - Balance observations and overhead bookkeeping.

BALANCE RECORDER CONTRACT:
==========================
record(state, token, owner, count_gas) appends exactly one balance to
``balances``. With count_gas set, the gas spent inside the call plus
``correction_gas`` (spent by the caller reaching the recorder, outside
the metered region) is added to ``overhead``; that requires an open
transaction. Uncounted reads also work outside one.
==========================
"""

from typing import List

from chains.state import ChainState
from chains.tokens import token_balance
from core.logging import get_logger

logger = get_logger(__name__)


class BalanceRecorder:
    """Append-only balance sequence plus instrumentation overhead."""

    def __init__(self, correction_gas: int):
        self.correction_gas = correction_gas
        self.balances: List[int] = []
        self.overhead = 0

    def record(self, state: ChainState, token: str, owner: str, count_gas: bool = False) -> int:
        if not count_gas:
            balance = token_balance(state, token, owner)
            self.balances.append(balance)
            return balance

        gas_start = state.gas_left
        balance = token_balance(state, token, owner)
        self.balances.append(balance)
        self.overhead += gas_start - state.gas_left + self.correction_gas
        return balance

    def __len__(self) -> int:
        return len(self.balances)
