"""
chains/overrides.py - State overrides applied before a simulation.

Mirrors the state override object of eth_call: native balances, token
balances and allowances are written directly, without a transaction.
Tokens missing from the state are deployed as plain Erc20Token code.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from core.logging import get_logger
from core.validators import is_native_token, normalize_address, require_amount

from chains.state import ChainState
from chains.tokens import Erc20Token

logger = get_logger(__name__)


@dataclass
class StateOverrides:
    """Balances and allowances to force into a chain state."""
    native_balances: Dict[str, int] = field(default_factory=dict)
    # (token, owner) -> amount
    token_balances: Dict[Tuple[str, str], int] = field(default_factory=dict)
    # (token, owner, spender) -> amount
    allowances: Dict[Tuple[str, str, str], int] = field(default_factory=dict)

    def set_native(self, owner: str, amount: int) -> "StateOverrides":
        self.native_balances[normalize_address(owner, "owner")] = require_amount(amount)
        return self

    def set_token_balance(self, token: str, owner: str, amount: int) -> "StateOverrides":
        if is_native_token(token):
            return self.set_native(owner, amount)
        key = (normalize_address(token, "token"), normalize_address(owner, "owner"))
        self.token_balances[key] = require_amount(amount)
        return self

    def set_allowance(self, token: str, owner: str, spender: str, amount: int) -> "StateOverrides":
        key = (
            normalize_address(token, "token"),
            normalize_address(owner, "owner"),
            normalize_address(spender, "spender"),
        )
        self.allowances[key] = require_amount(amount)
        return self

    def merge(self, other: "StateOverrides") -> "StateOverrides":
        """Entries of ``other`` win on conflict."""
        return StateOverrides(
            native_balances={**self.native_balances, **other.native_balances},
            token_balances={**self.token_balances, **other.token_balances},
            allowances={**self.allowances, **other.allowances},
        )

    def apply(self, state: ChainState) -> None:
        """Write every override into ``state`` (outside any transaction)."""
        for owner, amount in self.native_balances.items():
            state.set_balance(owner, amount)

        for (token, owner), amount in self.token_balances.items():
            contract = self._token(state, token)
            current = state.storage_at(token, ("balance", owner))
            supply = state.storage_at(token, ("supply",))
            contract.sstore(("balance", owner), amount)
            contract.sstore(("supply",), max(supply - current + amount, 0))

        for (token, owner, spender), amount in self.allowances.items():
            self._token(state, token).sstore(("allowance", owner, spender), amount)

        logger.debug(
            "State overrides applied",
            extra={"context": {
                "native": len(self.native_balances),
                "tokens": len(self.token_balances),
                "allowances": len(self.allowances),
            }},
        )

    @staticmethod
    def _token(state: ChainState, token: str) -> Any:
        contract = state.code_at(token)
        if contract is None:
            contract = state.deploy(token, Erc20Token())
        return contract

    def to_dict(self) -> Dict[str, Any]:
        return {
            "native_balances": {k: str(v) for k, v in self.native_balances.items()},
            "token_balances": {f"{t}:{o}": str(v) for (t, o), v in self.token_balances.items()},
            "allowances": {f"{t}:{o}:{s}": str(v) for (t, o, s), v in self.allowances.items()},
        }
