"""
simulation/trader.py - Trader-side precondition preparer.

Installed as code at the trader's address so that it runs with the
trader's own authority, the way a state override replaces account code.
It performs what the trader would have done before placing the order:
wrap missing native currency and approve the settlement's spender.
"""

from chains.contracts import Contract, external
from chains.tokens import safe_approve, token_balance
from core.constants import MAX_UINT256
from core.exceptions import Revert
from core.logging import get_logger

logger = get_logger(__name__)


class TraderPreconditions(Contract):
    """Precondition mocker executed as the trader."""

    @external
    def prepare_swap(
        self,
        settlement: str,
        sell_token: str,
        sell_amount: int,
        native_token: str,
    ) -> None:
        if self.sload(("prepared",)):
            raise Revert("prepare_swap can only be called once")
        self.sstore(("prepared",), 1)

        state = self.state
        if sell_token.lower() == native_token.lower():
            available = token_balance(state, sell_token, self.address)
            if available < sell_amount:
                # Wrap only what is missing and only if the trader can afford it;
                # otherwise the solver top-up or the balance check decides.
                to_wrap = sell_amount - available
                if state.get_balance(self.address) >= to_wrap:
                    state.invoke(native_token, "deposit", value=to_wrap)
                    logger.debug(
                        "Wrapped native currency for trader",
                        extra={"context": {"trader": self.address, "amount": to_wrap}},
                    )

        spender = state.invoke(settlement, "vault_relayer")
        if state.invoke(sell_token, "allowance", self.address, spender) < sell_amount:
            safe_approve(state, sell_token, spender, MAX_UINT256)
