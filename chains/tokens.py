"""
chains/tokens.py - Token contracts and transfer helpers.

Provides:
- Erc20Token: fungible token with balances and allowances in storage
- NativeWrapper: wrapped native currency (deposit / withdraw)
- token_balance(): balance read that understands the native sentinel
- try_transfer(): best-effort transfer returning a TransferResult
- safe_approve(): approval that treats a False return as a revert

SAFE-TRANSFER CONTRACT:
  A token call counts as successful when it does not revert and returns
  either nothing or True. A False return is a failure.
"""

from core.constants import MAX_UINT256
from core.exceptions import Revert
from core.models import TransferResult
from core.validators import is_native_token

from chains.contracts import Contract, external
from chains.state import ChainState


class Erc20Token(Contract):
    """Fungible token contract."""

    def __init__(self, symbol: str = "TOKEN", decimals: int = 18):
        super().__init__()
        self.symbol = symbol
        self.decimals = decimals

    @external
    def balance_of(self, owner: str) -> int:
        return self.sload(("balance", owner.lower()))

    @external
    def allowance(self, owner: str, spender: str) -> int:
        return self.sload(("allowance", owner.lower(), spender.lower()))

    @external
    def total_supply(self) -> int:
        return self.sload(("supply",))

    @external
    def approve(self, spender: str, amount: int) -> bool:
        self.sstore(("allowance", self.caller, spender.lower()), amount)
        return True

    @external
    def transfer(self, to: str, amount: int) -> bool:
        self._move(self.caller, to.lower(), amount)
        return True

    @external
    def transfer_from(self, src: str, dst: str, amount: int) -> bool:
        src, spender = src.lower(), self.caller
        if spender != src:
            allowed = self.sload(("allowance", src, spender))
            if allowed < amount:
                raise Revert(
                    "insufficient allowance",
                    details={"owner": src, "spender": spender, "allowed": allowed, "amount": amount},
                )
            if allowed != MAX_UINT256:
                self.sstore(("allowance", src, spender), allowed - amount)
        self._move(src, dst.lower(), amount)
        return True

    def mint(self, to: str, amount: int) -> None:
        """Credit new tokens (state overrides and wrapping)."""
        to = to.lower()
        self.sstore(("balance", to), self.sload(("balance", to)) + amount)
        self.sstore(("supply",), self.sload(("supply",)) + amount)

    def burn(self, owner: str, amount: int) -> None:
        owner = owner.lower()
        balance = self.sload(("balance", owner))
        if balance < amount:
            raise Revert("burn amount exceeds balance")
        self.sstore(("balance", owner), balance - amount)
        self.sstore(("supply",), self.sload(("supply",)) - amount)

    def _move(self, src: str, dst: str, amount: int) -> None:
        balance = self.sload(("balance", src))
        if balance < amount:
            raise Revert(
                "transfer amount exceeds balance",
                details={"token": self.address, "owner": src, "balance": balance, "amount": amount},
            )
        self.sstore(("balance", src), balance - amount)
        self.sstore(("balance", dst), self.sload(("balance", dst)) + amount)


class NativeWrapper(Erc20Token):
    """Wrapped native currency, backed 1:1 by the contract's native balance."""

    def __init__(self, symbol: str = "WETH", decimals: int = 18):
        super().__init__(symbol, decimals)

    @external
    def deposit(self) -> None:
        self.mint(self.caller, self.msg_value)

    @external
    def withdraw(self, amount: int) -> None:
        recipient = self.caller
        self.burn(recipient, amount)
        result = self.state.call(recipient, b"", value=amount)
        if not result.success:
            raise Revert("native transfer failed", data=result.return_data)

    def fallback(self, data: bytes) -> bytes:
        if data:
            raise Revert("unrecognized call data")
        self.deposit()
        return b""


def token_balance(state: ChainState, token: str, owner: str) -> int:
    """
    Balance of ``owner`` in ``token`` as seen by executing code.

    The native sentinel reads the account's native balance directly, for
    contracts and plain accounts alike. Outside a transaction the read is
    an unmetered view of the token's storage.
    """
    if is_native_token(token):
        return state.get_balance(owner)
    if not state.depth:
        contract = state.code_at(token)
        if contract is None:
            raise Revert(f"call to non-contract {token}")
        return contract.balance_of(owner)
    return state.invoke(token, "balance_of", owner)


def try_transfer(state: ChainState, token: str, to: str, amount: int) -> TransferResult:
    """
    Transfer from the executing account without raising on failure.

    Gas exhaustion still propagates; only reverts and False returns are
    reported as an unsuccessful result.
    """
    if is_native_token(token):
        result = state.call(to, b"", value=amount)
        if result.success:
            return TransferResult(True)
        return TransferResult(False, result.return_data.decode("utf-8", "replace"))

    result = state.try_invoke(token, "transfer", to, amount)
    if not result.success:
        return TransferResult(False, result.return_data.decode("utf-8", "replace"))
    if result.output is False:
        return TransferResult(False, "token returned false")
    return TransferResult(True)


def safe_approve(state: ChainState, token: str, spender: str, amount: int) -> None:
    """Approve ``spender``; a False return is raised as a revert."""
    if state.invoke(token, "approve", spender, amount) is False:
        raise Revert("approve returned false", details={"token": token, "spender": spender})
