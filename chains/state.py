"""
chains/state.py - In-memory, gas-metered chain state.

Provides the execution substrate simulations run on:
- native balances and per-contract storage, with a journal for rollback
- code deployment, including overriding code at an existing account
- call frames (this / caller / value) for nested calls
- typed calls (invoke, try_invoke) and opaque calls (call)
- transaction scoping with a gas meter and cold/warm access tracking

FAILURE CONTRACT:
- A Revert raised inside a call rolls back that call's state changes
- invoke() re-raises the Revert to its caller
- try_invoke() and call() turn it into an unsuccessful CallResult
- Any other exception (OutOfGas included) is never caught here
"""

import copy
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional, Set, Tuple

from chains.contracts import Contract, is_external
from chains.gas import GasMeter, GasSchedule
from core.constants import DEFAULT_TX_GAS_LIMIT
from core.exceptions import Revert
from core.logging import get_logger
from core.models import CallResult
from core.validators import normalize_address

logger = get_logger(__name__)


@dataclass(frozen=True)
class Frame:
    """One level of the call stack."""
    address: str
    caller: str
    value: int = 0


class ChainState:
    """
    Accounts, code and storage for one simulated chain.

    Reads and writes outside a transaction are unmetered, which is how
    state overrides and test setup prepare the chain.
    """

    def __init__(
        self,
        schedule: Optional[GasSchedule] = None,
        gas_limit: int = DEFAULT_TX_GAS_LIMIT,
    ):
        self.schedule = schedule or GasSchedule()
        self.gas_limit = gas_limit
        self.meter: Optional[GasMeter] = None

        self._native: Dict[str, int] = {}
        self._storage: Dict[str, Dict[Hashable, int]] = {}
        self._code: Dict[str, Contract] = {}

        self._journal: List[Tuple] = []
        self._frames: List[Frame] = []
        self._warm_accounts: Set[str] = set()
        self._warm_slots: Set[Tuple[str, Hashable]] = set()

    # -------------------------------------------------------------------------
    # Accounts and code
    # -------------------------------------------------------------------------

    def balance(self, address: str) -> int:
        """Native balance, unmetered."""
        return self._native.get(address.lower(), 0)

    def set_balance(self, address: str, amount: int) -> None:
        address = normalize_address(address)
        self._journal_native(address)
        self._native[address] = amount

    def deploy(self, address: str, contract: Contract) -> Contract:
        """
        Put code at an address.

        Existing balances and storage are kept, so deploying over an
        account that already holds funds mirrors a code override.
        """
        address = normalize_address(address)
        contract.bind(self, address)
        self._code[address] = contract
        return contract

    def code_at(self, address: str) -> Optional[Contract]:
        return self._code.get(address.lower())

    def is_contract(self, address: str) -> bool:
        return address.lower() in self._code

    def storage_at(self, address: str, key: Hashable) -> int:
        """Storage value, unmetered."""
        return self._storage.get(address.lower(), {}).get(key, 0)

    def fork(self) -> "ChainState":
        """Independent copy for throw-away execution."""
        if self._frames:
            raise RuntimeError("Cannot fork during a transaction")
        forked = copy.deepcopy(self)
        forked._journal = []
        return forked

    # -------------------------------------------------------------------------
    # Frames
    # -------------------------------------------------------------------------

    @property
    def frame(self) -> Frame:
        if not self._frames:
            raise RuntimeError("No active transaction")
        return self._frames[-1]

    @property
    def this(self) -> str:
        return self.frame.address

    @property
    def caller(self) -> str:
        return self.frame.caller

    @property
    def depth(self) -> int:
        return len(self._frames)

    @property
    def gas_left(self) -> int:
        if self.meter is None:
            raise RuntimeError("No active transaction")
        return self.meter.gas_left

    # -------------------------------------------------------------------------
    # Metered primitives
    # -------------------------------------------------------------------------

    def _charge(self, amount: int, reason: str) -> None:
        if self.meter is not None:
            self.meter.charge(amount, reason)

    def _touch_account(self, address: str) -> bool:
        """Mark an account warm; returns whether it already was."""
        warm = address in self._warm_accounts
        self._warm_accounts.add(address)
        return warm

    def _touch_slot(self, address: str, key: Hashable) -> bool:
        slot = (address, key)
        warm = slot in self._warm_slots
        self._warm_slots.add(slot)
        return warm

    def get_balance(self, address: str) -> int:
        """Native balance read as executed code sees it (metered)."""
        address = address.lower()
        warm = self._touch_account(address)
        self._charge(self.schedule.account_access(warm), "balance")
        return self._native.get(address, 0)

    def sload(self, address: str, key: Hashable) -> int:
        warm = self._touch_slot(address, key)
        self._charge(self.schedule.sload(warm), "sload")
        return self._storage.get(address, {}).get(key, 0)

    def sstore(self, address: str, key: Hashable, value: int) -> None:
        if value < 0:
            raise ValueError(f"Negative storage value for {key!r}")
        current = self._storage.get(address, {}).get(key, 0)
        warm = self._touch_slot(address, key)
        self._charge(self.schedule.sstore(warm, current, value), "sstore")
        self._write_slot(address, key, value)

    def _write_slot(self, address: str, key: Hashable, value: int) -> None:
        slots = self._storage.setdefault(address, {})
        self._journal.append(("storage", address, key, slots.get(key, 0)))
        if value:
            slots[key] = value
        else:
            slots.pop(key, None)

    def _journal_native(self, address: str) -> None:
        self._journal.append(("native", address, self._native.get(address, 0)))

    def _move_native(self, src: str, dst: str, amount: int) -> None:
        available = self._native.get(src, 0)
        if available < amount:
            raise Revert(
                "insufficient native balance",
                details={"account": src, "available": available, "required": amount},
            )
        self._journal_native(src)
        self._journal_native(dst)
        self._native[src] = available - amount
        self._native[dst] = self._native.get(dst, 0) + amount

    # -------------------------------------------------------------------------
    # Journal
    # -------------------------------------------------------------------------

    def snapshot(self) -> int:
        return len(self._journal)

    def revert_to(self, snapshot: int) -> None:
        while len(self._journal) > snapshot:
            entry = self._journal.pop()
            if entry[0] == "native":
                _, address, old = entry
                self._native[address] = old
            else:
                _, address, key, old = entry
                slots = self._storage.setdefault(address, {})
                if old:
                    slots[key] = old
                else:
                    slots.pop(key, None)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self, origin: str, gas_limit: Optional[int] = None) -> Iterator[GasMeter]:
        """
        Run a metered transaction from ``origin``.

        Every state change is rolled back if the block raises.
        """
        if self._frames:
            raise RuntimeError("Nested transactions are not supported")
        origin = normalize_address(origin, "origin")
        meter = GasMeter(gas_limit if gas_limit is not None else self.gas_limit)
        self.meter = meter
        self._warm_accounts = {origin}
        self._warm_slots = set()
        self._frames.append(Frame(address=origin, caller=origin))
        start = self.snapshot()
        try:
            yield meter
        except BaseException:
            self.revert_to(start)
            raise
        finally:
            self._frames.clear()
            self.meter = None
            self._warm_accounts = set()
            self._warm_slots = set()

    # -------------------------------------------------------------------------
    # Calls
    # -------------------------------------------------------------------------

    def _run(self, target: str, value: int, body: Callable[[], Any]) -> Any:
        target = normalize_address(target, "call target")
        sender = self.this
        warm = self._touch_account(target)
        cost = self.schedule.account_access(warm)
        if value:
            cost += self.schedule.call_value
        self._charge(cost, f"call {target}")

        start = self.snapshot()
        self._frames.append(Frame(address=target, caller=sender, value=value))
        try:
            if value:
                self._move_native(sender, target, value)
            return body()
        except Revert:
            self.revert_to(start)
            raise
        finally:
            self._frames.pop()

    def invoke(self, target: str, method: str, *args: Any, value: int = 0) -> Any:
        """
        Call an external method of the contract at ``target``.

        Reverts propagate to the caller after rollback.
        """
        def body() -> Any:
            contract = self._code.get(target.lower())
            if contract is None:
                raise Revert(f"call to non-contract {target}")
            fn = getattr(contract, method, None)
            if not is_external(fn):
                raise Revert(f"{type(contract).__name__} has no external method {method}")
            return fn(*args)

        return self._run(target, value, body)

    def try_invoke(self, target: str, method: str, *args: Any, value: int = 0) -> CallResult:
        """Like invoke(), but reports a revert instead of raising it."""
        gas_start = self.meter.used if self.meter else 0
        try:
            output = self.invoke(target, method, *args, value=value)
        except Revert as exc:
            logger.debug(
                "Call reverted",
                extra={"context": {"target": target, "method": method, "reason": exc.message}},
            )
            return CallResult(False, exc.data, self._gas_since(gas_start))
        return CallResult(True, b"", self._gas_since(gas_start), output)

    def call(self, target: str, data: bytes = b"", value: int = 0) -> CallResult:
        """
        Low-level call with an opaque payload.

        Calls to accounts without code only move value.
        """
        def body() -> bytes:
            contract = self._code.get(target.lower())
            if contract is None:
                return b""
            return contract.fallback(bytes(data)) or b""

        gas_start = self.meter.used if self.meter else 0
        try:
            return_data = self._run(target, value, body)
        except Revert as exc:
            return CallResult(False, exc.data, self._gas_since(gas_start))
        return CallResult(True, return_data, self._gas_since(gas_start))

    def _gas_since(self, gas_start: int) -> int:
        return (self.meter.used if self.meter else 0) - gas_start
