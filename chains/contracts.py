"""
chains/contracts.py - Base class for code deployed in a ChainState.

A contract keeps no Python-level state of its own: everything persistent
lives in the chain's journaled storage, so that failed calls roll back
cleanly. SimulationHarness is the exception: its instrumentation is not
rolled back. Methods reachable from other accounts are marked with @external.
"""

from typing import TYPE_CHECKING, Callable, Hashable, Optional, TypeVar

from core.exceptions import Revert

if TYPE_CHECKING:
    from chains.state import ChainState

F = TypeVar("F", bound=Callable)


def external(fn: F) -> F:
    """Mark a contract method as callable through ChainState.invoke."""
    fn.__external__ = True
    return fn


def is_external(fn: object) -> bool:
    return callable(fn) and getattr(fn, "__external__", False)


class Contract:
    """
    Code bound to an address.

    Attributes:
        address: Account the code runs as (set by ChainState.deploy)
        state: Owning chain state (set by ChainState.deploy)
    """

    def __init__(self):
        self.address: Optional[str] = None
        self.state: Optional["ChainState"] = None

    def bind(self, state: "ChainState", address: str) -> None:
        self.state = state
        self.address = address

    # -------------------------------------------------------------------------
    # Execution context
    # -------------------------------------------------------------------------

    @property
    def caller(self) -> str:
        """Immediate caller of the current frame (msg.sender)."""
        return self.state.caller

    @property
    def msg_value(self) -> int:
        return self.state.frame.value

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    def sload(self, key: Hashable) -> int:
        return self.state.sload(self.address, key)

    def sstore(self, key: Hashable, value: int) -> None:
        self.state.sstore(self.address, key, value)

    # -------------------------------------------------------------------------
    # Opaque entry point
    # -------------------------------------------------------------------------

    def fallback(self, data: bytes) -> bytes:
        """
        Handle an opaque call.

        The default accepts plain value transfers (empty data) and rejects
        anything else.
        """
        if data:
            raise Revert("unrecognized call data")
        return b""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address})"
