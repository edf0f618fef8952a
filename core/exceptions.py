# PATH: core/exceptions.py
"""
Typed exceptions for SETTLESIM.

Distinguishes contract-level reverts (rolled back by the call primitive and
catchable by callers that ask for a result) from fatal conditions such as
gas exhaustion or infrastructure errors.
"""

from typing import Optional

from core.constants import ErrorCode


class SimError(Exception):
    """Base exception for SETTLESIM."""

    code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str = "",
        code: Optional[ErrorCode] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def __str__(self):
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class Revert(SimError):
    """
    A contract call failed.

    The call primitive rolls back every state change made by the failing
    call before the exception leaves it. ``data`` is the raw return data
    handed back to the caller.
    """

    code = ErrorCode.REVERT

    def __init__(
        self,
        message: str = "",
        data: Optional[bytes] = None,
        code: Optional[ErrorCode] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, code=code, details=details)
        self.data = data if data is not None else message.encode("utf-8")


class Unauthorized(Revert):
    """Privileged entry point invoked without the driver capability."""

    code = ErrorCode.UNAUTHORIZED

    def __init__(self, message: str = "caller is not the simulation driver", details: Optional[dict] = None):
        super().__init__(message, details=details)


class InsufficientTraderBalance(Revert):
    """Trader lacks the sell amount after mocking and solver top-up."""

    code = ErrorCode.INSUFFICIENT_TRADER_BALANCE

    def __init__(self, message: str = "trader does not have enough sell token", details: Optional[dict] = None):
        super().__init__(message, details=details)


class SettlementFailure(Revert):
    """
    The settlement payload failed.

    ``data`` is the settlement's return data, passed through verbatim.
    """

    code = ErrorCode.SETTLEMENT_FAILURE

    def __init__(self, data: bytes, details: Optional[dict] = None):
        super().__init__(
            f"settlement reverted: {data[:64]!r}",
            data=data,
            details=details,
        )


class OutOfGas(SimError):
    """Transaction gas limit exhausted. Never caught by call primitives."""

    code = ErrorCode.OUT_OF_GAS


class SimulationInvariantError(SimError):
    """Internal bookkeeping invariant violated."""

    code = ErrorCode.OVERHEAD_EXCEEDS_GAS


class ValidationError(SimError):
    """Malformed input (addresses, amounts, payloads)."""

    code = ErrorCode.INVALID_ADDRESS


class InfraError(SimError):
    """Infrastructure-related errors (RPC, timeouts)."""

    code = ErrorCode.INFRA_RPC_ERROR
