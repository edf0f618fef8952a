# PATH: core/constants.py
"""
Constants for SETTLESIM.

Contains enums, defaults, and configuration constants shared by the
chain model and the simulation harness.
"""

from enum import Enum
from typing import Final

# =============================================================================
# TOKEN IDENTITIES
# =============================================================================

# Reserved token identifier for native chain currency (not a contract).
NATIVE_TOKEN_ADDRESS: Final[str] = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"

ZERO_ADDRESS: Final[str] = "0x0000000000000000000000000000000000000000"

MAX_UINT256: Final[int] = 2**256 - 1

# =============================================================================
# GAS DEFAULTS
# =============================================================================

# Transaction gas limit used when none is configured
DEFAULT_TX_GAS_LIMIT: Final[int] = 30_000_000

# Gas charged outside the metered region of an overhead-counted balance
# read: the warm call from the instrumented contract into the harness.
# Tied to DEFAULT_WARM_ACCESS_GAS; recalibrate when the schedule changes.
DEFAULT_OVERHEAD_CORRECTION_GAS: Final[int] = 100

DEFAULT_COLD_ACCOUNT_ACCESS_GAS: Final[int] = 2600
DEFAULT_WARM_ACCESS_GAS: Final[int] = 100
DEFAULT_COLD_SLOAD_GAS: Final[int] = 2100
DEFAULT_SSTORE_SET_GAS: Final[int] = 20000
DEFAULT_SSTORE_RESET_GAS: Final[int] = 2900
DEFAULT_CALL_VALUE_GAS: Final[int] = 9000

# JSON-RPC selector for ERC20 balanceOf(address)
BALANCE_OF_SELECTOR: Final[str] = "0x70a08231"


class ErrorCode(str, Enum):
    """
    Canonical error codes.

    Every SimError carries one of these so that drivers and the CLI can
    report failures without parsing messages.
    """
    # Authorization
    UNAUTHORIZED = "UNAUTHORIZED"

    # Funding
    INSUFFICIENT_TRADER_BALANCE = "INSUFFICIENT_TRADER_BALANCE"

    # Execution
    REVERT = "REVERT"
    SETTLEMENT_FAILURE = "SETTLEMENT_FAILURE"
    OUT_OF_GAS = "OUT_OF_GAS"
    OVERHEAD_EXCEEDS_GAS = "OVERHEAD_EXCEEDS_GAS"

    # Input
    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"

    # Infrastructure
    INFRA_RPC_ERROR = "INFRA_RPC_ERROR"
    INFRA_TIMEOUT = "INFRA_TIMEOUT"

    UNKNOWN = "UNKNOWN"
