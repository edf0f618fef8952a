"""
core - Core utilities and models for SETTLESIM.

This package contains:
- models.py: Data models (SwapRequest, SimulationResult, CallResult)
- constants.py: Sentinels, gas defaults and error codes
- exceptions.py: Typed exceptions with error codes
- validators.py: Address and amount validation
- logging.py: Structured JSON logging
"""

from core.constants import (
    DEFAULT_OVERHEAD_CORRECTION_GAS,
    DEFAULT_TX_GAS_LIMIT,
    MAX_UINT256,
    NATIVE_TOKEN_ADDRESS,
    ZERO_ADDRESS,
    ErrorCode,
)
from core.exceptions import (
    InfraError,
    InsufficientTraderBalance,
    OutOfGas,
    Revert,
    SettlementFailure,
    SimError,
    SimulationInvariantError,
    Unauthorized,
    ValidationError,
)
from core.logging import get_logger, setup_logging
from core.models import (
    CallResult,
    SimulationResult,
    SwapRequest,
    TransferResult,
)

__all__ = [
    # Constants
    "DEFAULT_OVERHEAD_CORRECTION_GAS",
    "DEFAULT_TX_GAS_LIMIT",
    "MAX_UINT256",
    "NATIVE_TOKEN_ADDRESS",
    "ZERO_ADDRESS",
    "ErrorCode",
    # Exceptions
    "InfraError",
    "InsufficientTraderBalance",
    "OutOfGas",
    "Revert",
    "SettlementFailure",
    "SimError",
    "SimulationInvariantError",
    "Unauthorized",
    "ValidationError",
    # Models
    "CallResult",
    "SimulationResult",
    "SwapRequest",
    "TransferResult",
    # Logging
    "get_logger",
    "setup_logging",
]
