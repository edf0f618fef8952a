# PATH: core/validators.py
"""
Input validators for SETTLESIM.

CONTRACTS:
- normalize_address(): Always returns lowercase "0x" + 40 hex chars
- is_native_token(): True only for the reserved native currency sentinel
- require_amount(): Non-negative integer within uint256

USAGE:
    from core.validators import normalize_address, is_native_token

    trader = normalize_address(raw_trader, field="trader")
"""

import re

from core.constants import ErrorCode, MAX_UINT256, NATIVE_TOKEN_ADDRESS
from core.exceptions import ValidationError

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(value: str, field: str = "address") -> str:
    """
    Normalize an address to its lowercase hex form.

    Raises:
        ValidationError: if the value is not a 20-byte hex address
    """
    if not isinstance(value, str) or not ADDRESS_PATTERN.match(value):
        raise ValidationError(
            f"Invalid {field}: {value!r}",
            code=ErrorCode.INVALID_ADDRESS,
            details={"field": field, "value": str(value)},
        )
    return value.lower()


def is_native_token(token: str) -> bool:
    """Check whether a token identifier is the native currency sentinel."""
    return token.lower() == NATIVE_TOKEN_ADDRESS


def require_amount(value: int, field: str = "amount") -> int:
    """Validate an unsigned 256-bit amount."""
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_UINT256:
        raise ValidationError(
            f"Invalid {field}: {value!r}",
            code=ErrorCode.INVALID_AMOUNT,
            details={"field": field, "value": str(value)},
        )
    return value
