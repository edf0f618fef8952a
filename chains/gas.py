"""
chains/gas.py - Gas schedule and metering.

Pricing follows the EVM access-list model:
- first touch of an account or storage slot in a transaction is cold
- later touches are warm
- storing a nonzero value into an empty slot costs a full set
"""

from dataclasses import dataclass

from core.constants import (
    DEFAULT_CALL_VALUE_GAS,
    DEFAULT_COLD_ACCOUNT_ACCESS_GAS,
    DEFAULT_COLD_SLOAD_GAS,
    DEFAULT_SSTORE_RESET_GAS,
    DEFAULT_SSTORE_SET_GAS,
    DEFAULT_TX_GAS_LIMIT,
    DEFAULT_WARM_ACCESS_GAS,
)
from core.exceptions import OutOfGas


@dataclass(frozen=True)
class GasSchedule:
    """Gas prices for the operations the chain model meters."""
    cold_account_access: int = DEFAULT_COLD_ACCOUNT_ACCESS_GAS
    warm_access: int = DEFAULT_WARM_ACCESS_GAS
    cold_sload: int = DEFAULT_COLD_SLOAD_GAS
    sstore_set: int = DEFAULT_SSTORE_SET_GAS
    sstore_reset: int = DEFAULT_SSTORE_RESET_GAS
    call_value: int = DEFAULT_CALL_VALUE_GAS

    def account_access(self, warm: bool) -> int:
        return self.warm_access if warm else self.cold_account_access

    def sload(self, warm: bool) -> int:
        return self.warm_access if warm else self.cold_sload

    def sstore(self, warm: bool, current: int, new: int) -> int:
        cold_surcharge = 0 if warm else self.cold_sload
        if current == new:
            return self.warm_access + cold_surcharge
        if current == 0:
            return self.sstore_set + cold_surcharge
        return self.sstore_reset + cold_surcharge


class GasMeter:
    """
    Tracks gas consumed by one transaction.

    Raises OutOfGas as soon as a charge would exceed the limit; nothing
    is charged in that case.
    """

    def __init__(self, limit: int = DEFAULT_TX_GAS_LIMIT):
        self.limit = limit
        self.used = 0

    @property
    def gas_left(self) -> int:
        return self.limit - self.used

    def charge(self, amount: int, reason: str = "") -> None:
        if amount < 0:
            raise ValueError(f"Negative gas charge: {amount}")
        if self.used + amount > self.limit:
            raise OutOfGas(
                f"Out of gas: {reason or 'charge'} needs {amount}, {self.gas_left} left",
                details={"limit": self.limit, "used": self.used, "charge": amount},
            )
        self.used += amount
