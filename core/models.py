# PATH: core/models.py
"""
Core data models for SETTLESIM.

RESULT TYPES CONTRACT:
======================
CallResult and TransferResult report success or failure of a nested call
without raising. They are used where a failure is a signal rather than an
error (the receiver warm-up and the best-effort solver top-up).

SWAP REQUEST CONTRACT:
======================
All addresses are normalized to lowercase hex at construction. The
settlement call is an opaque byte string and is never decoded here.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from core.validators import normalize_address, require_amount


@dataclass(frozen=True)
class CallResult:
    """Outcome of a low-level call.

    ``output`` holds the Python return value of typed calls; opaque calls
    only populate ``return_data``.
    """
    success: bool
    return_data: bytes = b""
    gas_used: int = 0
    output: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "return_data": "0x" + self.return_data.hex(),
            "gas_used": self.gas_used,
        }


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a best-effort token transfer."""
    success: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.success


@dataclass
class SwapRequest:
    """Inputs of one settlement simulation."""
    settlement: str
    trader: str
    sell_token: str
    sell_amount: int
    native_token: str
    tokens: Tuple[str, ...]
    receiver: str
    settlement_call: bytes
    mock_preconditions: bool = False

    def __post_init__(self):
        self.settlement = normalize_address(self.settlement, "settlement")
        self.trader = normalize_address(self.trader, "trader")
        self.sell_token = normalize_address(self.sell_token, "sell_token")
        self.native_token = normalize_address(self.native_token, "native_token")
        self.receiver = normalize_address(self.receiver, "receiver")
        self.tokens = tuple(normalize_address(t, "tokens") for t in self.tokens)
        self.sell_amount = require_amount(self.sell_amount, "sell_amount")
        self.settlement_call = bytes(self.settlement_call)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SwapRequest":
        """Build a request from a scenario mapping (hex payload accepted)."""
        call = data.get("settlement_call", b"")
        if isinstance(call, str):
            call = bytes.fromhex(call[2:] if call.startswith("0x") else call)
        return cls(
            settlement=data["settlement"],
            trader=data["trader"],
            sell_token=data["sell_token"],
            sell_amount=int(data["sell_amount"]),
            native_token=data["native_token"],
            tokens=tuple(data.get("tokens", ())),
            receiver=data.get("receiver", data["trader"]),
            settlement_call=call,
            mock_preconditions=bool(data.get("mock_preconditions", False)),
        )


@dataclass
class SimulationResult:
    """Result of one driver run.

    ``balances`` starts with ``token_count`` pre-execution snapshots and ends
    with as many post-execution ones. Entries the settlement recorded itself
    through the harness sit in between. Without ``token_count`` the sequence
    is taken to hold the two snapshots only.
    """
    gas_used: int
    balances: List[int] = field(default_factory=list)
    total_gas: int = 0
    overhead_gas: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)
    token_count: Optional[int] = None

    def _snapshot_size(self) -> int:
        if self.token_count is None:
            return len(self.balances) // 2
        return self.token_count

    def pre_balances(self) -> List[int]:
        return self.balances[: self._snapshot_size()]

    def post_balances(self) -> List[int]:
        size = self._snapshot_size()
        return self.balances[len(self.balances) - size:]

    def settlement_balances(self) -> List[int]:
        """Balances recorded by the settlement between the two snapshots."""
        size = self._snapshot_size()
        return self.balances[size: len(self.balances) - size]

    def balance_deltas(self, tokens: Optional[Tuple[str, ...]] = None) -> Dict[str, int]:
        """Post minus pre, keyed by token when tokens are given, else by index."""
        pre, post = self.pre_balances(), self.post_balances()
        keys = tokens if tokens is not None else [str(i) for i in range(len(pre))]
        return {k: after - before for k, before, after in zip(keys, pre, post)}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gas_used": self.gas_used,
            "balances": [str(b) for b in self.balances],
            "total_gas": self.total_gas,
            "overhead_gas": self.overhead_gas,
            "metadata": self.metadata,
        }
