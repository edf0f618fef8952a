"""
chains/ - Simulated chain substrate and live-chain access.

Modules:
- gas: Gas schedule and metering
- contracts: Contract base class and @external marker
- state: Journaled, gas-metered chain state with call frames
- tokens: Token contracts and transfer helpers
- interactions: Settlement stand-in replaying encoded calls
- overrides: State overrides applied before simulation
- providers: RPC provider management with failover
- fork: Seeding overrides from a live node
"""

from chains.gas import GasMeter, GasSchedule
from chains.contracts import Contract, external
from chains.state import ChainState, Frame
from chains.tokens import (
    Erc20Token,
    NativeWrapper,
    safe_approve,
    token_balance,
    try_transfer,
)
from chains.interactions import (
    Interaction,
    InteractionSettlement,
    decode_interactions,
    encode_interactions,
)
from chains.overrides import StateOverrides
from chains.providers import RPCProvider, RPCResponse, RPCStats
from chains.fork import load_overrides

__all__ = [
    # Gas
    "GasMeter",
    "GasSchedule",
    # State
    "ChainState",
    "Contract",
    "Frame",
    "external",
    # Tokens
    "Erc20Token",
    "NativeWrapper",
    "safe_approve",
    "token_balance",
    "try_transfer",
    # Interactions
    "Interaction",
    "InteractionSettlement",
    "decode_interactions",
    "encode_interactions",
    # Overrides
    "StateOverrides",
    "load_overrides",
    # Providers
    "RPCProvider",
    "RPCResponse",
    "RPCStats",
]
