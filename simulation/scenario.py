"""
simulation/scenario.py - YAML scenario loading.

SCENARIO FORMAT:
  solver: "0x..."
  native_balances: {"0xowner": 10}
  tokens:
    - address: "0x..."
      symbol: "WETH"
      native_wrapper: true
      balances: {"0xowner": 5}
      allowances: [{owner: "0x...", spender: "0x...", amount: 5}]
  settlements: ["0x..."]            # deployed as InteractionSettlement
  request:
    settlement / trader / sell_token / sell_amount / native_token /
    tokens / receiver / mock_preconditions
    interactions: [{target, method, args, value}]   # or settlement_call: "0x.."

Amounts may be given as strings to keep 256-bit values exact in YAML.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from chains.gas import GasSchedule
from chains.interactions import Interaction, InteractionSettlement, encode_interactions
from chains.overrides import StateOverrides
from chains.state import ChainState
from chains.tokens import Erc20Token, NativeWrapper
from core.constants import ErrorCode
from core.exceptions import ValidationError
from core.models import SwapRequest
from core.validators import normalize_address


@dataclass
class Scenario:
    """Everything one CLI run needs."""
    state: ChainState
    request: SwapRequest
    solver: str


def build_scenario(data: Dict[str, Any], schedule: GasSchedule | None = None) -> Scenario:
    """Build chain state and request from a parsed scenario mapping."""
    try:
        solver = normalize_address(data["solver"], "solver")
        request_data = dict(data["request"])
    except KeyError as e:
        raise ValidationError(f"Scenario missing key: {e}", code=ErrorCode.INVALID_PAYLOAD) from e

    state = ChainState(schedule=schedule)
    overrides = StateOverrides()

    for owner, amount in (data.get("native_balances") or {}).items():
        overrides.set_native(owner, int(amount))

    wrapped_backing: Dict[str, int] = {}
    for token in data.get("tokens") or []:
        address = normalize_address(token["address"], "token")
        symbol = token.get("symbol", "TOKEN")
        decimals = int(token.get("decimals", 18))
        if token.get("native_wrapper"):
            state.deploy(address, NativeWrapper(symbol, decimals))
        else:
            state.deploy(address, Erc20Token(symbol, decimals))

        for owner, amount in (token.get("balances") or {}).items():
            overrides.set_token_balance(address, owner, int(amount))
            if token.get("native_wrapper"):
                wrapped_backing[address] = wrapped_backing.get(address, 0) + int(amount)
        for allowance in token.get("allowances") or []:
            overrides.set_allowance(address, allowance["owner"], allowance["spender"], int(allowance["amount"]))

    # Wrapped balances are backed by native currency held by the wrapper
    for wrapper, amount in wrapped_backing.items():
        current = overrides.native_balances.get(wrapper, 0)
        overrides.set_native(wrapper, current + amount)

    for settlement in data.get("settlements") or []:
        state.deploy(settlement, InteractionSettlement())

    overrides.apply(state)

    if "interactions" in request_data:
        interactions = [Interaction.from_dict(i) for i in request_data.pop("interactions")]
        request_data["settlement_call"] = encode_interactions(interactions)

    return Scenario(state=state, request=SwapRequest.from_dict(request_data), solver=solver)


def load_scenario(path: Path, schedule: GasSchedule | None = None) -> Scenario:
    """Load a scenario YAML file."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return build_scenario(data, schedule)
