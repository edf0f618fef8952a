"""
chains/interactions.py - Settlement stand-in that executes encoded calls.

PAYLOAD FORMAT:
  UTF-8 JSON object {"interactions": [{"target", "method", "args", "value"}]}
  Each interaction is a typed call made by the settlement contract, so
  token pulls use transfer_from with the settlement as spender. An
  interaction without "method" is an opaque call carrying "data" (hex).

There is no matching or pricing here; the contract only replays calls.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.constants import ErrorCode
from core.exceptions import Revert, ValidationError

from chains.contracts import Contract, external


@dataclass
class Interaction:
    """One call performed by the settlement."""
    target: str
    method: Optional[str] = None
    args: List[Any] = field(default_factory=list)
    value: int = 0
    data: bytes = b""

    def to_dict(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"target": self.target, "value": self.value}
        if self.method is not None:
            entry["method"] = self.method
            entry["args"] = list(self.args)
        else:
            entry["data"] = "0x" + self.data.hex()
        return entry

    @classmethod
    def from_dict(cls, entry: Dict[str, Any]) -> "Interaction":
        data = entry.get("data", "0x")
        return cls(
            target=entry["target"],
            method=entry.get("method"),
            args=list(entry.get("args", [])),
            value=int(entry.get("value", 0)),
            data=bytes.fromhex(data[2:] if data.startswith("0x") else data),
        )


def encode_interactions(interactions: List[Interaction]) -> bytes:
    return json.dumps(
        {"interactions": [i.to_dict() for i in interactions]},
        separators=(",", ":"),
    ).encode("utf-8")


def decode_interactions(payload: bytes) -> List[Interaction]:
    try:
        body = json.loads(payload.decode("utf-8"))
        return [Interaction.from_dict(entry) for entry in body["interactions"]]
    except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise ValidationError(
            f"Malformed interactions payload: {e}",
            code=ErrorCode.INVALID_PAYLOAD,
        ) from e


class InteractionSettlement(Contract):
    """
    Settlement contract that replays a batch of interactions.

    Traders approve the settlement itself, so vault_relayer() returns
    the settlement's own address.
    """

    @external
    def vault_relayer(self) -> str:
        return self.address

    def fallback(self, data: bytes) -> bytes:
        if not data:
            return b""
        try:
            interactions = decode_interactions(data)
        except ValidationError as e:
            raise Revert(e.message) from e

        for interaction in interactions:
            if interaction.method is None:
                result = self.state.call(interaction.target, interaction.data, value=interaction.value)
                if not result.success:
                    raise Revert("interaction failed", data=result.return_data)
            else:
                self.state.invoke(
                    interaction.target,
                    interaction.method,
                    *interaction.args,
                    value=interaction.value,
                )
        return b""
