"""
chains/fork.py - Seed simulations from live chain state.

Reads native and token balances at a pinned block and returns them as
StateOverrides, ready to be applied to a local ChainState.
"""

import asyncio
from typing import Iterable

from core.logging import get_logger
from core.validators import is_native_token, normalize_address

from chains.overrides import StateOverrides
from chains.providers import RPCProvider

logger = get_logger(__name__)


async def load_overrides(
    provider: RPCProvider,
    owners: Iterable[str],
    tokens: Iterable[str],
    block: int | str | None = None,
) -> StateOverrides:
    """
    Fetch balances of every (token, owner) pair plus native balances.

    Args:
        provider: RPC provider for the chain
        owners: Accounts to read
        tokens: Token addresses (the native sentinel is read as native)
        block: Block number or tag; pinned to the latest block when None

    Raises:
        InfraError: If the node cannot be reached
    """
    owners = [normalize_address(o, "owner") for o in owners]
    tokens = [normalize_address(t, "token") for t in tokens if not is_native_token(t)]

    if block is None:
        block = await provider.get_block_number()
    block_tag = hex(block) if isinstance(block, int) else block

    natives = await asyncio.gather(*(provider.get_balance(o, block_tag) for o in owners))
    pairs = [(t, o) for t in tokens for o in owners]
    balances = await asyncio.gather(
        *(provider.get_token_balance(t, o, block_tag) for t, o in pairs)
    )

    overrides = StateOverrides()
    for owner, amount in zip(owners, natives):
        overrides.set_native(owner, amount)
    for (token, owner), amount in zip(pairs, balances):
        overrides.set_token_balance(token, owner, amount)

    logger.info(
        "Loaded state overrides",
        extra={"context": {
            "chain_id": provider.chain_id,
            "block": block_tag,
            "owners": len(owners),
            "tokens": len(tokens),
        }},
    )
    return overrides
