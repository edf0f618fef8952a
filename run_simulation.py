#!/usr/bin/env python3
"""
run_simulation.py - CLI entrypoint for settlement simulations.

Usage:
    python run_simulation.py --scenario scenarios/example.yaml
    python run_simulation.py -s scenario.yaml --config config/simulation.yaml --no-json-logs
    python run_simulation.py -s scenario.yaml --fork-chain ethereum --fork-block 19000000
"""

import asyncio
import json
import sys
from pathlib import Path

import click

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from chains.fork import load_overrides
from chains.overrides import StateOverrides
from chains.providers import RPCProvider
from chains.state import ChainState
from chains.tokens import NativeWrapper
from config import get_chain_config, load_chains
from core.exceptions import SimError
from core.logging import get_logger, log_error, set_global_context, setup_logging
from core.models import SwapRequest
from simulation.config import load_simulation_config
from simulation.driver import SimulationDriver
from simulation.scenario import load_scenario

logger = get_logger("settlesim.cli")


async def seed_from_chain(
    chain_key: str,
    state: ChainState,
    request: SwapRequest,
    block: int | None,
) -> StateOverrides:
    """
    Read settlement and trader balances from a live node.

    The chain's wrapped native token gets NativeWrapper code when the
    scenario does not define it.
    """
    chain = get_chain_config(chain_key)
    if chain.native_wrapper and state.code_at(chain.native_wrapper) is None:
        state.deploy(chain.native_wrapper, NativeWrapper())

    provider = RPCProvider(chain.chain_id, chain.rpc_endpoints)
    try:
        return await load_overrides(
            provider,
            owners=[request.settlement, request.trader],
            tokens=[*request.tokens, request.sell_token],
            block=block,
        )
    finally:
        await provider.close()


@click.command()
@click.option(
    "--scenario",
    "-s",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Scenario YAML (chain state and swap request)",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Simulation config (default: config/simulation.yaml)",
)
@click.option(
    "--fork-chain",
    default=None,
    type=click.Choice(sorted(load_chains())),
    help="Seed settlement/trader balances from this chain (key in config/chains.yaml)",
)
@click.option(
    "--fork-block",
    default=None,
    type=int,
    help="Block to read balances at (default: latest)",
)
@click.option(
    "--log-level",
    "-l",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=True,
    help="Use JSON log format",
)
def main(
    scenario: Path,
    config_path: Path | None,
    fork_chain: str | None,
    fork_block: int | None,
    log_level: str,
    json_logs: bool,
) -> None:
    """
    SETTLESIM settlement simulation.

    Prints gas used and the pre/post balance snapshots as JSON.
    """
    setup_logging(level=log_level, json_output=json_logs)
    set_global_context(service="settlesim-cli", version="0.1.0")

    config = load_simulation_config(config_path)

    try:
        loaded = load_scenario(scenario, config.gas)
        overrides = None
        if fork_chain:
            overrides = asyncio.run(
                seed_from_chain(fork_chain, loaded.state, loaded.request, fork_block)
            )
        result = SimulationDriver(loaded.state, config).simulate(
            loaded.request, loaded.solver, overrides
        )
    except SimError as e:
        log_error(logger, e.code.value, e.message, details=e.details)
        click.echo(json.dumps({"error": e.to_dict()}, default=str))
        sys.exit(1)

    click.echo(json.dumps(result.to_dict(), default=str))


if __name__ == "__main__":
    main()
