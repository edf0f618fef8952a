# PATH: tests/unit/test_scenario.py
"""
Unit tests for scenario loading and the CLI.
"""

import json
import logging
import unittest
from pathlib import Path

from click.testing import CliRunner

from chains.tokens import NativeWrapper
from core.constants import ErrorCode
from core.exceptions import ValidationError
from core.logging import clear_global_context
from run_simulation import main
from simulation.driver import SimulationDriver
from simulation.scenario import build_scenario, load_scenario

PROJECT_ROOT = Path(__file__).parent.parent.parent
EXAMPLE = PROJECT_ROOT / "scenarios" / "example.yaml"

SOLVER = "0x" + "11" * 20
TRADER = "0x" + "22" * 20
SETTLEMENT = "0x" + "90" * 20
WETH = "0x" + "c0" * 20
USDC = "0x" + "a0" * 20


def scenario_data(payout: int = 50) -> dict:
    return {
        "solver": SOLVER,
        "native_balances": {TRADER: "300"},
        "tokens": [
            {"address": WETH, "symbol": "WETH", "native_wrapper": True, "balances": {SETTLEMENT: 40}},
            {"address": USDC, "symbol": "USDC", "decimals": 6, "balances": {SETTLEMENT: "1000"}},
        ],
        "settlements": [SETTLEMENT],
        "request": {
            "settlement": SETTLEMENT,
            "trader": TRADER,
            "sell_token": WETH,
            "sell_amount": "100",
            "native_token": WETH,
            "tokens": [WETH, USDC],
            "mock_preconditions": True,
            "interactions": [
                {"target": WETH, "method": "transfer_from", "args": [TRADER, SETTLEMENT, 100]},
                {"target": USDC, "method": "transfer", "args": [TRADER, payout]},
            ],
        },
    }


class TestBuildScenario(unittest.TestCase):

    def test_state_and_request(self):
        scenario = build_scenario(scenario_data())
        self.assertEqual(scenario.solver, SOLVER)
        self.assertIsInstance(scenario.state.code_at(WETH), NativeWrapper)
        self.assertEqual(scenario.state.code_at(USDC).decimals, 6)
        self.assertEqual(scenario.state.balance(TRADER), 300)
        self.assertEqual(scenario.request.receiver, TRADER)
        self.assertEqual(scenario.request.sell_amount, 100)
        self.assertTrue(scenario.request.settlement_call.startswith(b'{"interactions"'))

    def test_wrapped_balances_are_backed(self):
        scenario = build_scenario(scenario_data())
        self.assertEqual(scenario.state.code_at(WETH).balance_of(SETTLEMENT), 40)
        self.assertEqual(scenario.state.balance(WETH), 40)

    def test_runs_through_driver(self):
        scenario = build_scenario(scenario_data())
        result = SimulationDriver(scenario.state).simulate(scenario.request, scenario.solver)
        self.assertEqual(result.balances, [40, 1000, 140, 950])

    def test_missing_request(self):
        data = scenario_data()
        del data["request"]
        with self.assertRaises(ValidationError) as ctx:
            build_scenario(data)
        self.assertEqual(ctx.exception.code, ErrorCode.INVALID_PAYLOAD)

    def test_raw_settlement_call(self):
        data = scenario_data()
        del data["request"]["interactions"]
        data["request"]["settlement_call"] = "0xdeadbeef"
        scenario = build_scenario(data)
        self.assertEqual(scenario.request.settlement_call, b"\xde\xad\xbe\xef")

    def test_example_file(self):
        scenario = load_scenario(EXAMPLE)
        self.assertTrue(scenario.request.mock_preconditions)
        self.assertEqual(len(scenario.request.tokens), 2)


class TestCli(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()

    def tearDown(self):
        logging.getLogger().handlers.clear()
        clear_global_context()

    def last_json_line(self, output: str) -> dict:
        return json.loads(output.strip().splitlines()[-1])

    def test_example_scenario(self):
        result = self.runner.invoke(main, ["--scenario", str(EXAMPLE), "--log-level", "ERROR"])
        self.assertEqual(result.exit_code, 0, result.output)
        body = self.last_json_line(result.stdout)
        self.assertEqual(
            body["balances"],
            ["0", "10000000000", "1000000000000000000", "7500000000"],
        )
        self.assertGreater(body["gas_used"], 0)
        self.assertEqual(body["overhead_gas"], 0)

    def test_simulation_error_exit_code(self):
        with self.runner.isolated_filesystem():
            Path("failing.yaml").write_text(json.dumps(scenario_data(payout=5_000)))
            result = self.runner.invoke(
                main, ["--scenario", "failing.yaml", "--log-level", "ERROR", "--no-json-logs"]
            )
        self.assertEqual(result.exit_code, 1)
        error = self.last_json_line(result.stdout)["error"]
        self.assertEqual(error["code"], ErrorCode.SETTLEMENT_FAILURE.value)

    def test_missing_scenario_file(self):
        result = self.runner.invoke(main, ["--scenario", "does-not-exist.yaml"])
        self.assertEqual(result.exit_code, 2)

    def test_unknown_fork_chain(self):
        result = self.runner.invoke(
            main, ["--scenario", str(EXAMPLE), "--fork-chain", "not-a-chain"]
        )
        self.assertEqual(result.exit_code, 2)


if __name__ == "__main__":
    unittest.main()
