# PATH: tests/unit/test_driver.py
"""
Unit tests for SimulationDriver.

Tests:
A) End-to-end result shape and balance deltas
B) Isolation: base state untouched, repeated runs identical
C) Failures propagate with the base state unchanged
D) Balances recorded by the settlement stay out of the deltas
"""

import unittest

from chains.interactions import Interaction, InteractionSettlement, encode_interactions
from chains.overrides import StateOverrides
from chains.state import ChainState
from chains.tokens import Erc20Token, NativeWrapper
from core.exceptions import InsufficientTraderBalance, OutOfGas, SettlementFailure
from core.models import SwapRequest
from simulation.config import SimulationConfig
from simulation.driver import SimulationDriver
from simulation.harness import SimulationHarness

SOLVER = "0x" + "11" * 20
TRADER = "0x" + "22" * 20
RECEIVER = "0x" + "33" * 20
SETTLEMENT = "0x" + "90" * 20
WETH = "0x" + "c0" * 20
USDC = "0x" + "a0" * 20


def make_state() -> ChainState:
    state = ChainState()
    state.deploy(WETH, NativeWrapper())
    usdc = state.deploy(USDC, Erc20Token("USDC", 6))
    state.deploy(SETTLEMENT, InteractionSettlement())
    usdc.mint(SETTLEMENT, 5_000)
    state.set_balance(TRADER, 1_000)
    return state


def make_request(sell_amount: int = 400, buy_amount: int = 1_200, mock: bool = True) -> SwapRequest:
    payload = encode_interactions([
        Interaction(target=WETH, method="transfer_from", args=[TRADER, SETTLEMENT, sell_amount]),
        Interaction(target=USDC, method="transfer", args=[TRADER, buy_amount]),
    ])
    return SwapRequest(
        settlement=SETTLEMENT,
        trader=TRADER,
        sell_token=WETH,
        sell_amount=sell_amount,
        native_token=WETH,
        tokens=(WETH, USDC),
        receiver=TRADER,
        settlement_call=payload,
        mock_preconditions=mock,
    )


class TestSimulate(unittest.TestCase):

    def setUp(self):
        self.state = make_state()
        self.driver = SimulationDriver(self.state)

    def test_result(self):
        result = self.driver.simulate(make_request(), SOLVER)
        self.assertEqual(len(result.balances), 4)
        self.assertEqual(result.balance_deltas((WETH, USDC)), {WETH: 400, USDC: -1_200})
        self.assertGreater(result.gas_used, 0)
        self.assertLessEqual(result.gas_used, result.total_gas)
        self.assertEqual(result.overhead_gas, 0)
        self.assertEqual(result.metadata["solver"], SOLVER)

    def test_base_state_untouched(self):
        self.driver.simulate(make_request(), SOLVER)
        self.assertEqual(self.state.balance(TRADER), 1_000)
        self.assertIsNone(self.state.code_at(SOLVER))
        self.assertIsNone(self.state.code_at(TRADER))
        self.assertEqual(self.state.code_at(USDC).balance_of(SETTLEMENT), 5_000)

    def test_repeated_runs_are_identical(self):
        first = self.driver.simulate(make_request(), SOLVER)
        second = self.driver.simulate(make_request(), SOLVER)
        self.assertEqual(first.to_dict(), second.to_dict())

    def test_fresh_harness_per_run(self):
        self.state.deploy(SOLVER, SimulationHarness())
        result = self.driver.simulate(make_request(), SOLVER)
        self.assertEqual(len(result.balances), 4)

    def test_to_dict_serializes_balances_as_strings(self):
        result = self.driver.simulate(make_request(), SOLVER)
        self.assertTrue(all(isinstance(b, str) for b in result.to_dict()["balances"]))


class TestFailures(unittest.TestCase):

    def setUp(self):
        self.state = make_state()

    def test_insufficient_trader_balance(self):
        driver = SimulationDriver(self.state)
        with self.assertRaises(InsufficientTraderBalance):
            driver.simulate(make_request(sell_amount=5_000), SOLVER)
        self.assertEqual(self.state.balance(TRADER), 1_000)

    def test_settlement_failure(self):
        driver = SimulationDriver(self.state)
        with self.assertRaises(SettlementFailure) as ctx:
            driver.simulate(make_request(buy_amount=9_999), SOLVER)
        self.assertEqual(ctx.exception.data, b"transfer amount exceeds balance")

    def test_without_mocking_settlement_cannot_pull(self):
        driver = SimulationDriver(self.state)
        with self.assertRaises(SettlementFailure) as ctx:
            driver.simulate(make_request(mock=False), SOLVER)
        self.assertEqual(ctx.exception.data, b"insufficient allowance")

    def test_out_of_gas(self):
        driver = SimulationDriver(self.state, SimulationConfig(tx_gas_limit=20_000))
        with self.assertRaises(OutOfGas):
            driver.simulate(make_request(), SOLVER)


class TestOverrides(unittest.TestCase):

    def test_overrides_fund_settlement(self):
        state = make_state()
        overrides = StateOverrides().set_token_balance(USDC, SETTLEMENT, 100)
        driver = SimulationDriver(state)
        with self.assertRaises(SettlementFailure):
            driver.simulate(make_request(), SOLVER, overrides)
        self.assertEqual(state.code_at(USDC).balance_of(SETTLEMENT), 5_000)

    def test_overrides_fund_trader_without_mocking(self):
        state = make_state()
        overrides = (
            StateOverrides()
            .set_token_balance(WETH, TRADER, 400)
            .set_allowance(WETH, TRADER, SETTLEMENT, 400)
        )
        result = SimulationDriver(state).simulate(make_request(mock=False), SOLVER, overrides)
        self.assertEqual(result.balance_deltas((WETH, USDC))[WETH], 400)


class TestSettlementRecordedBalances(unittest.TestCase):

    def test_deltas_skip_balances_recorded_by_settlement(self):
        payload = encode_interactions([
            Interaction(target=USDC, method="transfer", args=[RECEIVER, 10]),
            Interaction(target=SOLVER, method="store_balance", args=[USDC, RECEIVER, True]),
        ])
        request = SwapRequest(
            settlement=SETTLEMENT,
            trader=TRADER,
            sell_token=WETH,
            sell_amount=400,
            native_token=WETH,
            tokens=(WETH, USDC),
            receiver=RECEIVER,
            settlement_call=payload,
        )
        result = SimulationDriver(make_state()).simulate(request, SOLVER)
        self.assertEqual(result.balances, [0, 5_000, 10, 0, 4_990])
        self.assertEqual(result.token_count, 2)
        self.assertEqual(result.pre_balances(), [0, 5_000])
        self.assertEqual(result.post_balances(), [0, 4_990])
        self.assertEqual(result.settlement_balances(), [10])
        self.assertEqual(result.balance_deltas((WETH, USDC)), {WETH: 0, USDC: -10})
        self.assertEqual(result.overhead_gas, 300)


if __name__ == "__main__":
    unittest.main()
