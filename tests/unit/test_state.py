# PATH: tests/unit/test_state.py
"""
Unit tests for the journaled, gas-metered chain state.

Tests:
A) Rollback of failed calls (invoke, try_invoke, call)
B) Frames: caller / this / value
C) Gas: cold/warm access, OutOfGas never swallowed
D) Transactions and forks
"""

import unittest

from chains.contracts import Contract, external
from chains.state import ChainState
from core.exceptions import OutOfGas, Revert, ValidationError

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
BOX = "0x" + "0b" * 20
PROXY = "0x" + "0c" * 20


class Box(Contract):
    """Stores a number; can be told to fail after writing."""

    @external
    def put(self, value: int, fail: bool = False) -> int:
        self.sstore(("value",), value)
        if fail:
            raise Revert("put failed", data=b"\x01\x02")
        return value

    @external
    def get(self) -> int:
        return self.sload(("value",))

    @external
    def whoami(self) -> tuple:
        return self.caller, self.state.this, self.msg_value

    @external
    def burn_gas(self) -> None:
        self.state.meter.charge(10**12, "burn")

    def internal_only(self) -> None:
        pass


class Proxy(Contract):
    """Forwards to Box, tolerating failures."""

    @external
    def put_and_tolerate(self, value: int) -> bool:
        self.sstore(("touched",), 1)
        return self.state.try_invoke(BOX, "put", value, True).success


def make_state() -> ChainState:
    state = ChainState()
    state.deploy(BOX, Box())
    state.deploy(PROXY, Proxy())
    state.set_balance(ALICE, 1000)
    return state


class TestRollback(unittest.TestCase):

    def setUp(self):
        self.state = make_state()

    def test_invoke_revert_rolls_back_and_propagates(self):
        with self.state.transaction(ALICE):
            self.state.invoke(BOX, "put", 5)
            with self.assertRaises(Revert) as ctx:
                self.state.invoke(BOX, "put", 9, True)
            self.assertEqual(ctx.exception.data, b"\x01\x02")
            self.assertEqual(self.state.invoke(BOX, "get"), 5)

    def test_try_invoke_reports_failure(self):
        with self.state.transaction(ALICE):
            result = self.state.try_invoke(BOX, "put", 9, True)
        self.assertFalse(result.success)
        self.assertEqual(result.return_data, b"\x01\x02")
        self.assertGreater(result.gas_used, 0)
        self.assertEqual(self.state.storage_at(BOX, ("value",)), 0)

    def test_try_invoke_returns_output(self):
        with self.state.transaction(ALICE):
            result = self.state.try_invoke(BOX, "put", 3)
        self.assertTrue(result.success)
        self.assertEqual(result.output, 3)

    def test_nested_failure_only_rolls_back_inner_call(self):
        with self.state.transaction(ALICE):
            tolerated = self.state.invoke(PROXY, "put_and_tolerate", 4)
        self.assertFalse(tolerated)
        self.assertEqual(self.state.storage_at(PROXY, ("touched",)), 1)
        self.assertEqual(self.state.storage_at(BOX, ("value",)), 0)

    def test_value_refunded_on_revert(self):
        with self.state.transaction(ALICE):
            result = self.state.try_invoke(BOX, "put", 1, True, value=300)
        self.assertFalse(result.success)
        self.assertEqual(self.state.balance(ALICE), 1000)
        self.assertEqual(self.state.balance(BOX), 0)

    def test_transaction_rolls_back_on_exception(self):
        with self.assertRaises(Revert):
            with self.state.transaction(ALICE):
                self.state.invoke(BOX, "put", 5)
                self.state.invoke(BOX, "put", 6, True)
        self.assertEqual(self.state.storage_at(BOX, ("value",)), 0)


class TestCalls(unittest.TestCase):

    def setUp(self):
        self.state = make_state()

    def test_frames(self):
        with self.state.transaction(ALICE):
            caller, this, value = self.state.invoke(BOX, "whoami", value=10)
            self.assertEqual(self.state.this, ALICE)
            self.assertEqual(self.state.depth, 1)
        self.assertEqual((caller, this, value), (ALICE, BOX, 10))
        self.assertEqual(self.state.balance(BOX), 10)

    def test_unknown_and_internal_methods_revert(self):
        with self.state.transaction(ALICE):
            with self.assertRaises(Revert):
                self.state.invoke(BOX, "missing")
            with self.assertRaises(Revert):
                self.state.invoke(BOX, "internal_only")

    def test_invoke_on_account_without_code_reverts(self):
        with self.state.transaction(ALICE):
            with self.assertRaises(Revert):
                self.state.invoke(BOB, "get")

    def test_call_to_plain_account_moves_value(self):
        with self.state.transaction(ALICE):
            result = self.state.call(BOB, b"", value=250)
        self.assertTrue(result.success)
        self.assertEqual(self.state.balance(BOB), 250)
        self.assertEqual(self.state.balance(ALICE), 750)

    def test_call_with_insufficient_value_fails(self):
        with self.state.transaction(ALICE):
            result = self.state.call(BOB, b"", value=5000)
        self.assertFalse(result.success)
        self.assertEqual(self.state.balance(BOB), 0)

    def test_call_with_data_to_default_fallback_fails(self):
        with self.state.transaction(ALICE):
            result = self.state.call(BOX, b"\xde\xad")
        self.assertFalse(result.success)

    def test_invalid_target_rejected(self):
        with self.state.transaction(ALICE):
            with self.assertRaises(ValidationError):
                self.state.call("not-an-address")

    def test_invoke_requires_transaction(self):
        with self.assertRaises(RuntimeError):
            self.state.invoke(BOX, "get")


class TestGasAccounting(unittest.TestCase):

    def setUp(self):
        self.state = make_state()

    def test_cold_then_warm_balance_read(self):
        with self.state.transaction(ALICE) as meter:
            self.state.get_balance(BOB)
            self.assertEqual(meter.used, 2600)
            self.state.get_balance(BOB)
            self.assertEqual(meter.used, 2700)

    def test_origin_is_warm(self):
        with self.state.transaction(ALICE) as meter:
            self.state.get_balance(ALICE)
        self.assertEqual(meter.used, 100)

    def test_warm_state_resets_between_transactions(self):
        with self.state.transaction(ALICE) as first:
            self.state.get_balance(BOB)
        with self.state.transaction(ALICE) as second:
            self.state.get_balance(BOB)
        self.assertEqual(first.used, second.used)

    def test_out_of_gas_is_not_swallowed(self):
        with self.assertRaises(OutOfGas):
            with self.state.transaction(ALICE):
                self.state.try_invoke(BOX, "burn_gas")

    def test_out_of_gas_not_swallowed_by_call(self):
        with self.assertRaises(OutOfGas):
            with self.state.transaction(ALICE, gas_limit=1000):
                self.state.call(BOB, b"")

    def test_unmetered_outside_transaction(self):
        self.state.deploy(BOB, Box())
        self.assertEqual(self.state.code_at(BOB).get(), 0)
        self.assertIsNone(self.state.meter)


class TestTransactionsAndForks(unittest.TestCase):

    def test_nested_transactions_rejected(self):
        state = make_state()
        with state.transaction(ALICE):
            with self.assertRaises(RuntimeError):
                with state.transaction(ALICE):
                    pass

    def test_fork_is_independent(self):
        state = make_state()
        fork = state.fork()
        with fork.transaction(ALICE):
            fork.invoke(BOX, "put", 42)
            fork.call(BOB, b"", value=100)
        self.assertEqual(fork.storage_at(BOX, ("value",)), 42)
        self.assertEqual(state.storage_at(BOX, ("value",)), 0)
        self.assertEqual(state.balance(ALICE), 1000)
        self.assertIs(fork.code_at(BOX).state, fork)

    def test_fork_during_transaction_rejected(self):
        state = make_state()
        with state.transaction(ALICE):
            with self.assertRaises(RuntimeError):
                state.fork()

    def test_deploy_keeps_existing_balance(self):
        state = make_state()
        state.deploy(ALICE, Box())
        self.assertEqual(state.balance(ALICE), 1000)
        self.assertTrue(state.is_contract(ALICE))


if __name__ == "__main__":
    unittest.main()
