# tests/test_aggregator.py
"""
Unit tests for balance aggregation across multiple addresses.
"""
import threading
import time
import pytest
from decimal import Decimal
from unittest.mock import MagicMock, patch

from app.services.aggregator import aggregate, AggregateResult
from app.services.balance_fetcher import BalanceFetcher, WEI_PER_NATIVE
from app.services.errors import (
    NoAddressesProvided,
    InvalidAddressFormat,
    RpcError,
    RpcFailure,
)

ADDR_A = "0x" + "a" * 40
ADDR_B = "0x" + "b" * 40
ADDR_C = "0x" + "c" * 40
ADDR_D = "0x" + "d" * 40


class StubBalanceSource:
    """Balance source returning fixed smallest-unit amounts per address."""

    def __init__(self, balances, failing=()):
        self.balances = balances
        self.failing = set(failing)
        self.calls = []
        self._lock = threading.Lock()

    def get_balance(self, address):
        with self._lock:
            self.calls.append(address)
        if address in self.failing:
            raise RpcError("RPC request failed: Connection refused")
        return self.balances[address]


def native(value: str) -> int:
    return int(Decimal(value) * WEI_PER_NATIVE)


@pytest.fixture(params=[1, 4], ids=["sequential", "concurrent"])
def max_workers(request):
    return request.param


class TestAggregateValidation:
    """Input errors are raised before any balance is fetched."""

    def test_empty_list_raises(self, max_workers):
        source = StubBalanceSource({})

        with pytest.raises(NoAddressesProvided):
            aggregate([], fetcher=BalanceFetcher(source), max_workers=max_workers)
        assert source.calls == []

    def test_malformed_address_raises_before_fetching(self, max_workers):
        """Every malformed entry is listed and no RPC call is made."""
        source = StubBalanceSource({ADDR_A: native("1")})

        with pytest.raises(InvalidAddressFormat) as exc_info:
            aggregate([ADDR_A, "not-an-address", "0x12"], fetcher=BalanceFetcher(source), max_workers=max_workers)

        assert exc_info.value.invalid_addresses == ["not-an-address", "0x12"]
        assert source.calls == []


class TestAggregateSummation:
    """Totals and zero-balance filtering."""

    def test_two_funded_addresses(self, max_workers):
        source = StubBalanceSource({ADDR_A: native("2.0"), ADDR_B: native("3.0")})

        result = aggregate([ADDR_A, ADDR_B], fetcher=BalanceFetcher(source), max_workers=max_workers)

        assert isinstance(result, AggregateResult)
        assert result.addresses == [ADDR_A, ADDR_B]
        assert result.total_balance == Decimal("5.0")

    def test_zero_balance_address_filtered(self, max_workers):
        """A zero-balance address is dropped from the list but the total is unaffected."""
        source = StubBalanceSource({ADDR_A: 0, ADDR_B: native("5.0")})

        result = aggregate([ADDR_A, ADDR_B], fetcher=BalanceFetcher(source), max_workers=max_workers)

        assert result.addresses == [ADDR_B]
        assert result.total_balance == Decimal("5.0")

    def test_fractional_balances_summed_exactly(self, max_workers):
        source = StubBalanceSource({ADDR_A: native("1.5"), ADDR_B: native("2.25"), ADDR_C: 0})

        result = aggregate([ADDR_A, ADDR_B, ADDR_C], fetcher=BalanceFetcher(source), max_workers=max_workers)

        assert result.addresses == [ADDR_A, ADDR_B]
        assert result.total_balance == Decimal("3.75")

    def test_all_zero_balances(self, max_workers):
        source = StubBalanceSource({ADDR_A: 0, ADDR_B: 0})

        result = aggregate([ADDR_A, ADDR_B], fetcher=BalanceFetcher(source), max_workers=max_workers)

        assert result.addresses == []
        assert result.total_balance == 0

    def test_single_address(self, max_workers):
        source = StubBalanceSource({ADDR_C: native("0.000000000000000001")})

        result = aggregate([ADDR_C], fetcher=BalanceFetcher(source), max_workers=max_workers)

        assert result.addresses == [ADDR_C]
        assert result.total_balance == Decimal("0.000000000000000001")

    def test_large_batch_keeps_request_order(self, max_workers):
        """No cap on the number of addresses; the list follows request order."""
        addresses = [f"0x{i:040x}" for i in range(1, 51)]
        balances = {address: (i % 3) * WEI_PER_NATIVE for i, address in enumerate(addresses)}
        source = StubBalanceSource(balances)

        result = aggregate(addresses, fetcher=BalanceFetcher(source), max_workers=max_workers)

        expected = [address for i, address in enumerate(addresses) if i % 3]
        assert result.addresses == expected
        assert result.total_balance == Decimal(sum(i % 3 for i in range(50)))

    def test_duplicates_counted_twice(self, max_workers):
        """Duplicate addresses are not coalesced."""
        source = StubBalanceSource({ADDR_A: native("1.25")})

        result = aggregate([ADDR_A, ADDR_A], fetcher=BalanceFetcher(source), max_workers=max_workers)

        assert result.addresses == [ADDR_A, ADDR_A]
        assert result.total_balance == Decimal("2.5")
        assert source.calls == [ADDR_A, ADDR_A]

    def test_idempotent(self, max_workers):
        """Repeated calls with unchanged balances give identical results."""
        source = StubBalanceSource({ADDR_A: native("1.5"), ADDR_B: 0, ADDR_C: native("7")})
        fetcher = BalanceFetcher(source)

        first = aggregate([ADDR_A, ADDR_B, ADDR_C], fetcher=fetcher, max_workers=max_workers)
        second = aggregate([ADDR_A, ADDR_B, ADDR_C], fetcher=fetcher, max_workers=max_workers)

        assert first == second


class TestAggregateFailures:
    """A single failed lookup aborts the whole aggregate."""

    def test_failure_aborts_batch(self, max_workers):
        source = StubBalanceSource({ADDR_A: native("2.0"), ADDR_B: native("3.0")}, failing=[ADDR_B])

        with pytest.raises(RpcFailure) as exc_info:
            aggregate([ADDR_A, ADDR_B], fetcher=BalanceFetcher(source), max_workers=max_workers)

        assert exc_info.value.address == ADDR_B
        assert "Connection refused" in str(exc_info.value)

    def test_first_failure_in_request_order_is_reported(self, max_workers):
        source = StubBalanceSource({ADDR_A: native("1")}, failing=[ADDR_B, ADDR_C])

        with pytest.raises(RpcFailure) as exc_info:
            aggregate([ADDR_A, ADDR_B, ADDR_C], fetcher=BalanceFetcher(source), max_workers=max_workers)

        assert exc_info.value.address == ADDR_B

    def test_sequential_stops_at_first_failure(self):
        """Sequential fetching does not query addresses after the failing one."""
        source = StubBalanceSource({ADDR_A: native("1"), ADDR_C: native("1")}, failing=[ADDR_B])

        with pytest.raises(RpcFailure):
            aggregate([ADDR_A, ADDR_B, ADDR_C], fetcher=BalanceFetcher(source), max_workers=1)

        assert source.calls == [ADDR_A, ADDR_B]


class TestAggregateConcurrency:
    """Concurrent fetching keeps request order regardless of completion order."""

    def test_completion_order_does_not_affect_result(self):
        delays = {ADDR_A: 0.05, ADDR_B: 0.0, ADDR_C: 0.02, ADDR_D: 0.0}

        class SlowSource(StubBalanceSource):
            def get_balance(self, address):
                time.sleep(delays[address])
                return super().get_balance(address)

        source = SlowSource({ADDR_A: native("1"), ADDR_B: native("2"), ADDR_C: 0, ADDR_D: native("4")})

        result = aggregate([ADDR_A, ADDR_B, ADDR_C, ADDR_D], fetcher=BalanceFetcher(source), max_workers=4)

        assert result.addresses == [ADDR_A, ADDR_B, ADDR_D]
        assert result.total_balance == Decimal(7)

    def test_unexpected_error_cancels_queued_fetches(self):
        """Queued fetches are dropped when a fetcher raises something other than RpcFailure."""
        addresses = [f"0x{i:040x}" for i in range(1, 21)]
        calls = []
        lock = threading.Lock()

        def fetch(address):
            with lock:
                calls.append(address)
            if address == addresses[0]:
                raise RuntimeError("boom")
            time.sleep(0.05)
            return Decimal(1)

        fetcher = MagicMock()
        fetcher.fetch = fetch

        with pytest.raises(RuntimeError):
            aggregate(addresses, fetcher=fetcher, max_workers=2)

        assert len(calls) < len(addresses) // 2

    @patch("app.services.aggregator.settings")
    def test_default_workers_from_settings(self, mock_settings):
        mock_settings.AGGREGATE_MAX_WORKERS = 1
        source = StubBalanceSource({ADDR_A: native("1")}, failing=[ADDR_B])

        with pytest.raises(RpcFailure):
            aggregate([ADDR_A, ADDR_B, ADDR_C], fetcher=BalanceFetcher(source))

        # Sequential mode stops at the failing address
        assert source.calls == [ADDR_A, ADDR_B]

    @patch("app.services.aggregator.BalanceFetcher")
    def test_default_fetcher_created(self, mock_fetcher_cls):
        fetcher = MagicMock()
        fetcher.fetch.return_value = Decimal("1.5")
        mock_fetcher_cls.return_value = fetcher

        result = aggregate([ADDR_A], max_workers=1)

        mock_fetcher_cls.assert_called_once_with()
        assert result.total_balance == Decimal("1.5")
