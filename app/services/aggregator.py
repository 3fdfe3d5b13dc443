# app/services/aggregator.py
"""
Balance aggregation across a batch of wallet addresses.

Addresses are validated as a whole before any RPC call is made. Balances are
then fetched on a bounded thread pool and consumed in request order; the first
failing address aborts the entire aggregate, so a partial total is never
returned.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from app.core.config import settings
from app.services.address_validator import validate_addresses
from app.services.balance_fetcher import BalanceFetcher, sum_balances
from app.services.errors import RpcFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregateResult:
    """Addresses holding a non-zero balance, and the total over all addresses."""
    addresses: List[str]
    total_balance: Decimal


def _fetch_all(addresses: List[str], fetcher: BalanceFetcher, max_workers: int) -> List[Decimal]:
    """Fetch every balance, returning them in the order of addresses."""
    if max_workers <= 1 or len(addresses) == 1:
        return [fetcher.fetch(address) for address in addresses]

    executor = ThreadPoolExecutor(
        max_workers=min(max_workers, len(addresses)),
        thread_name_prefix="balance-fetch",
    )
    futures = [executor.submit(fetcher.fetch, address) for address in addresses]
    try:
        return [future.result() for future in futures]
    finally:
        # Queued fetches are dropped as soon as one result raises
        executor.shutdown(wait=True, cancel_futures=True)


def aggregate(
    addresses: Sequence[str],
    fetcher: Optional[BalanceFetcher] = None,
    max_workers: Optional[int] = None,
) -> AggregateResult:
    """
    Sum the native-currency balances of a batch of addresses.

    Args:
        addresses: Wallet addresses in request order. Duplicates are fetched
            and counted once per occurrence.
        fetcher: Balance fetcher to use; defaults to one backed by the
            configured ledger node
        max_workers: Upper bound on concurrent fetches; defaults to
            settings.AGGREGATE_MAX_WORKERS. 1 fetches sequentially.

    Returns:
        AggregateResult with the non-zero addresses (request order) and the total

    Raises:
        NoAddressesProvided: If addresses is empty
        InvalidAddressFormat: If any address is malformed (lists all of them)
        RpcFailure: If fetching any balance fails
    """
    valid_addresses = validate_addresses(addresses)

    if fetcher is None:
        fetcher = BalanceFetcher()
    if max_workers is None:
        max_workers = settings.AGGREGATE_MAX_WORKERS

    try:
        balances = _fetch_all(valid_addresses, fetcher, max_workers)
    except RpcFailure as e:
        logger.error(f"Aggregation of {len(valid_addresses)} address(es) aborted: {e}")
        raise

    total_balance = sum_balances(balances)
    funded = [address for address, balance in zip(valid_addresses, balances) if balance > 0]

    logger.info(
        f"Aggregated {len(valid_addresses)} address(es), "
        f"{len(funded)} with a non-zero balance"
    )
    return AggregateResult(addresses=funded, total_balance=total_balance)
