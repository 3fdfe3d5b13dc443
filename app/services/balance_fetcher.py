# app/services/balance_fetcher.py
import logging
from decimal import Decimal, localcontext
from typing import Iterable, Optional, Protocol

from app.services.errors import RpcError, RpcFailure
from app.services.ledger_rpc import LedgerRpcClient

logger = logging.getLogger(__name__)

# Conversion constant
WEI_PER_NATIVE = 10 ** 18

# Enough digits to hold any 256-bit amount exactly
_DECIMAL_PRECISION = 100


class BalanceSource(Protocol):
    def get_balance(self, address: str) -> int:
        ...


def wei_to_native(wei: int) -> Decimal:
    """Convert a smallest-unit amount to the native display unit without rounding."""
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        return Decimal(wei) / WEI_PER_NATIVE


def sum_balances(balances: Iterable[Decimal]) -> Decimal:
    """Sum balances exactly."""
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        return sum(balances, Decimal(0))


class BalanceFetcher:
    """Reads the native-currency balance of one address from the ledger node."""

    def __init__(self, source: Optional[BalanceSource] = None):
        self.source = source if source is not None else LedgerRpcClient()

    def fetch(self, address: str) -> Decimal:
        """
        Fetch the balance of a single address.

        Args:
            address: A validated wallet address

        Returns:
            The balance in the native display unit

        Raises:
            RpcFailure: If the node could not be queried or returned a bad amount
        """
        try:
            wei = self.source.get_balance(address)
        except RpcError as e:
            raise RpcFailure(address, e) from e
        except Exception as e:
            logger.error(f"Unexpected error fetching balance for {address}: {e}", exc_info=True)
            raise RpcFailure(address, e) from e

        if isinstance(wei, bool) or not isinstance(wei, int) or wei < 0:
            raise RpcFailure(address, RpcError(f"Invalid balance amount: {wei!r}"))

        balance = wei_to_native(wei)
        logger.debug(f"Fetched balance for {address}: {balance}")
        return balance
