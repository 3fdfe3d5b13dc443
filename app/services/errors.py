# app/services/errors.py
"""Error types raised by the balance aggregation pipeline."""
from typing import List, Sequence


class WalletAggregatorError(Exception):
    """Base exception for the wallet aggregator."""
    pass


class NoAddressesProvided(WalletAggregatorError):
    """The request did not contain any address."""

    def __init__(self, message: str = "No addresses provided."):
        super().__init__(message)


class AddressRequired(WalletAggregatorError):
    """A single-address lookup was made without an address."""

    def __init__(self, message: str = "Address is required."):
        super().__init__(message)


class InvalidAddressFormat(WalletAggregatorError):
    """One or more addresses do not match the 0x-prefixed 40 hex digit format."""

    def __init__(self, invalid_addresses: Sequence[str]):
        self.invalid_addresses: List[str] = list(invalid_addresses)
        super().__init__(
            f"Invalid address format: {len(self.invalid_addresses)} address(es) rejected."
        )


class RpcError(WalletAggregatorError):
    """The ledger node could not be reached or answered with an error."""
    pass


class RpcFailure(WalletAggregatorError):
    """Fetching the balance of a specific address failed."""

    def __init__(self, address: str, cause: Exception):
        self.address = address
        self.cause = cause
        super().__init__(f"Error fetching balance for {address}: {cause}")
