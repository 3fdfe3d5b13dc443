# app/services/ledger_rpc.py
"""
JSON-RPC client for the ledger node balances are read from.

Only read-only calls are made: eth_getBalance, eth_blockNumber and eth_chainId.
Every failure (transport, timeout, HTTP status, JSON-RPC error object or a
malformed result) is raised as RpcError; nothing is retried here.
"""
import logging
import itertools
import requests
from requests.exceptions import RequestException
from typing import Any, List, Optional

from app.core.config import settings
from app.services.errors import RpcError

logger = logging.getLogger(__name__)

_request_ids = itertools.count(1)


class LedgerRpcClient:
    """Thin JSON-RPC 2.0 client over requests."""

    def __init__(self, rpc_url: Optional[str] = None, timeout: Optional[float] = None):
        self.rpc_url = str(rpc_url or settings.LEDGER_RPC_URL)
        self.timeout = timeout if timeout is not None else settings.RPC_TIMEOUT_SECONDS

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Sends a single JSON-RPC request and returns its `result` member.

        Raises:
            RpcError: If the call fails for any reason
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(_request_ids),
        }
        try:
            response = requests.post(self.rpc_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
        except RequestException as e:
            logger.error(f"RPC call {method} to {self.rpc_url} failed: {e}")
            raise RpcError(f"RPC request failed: {e}") from e
        except ValueError as e:
            # JSON decoding errors
            logger.error(f"RPC call {method} returned a non-JSON body: {e}")
            raise RpcError(f"Invalid RPC response: {e}") from e

        if not isinstance(result, dict):
            raise RpcError(f"Invalid RPC response: expected an object, got {type(result).__name__}")

        if result.get("error") is not None:
            raise RpcError(f"RPC error: {result['error']}")

        if "result" not in result:
            raise RpcError("Invalid RPC response: missing 'result' field")

        return result["result"]

    def _call_quantity(self, method: str, params: Optional[List[Any]] = None) -> int:
        """Calls a method whose result is a hex-encoded quantity and returns it as int."""
        value = self.call(method, params)
        if not isinstance(value, str):
            raise RpcError(f"Invalid RPC response: {method} result is not a hex string: {value!r}")
        try:
            # Convert hex to int
            return int(value, 16)
        except ValueError as e:
            raise RpcError(f"Invalid RPC response: {method} result is not a hex string: {value!r}") from e

    def get_balance(self, address: str) -> int:
        """Returns the balance of address in the ledger's smallest unit."""
        return self._call_quantity("eth_getBalance", [address, "latest"])

    def get_block_number(self) -> int:
        """Returns the height of the latest block."""
        return self._call_quantity("eth_blockNumber")

    def get_chain_id(self) -> int:
        return self._call_quantity("eth_chainId")
