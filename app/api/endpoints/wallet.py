# app/api/endpoints/wallet.py
from fastapi import APIRouter, Depends, Query
from starlette.responses import Response
from typing import Optional
import logging

from app.core.config import settings
from app.services import aggregator
from app.services.address_validator import validate_addresses
from app.services.balance_fetcher import BalanceFetcher
from app.services.errors import WalletAggregatorError, AddressRequired
from app.services.ledger_rpc import LedgerRpcClient
from app.api.models.wallet import (
    AggregateRequest,
    AggregateResponse,
    BalanceResponse,
    MetadataResponse,
    ErrorResponse,
)
from app.api.responses import (
    DecimalJSONResponse,
    build_aggregate_response,
    build_balance_response,
    build_error_response,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or malformed addresses"},
    500: {"model": ErrorResponse, "description": "Ledger node query failed"},
}


def get_rpc_client() -> LedgerRpcClient:
    return LedgerRpcClient()


def get_balance_fetcher(client: LedgerRpcClient = Depends(get_rpc_client)) -> BalanceFetcher:
    return BalanceFetcher(client)


@router.post(
    "/aggregate",
    response_model=AggregateResponse,
    response_class=DecimalJSONResponse,
    responses=ERROR_RESPONSES,
    summary="Aggregate Wallet Balances"
)
def aggregate_balances(
    request: AggregateRequest,
    fetcher: BalanceFetcher = Depends(get_balance_fetcher)
) -> Response:
    """
    Sums the native-currency balances of the given wallet addresses.

    All addresses are validated before the ledger node is queried. If a single
    balance lookup fails the whole request fails; no partial total is returned.

    Returns:
        AggregateResponse: Addresses with a non-zero balance and the total balance

    Raises:
        400 if the list is empty or contains malformed addresses,
        500 if the ledger node could not be queried
    """
    try:
        result = aggregator.aggregate(request.addresses, fetcher=fetcher)
    except WalletAggregatorError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error aggregating balances: {e}", exc_info=True)
        return build_error_response(e)

    logger.info(f"Aggregate endpoint accessed for {len(request.addresses)} address(es)")
    return build_aggregate_response(result)


@router.get(
    "/balance",
    response_model=BalanceResponse,
    response_class=DecimalJSONResponse,
    responses=ERROR_RESPONSES,
    summary="Get Wallet Balance"
)
def get_balance(
    address: Optional[str] = Query(None, description="Wallet address to look up."),
    fetcher: BalanceFetcher = Depends(get_balance_fetcher)
) -> Response:
    """
    Returns the native-currency balance of a single wallet address.
    """
    if address is None or not address.strip():
        raise AddressRequired()

    validate_addresses([address])

    try:
        balance = fetcher.fetch(address)
    except WalletAggregatorError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching balance for {address}: {e}", exc_info=True)
        return build_error_response(e)

    return build_balance_response(address, balance)


@router.get(
    "/metadata",
    response_model=MetadataResponse,
    responses={500: ERROR_RESPONSES[500]},
    summary="Get Network Metadata"
)
def get_metadata(client: LedgerRpcClient = Depends(get_rpc_client)) -> MetadataResponse:
    """
    Returns the configured network, its RPC endpoint, chain id and latest block height.
    """
    try:
        chain_id = client.get_chain_id()
        block_height = client.get_block_number()
    except WalletAggregatorError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching network metadata: {e}", exc_info=True)
        return build_error_response(e)

    logger.info(f"Metadata endpoint accessed, chain {chain_id} at block {block_height}")
    return MetadataResponse(
        networkName=settings.LEDGER_NETWORK_NAME,
        rpcUrl=client.rpc_url,
        chainId=str(chain_id),
        blockHeight=block_height
    )
