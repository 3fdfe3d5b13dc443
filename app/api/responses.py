# app/api/responses.py
"""
Maps aggregation results and errors to HTTP responses.

Input problems (no addresses, malformed addresses) are client faults and map to
400. A failed balance lookup is a server-side fault and maps to 500.

Balances are written as exact JSON numbers: Decimal values are rendered with
simplejson rather than going through float.
"""
import logging
import simplejson
from decimal import Decimal, localcontext
from typing import Any
from fastapi import Request, status
from starlette.responses import JSONResponse

from app.api.models.wallet import AggregateResponse, BalanceResponse, ErrorResponse
from app.services.aggregator import AggregateResult
from app.services.errors import (
    WalletAggregatorError,
    NoAddressesProvided,
    AddressRequired,
    InvalidAddressFormat,
    RpcError,
    RpcFailure,
)

logger = logging.getLogger(__name__)


class DecimalJSONResponse(JSONResponse):
    """JSONResponse that writes Decimal values as JSON numbers with every digit."""

    def render(self, content: Any) -> bytes:
        return simplejson.dumps(
            content,
            use_decimal=True,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        ).encode("utf-8")


def to_display_decimal(value: Decimal) -> Decimal:
    """Strip trailing zeros and exponents, e.g. 0E-18 -> 0 and 5.000 -> 5."""
    with localcontext() as ctx:
        ctx.prec = 100
        return Decimal(format(value.normalize(), "f"))


def build_aggregate_response(result: AggregateResult) -> DecimalJSONResponse:
    body = AggregateResponse(
        addresses=result.addresses,
        totalBalance=to_display_decimal(result.total_balance)
    )
    return DecimalJSONResponse(content=body.model_dump())


def build_balance_response(address: str, balance: Decimal) -> DecimalJSONResponse:
    body = BalanceResponse(address=address, balance=to_display_decimal(balance))
    return DecimalJSONResponse(content=body.model_dump())


def build_error_response(error: Exception) -> JSONResponse:
    """
    Builds the JSON error response for a failed request.

    Args:
        error: The error raised while serving the request. Anything that is
            not a WalletAggregatorError is reported as an unexpected error.

    Returns:
        JSONResponse with the status code for the error kind and an ErrorResponse body
    """
    if isinstance(error, InvalidAddressFormat):
        status_code = status.HTTP_400_BAD_REQUEST
        body = ErrorResponse(
            error="One or more addresses have an invalid format.",
            invalidAddresses=error.invalid_addresses
        )
    elif isinstance(error, (NoAddressesProvided, AddressRequired)):
        status_code = status.HTTP_400_BAD_REQUEST
        body = ErrorResponse(error=str(error))
    elif isinstance(error, RpcFailure):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        body = ErrorResponse(error=str(error), address=error.address)
    elif isinstance(error, RpcError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        body = ErrorResponse(error=f"Error querying the ledger node: {error}")
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        body = ErrorResponse(error="An unexpected error occurred")

    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True)
    )


async def wallet_error_handler(request: Request, exc: WalletAggregatorError) -> JSONResponse:
    """Exception handler registered on the app for every WalletAggregatorError."""
    logger.info(f"{request.method} {request.url.path} failed: {exc}")
    return build_error_response(exc)
