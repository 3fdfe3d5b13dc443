# app/api/models/wallet.py
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional


class AggregateRequest(BaseModel):
    """
    Request model for the aggregate balance endpoint.
    """
    addresses: List[str] = Field(..., description="Wallet addresses to aggregate (0x followed by 40 hex digits).")

    class Config:
        json_schema_extra = {
            "example": {
                "addresses": [
                    "0x1234567890abcdef1234567890abcdef12345678",
                    "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"
                ]
            }
        }


class AggregateResponse(BaseModel):
    """
    Response model for the aggregate balance endpoint.
    Only addresses with a non-zero balance are listed; the total covers all of them.
    """
    addresses: List[str] = Field(..., description="Addresses with a non-zero balance, in request order.")
    totalBalance: Decimal = Field(..., description="Sum of all balances in the native currency.")


class BalanceResponse(BaseModel):
    """
    Response model for the single address balance endpoint.
    """
    address: str
    balance: Decimal = Field(..., description="Balance in the native currency.")


class MetadataResponse(BaseModel):
    """
    Response model for the network metadata endpoint.
    """
    networkName: str
    rpcUrl: str
    chainId: str = Field(..., description="Chain id as a decimal string.")
    blockHeight: int = Field(..., description="Number of the latest block.")


class ErrorResponse(BaseModel):
    """
    Error body returned for every failed wallet request.
    """
    error: str
    invalidAddresses: Optional[List[str]] = Field(None, description="Every malformed address in the request.")
    address: Optional[str] = Field(None, description="Address whose balance lookup failed.")
