# app/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.core.config import settings
from app.core.version import VERSION
from app.api.endpoints import wallet
from app.api.responses import wallet_error_handler
from app.services.errors import WalletAggregatorError
import logging

# Configure basic logging
logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json" # Standard location for OpenAPI spec
)

# The browser frontend calls the API from a different origin
cors_origins = settings.cors_origin_list()
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

# Domain errors are turned into structured JSON error bodies
app.add_exception_handler(WalletAggregatorError, wallet_error_handler)

# The prefix ensures all wallet routes start with /api/wallet
app.include_router(wallet.router, prefix=f"{settings.API_PREFIX}/wallet", tags=["wallet"])

@app.get("/", summary="Health Check", tags=["default"])
def read_root():
    """ Basic health check endpoint. """
    logger.info("Root endpoint '/' accessed.")
    return {
        "status": "ok",
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": VERSION,
        "network": settings.LEDGER_NETWORK_NAME,
        "currency": settings.LEDGER_CURRENCY_SYMBOL,
    }
