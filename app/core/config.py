# app/core/config.py
from typing import List
from pydantic_settings import BaseSettings
from pydantic import AnyHttpUrl, Field # AnyHttpUrl stays in pydantic core
from functools import lru_cache
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

class Settings(BaseSettings):
    PROJECT_NAME: str = "Wallet Aggregator"
    API_PREFIX: str = "/api"

    # Ledger node the balances are read from
    LEDGER_RPC_URL: AnyHttpUrl = "https://rpc-amoy.polygon.technology/" # validates that it's a URL
    LEDGER_NETWORK_NAME: str = "Polygon Amoy"
    LEDGER_CURRENCY_SYMBOL: str = "POL"

    # Per-call timeout for every RPC request, in seconds
    RPC_TIMEOUT_SECONDS: float = Field(10.0, gt=0)
    # Upper bound on concurrent balance fetches within one aggregate request
    AGGREGATE_MAX_WORKERS: int = Field(4, ge=1)

    # Comma-separated list of browser origins allowed to call the API
    CORS_ORIGINS: str = ""

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields from .env

    def cors_origin_list(self) -> List[str]:
        """Returns CORS_ORIGINS as a list, skipping blank entries."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

@lru_cache() # Cache the settings object for performance
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
