from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


# EIP-155 chain ids accepted in challenge messages
# 1 = Ethereum Mainnet
# 5 = Goerli Testnet (deprecated)
# 11155111 = Sepolia Testnet
# 137 = Polygon Mainnet
# 80001 = Polygon Mumbai Testnet
DEFAULT_CHAIN_IDS = [1, 5, 11155111, 137, 80001]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    database_url: str = "sqlite:///./wallet_auth.db"

    # Cache ("memory" for a single process, "redis" for shared deployments)
    cache_backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"
    memory_cache_maxsize: int = 100_000

    # Challenge message
    app_domain: str = "localhost:8000"
    app_uri: str = "http://localhost:8000"
    app_name: str = "WalletAuth"
    enforce_app_name: bool = False
    allowed_chain_ids: List[int] = DEFAULT_CHAIN_IDS

    # Nonce / signature lifetime
    nonce_ttl_seconds: int = 600
    message_max_age_seconds: int = 300

    # Rate limits
    auth_rate_limit: int = 10
    auth_rate_window_seconds: int = 60
    nonce_rate_limit: int = 30
    nonce_rate_window_seconds: int = 60

    log_level: str = "INFO"


settings = Settings()
