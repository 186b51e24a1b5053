from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from wallet_auth.core.cache import Cache, build_cache
from wallet_auth.core.config import Settings, settings
from wallet_auth.db.session import get_db
from wallet_auth.services.authentication import EthAuthenticationService
from wallet_auth.services.nonce_store import NonceStore
from wallet_auth.services.rate_limiter import RateLimiter
from wallet_auth.services.user_service import UserService


def get_settings() -> Settings:
    return settings


@lru_cache
def get_cache() -> Cache:
    # one cache per process so counters and nonces are shared across requests
    return build_cache(settings)


def get_auth_service(
    db: Session = Depends(get_db),
    cache: Cache = Depends(get_cache),
    config: Settings = Depends(get_settings),
) -> EthAuthenticationService:
    return EthAuthenticationService(
        config=config,
        nonce_store=NonceStore(cache, ttl_seconds=config.nonce_ttl_seconds),
        auth_limiter=RateLimiter(cache, "auth", config.auth_rate_limit, config.auth_rate_window_seconds),
        nonce_limiter=RateLimiter(cache, "nonce", config.nonce_rate_limit, config.nonce_rate_window_seconds),
        users=UserService(db),
    )
