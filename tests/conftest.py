import os
import sys
from pathlib import Path

import pytest

# Keep the app's module-level engine off the filesystem during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CACHE_BACKEND", "memory")

# Add the parent directory to the path so we can import wallet_auth modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from eth_account import Account  # noqa: E402
from eth_account.messages import encode_defunct  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from wallet_auth.core.cache import MemoryCache  # noqa: E402
from wallet_auth.core.config import Settings  # noqa: E402
from wallet_auth.db.base import Base  # noqa: E402
from wallet_auth.models import User  # noqa: E402,F401
from wallet_auth.services.authentication import EthAuthenticationService  # noqa: E402
from wallet_auth.services.nonce_store import NonceStore  # noqa: E402
from wallet_auth.services.rate_limiter import RateLimiter  # noqa: E402
from wallet_auth.services.user_service import UserService  # noqa: E402

START_TIME = 1_735_600_000
PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe512961708279f8d5e7f5e8b2e4e8b7"
OTHER_PRIVATE_KEY = "0x5c0883a69102937d6231471b5dbb6204fe512961708279f8d5e7f5e8b2e4e8b8"


class FakeClock:
    """Settable wall clock; call it like time.time."""

    def __init__(self, now: float = START_TIME):
        self.now = float(now)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def sign(account, message: str) -> str:
    signed = account.sign_message(encode_defunct(text=message))
    return "0x" + bytes(signed.signature).hex()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> Settings:
    return Settings(
        _env_file=None,
        app_domain="site.test",
        app_uri="http://site.test",
        app_name="App",
    )


@pytest.fixture
def cache(clock: FakeClock) -> MemoryCache:
    return MemoryCache(clock=clock)


@pytest.fixture
def nonce_store(cache: MemoryCache, config: Settings) -> NonceStore:
    return NonceStore(cache, ttl_seconds=config.nonce_ttl_seconds)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine) -> Session:
    """Create a fresh database session for each test."""
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def auth_service(
    config: Settings,
    cache: MemoryCache,
    nonce_store: NonceStore,
    db_session: Session,
    clock: FakeClock,
) -> EthAuthenticationService:
    return EthAuthenticationService(
        config=config,
        nonce_store=nonce_store,
        auth_limiter=RateLimiter(cache, "auth", config.auth_rate_limit, config.auth_rate_window_seconds, clock=clock),
        nonce_limiter=RateLimiter(cache, "nonce", config.nonce_rate_limit, config.nonce_rate_window_seconds, clock=clock),
        users=UserService(db_session),
        clock=clock,
    )


@pytest.fixture
def account():
    return Account.from_key(PRIVATE_KEY)


@pytest.fixture
def other_account():
    return Account.from_key(OTHER_PRIVATE_KEY)


@pytest.fixture
def sign_with():
    return sign
