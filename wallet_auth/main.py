from contextlib import asynccontextmanager

from fastapi import FastAPI

from wallet_auth.api.router import api_router
from wallet_auth.core.config import settings
from wallet_auth.core.deps import get_cache
from wallet_auth.core.logging import configure_logging
from wallet_auth.db.base import Base
from wallet_auth.db.session import engine
from wallet_auth.models import User  # noqa: F401  registers the users table


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    # migrations own the schema in production; this covers fresh SQLite files
    Base.metadata.create_all(bind=engine)
    yield
    get_cache().close()
    get_cache.cache_clear()


app = FastAPI(title="Wallet Auth", lifespan=lifespan)
app.include_router(api_router, prefix="/api")
