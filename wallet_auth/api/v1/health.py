from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from wallet_auth.core.cache import Cache
from wallet_auth.core.deps import get_cache
from wallet_auth.db.session import get_db

router = APIRouter()


@router.get("/health")
def health(db: Session = Depends(get_db), cache: Cache = Depends(get_cache)):
    db.execute(text("SELECT 1"))
    return {"status": "ok", "cache": cache.ping()}
