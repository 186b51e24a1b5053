# wallet_auth/services/nonce_store.py
from __future__ import annotations

import logging
import secrets
from typing import Optional

from wallet_auth.core.cache import Cache
from wallet_auth.core.errors import CacheError

logger = logging.getLogger(__name__)

NONCE_BYTES = 16


def nonce_key(address: str) -> str:
    return f"eth_nonce:{address.lower()}"


def nonce_used_key(address: str, nonce: str) -> str:
    return f"nonce_used:{address.lower()}:{nonce}"


class NonceStore:
    """
    Single-use sign-in nonces keyed by wallet address.

    One live nonce per address: issuing again overwrites the previous one.
    Used markers live under their own key so a nonce accepted for
    verification can be recognised by a concurrent request.
    """

    def __init__(self, cache: Cache, ttl_seconds: int = 600):
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    def issue(self, address: str) -> str:
        nonce = secrets.token_hex(NONCE_BYTES)
        self.cache.set(nonce_key(address), nonce, self.ttl_seconds)
        return nonce

    def read(self, address: str) -> Optional[str]:
        return self.cache.get(nonce_key(address)) or None

    def mark_used(self, address: str, nonce: str) -> None:
        self.cache.set(nonce_used_key(address, nonce), "1", self.ttl_seconds)

    def is_used(self, address: str, nonce: str) -> bool:
        try:
            return self.cache.get(nonce_used_key(address, nonce)) is not None
        except CacheError as exc:
            # availability over replay protection; mark_used still runs next
            logger.warning("Cache unavailable for used-nonce lookup (%s): %s", address, exc)
            return False

    def invalidate(self, address: str, nonce: str) -> None:
        self.cache.delete(nonce_key(address), nonce_used_key(address, nonce))
