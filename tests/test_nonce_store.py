"""
Tests for the sign-in nonce store
"""
import re

import pytest
from unittest.mock import Mock

from wallet_auth.core.errors import CacheError
from wallet_auth.services.nonce_store import NonceStore, nonce_key, nonce_used_key

ADDRESS = "0x" + "ab" * 20


class TestNonceStore:
    """Issue / read / mark-used / invalidate against the in-memory cache"""

    def test_issue_returns_32_hex_chars(self, nonce_store):
        nonce = nonce_store.issue(ADDRESS)

        assert re.fullmatch(r"[0-9a-f]{32}", nonce)

    def test_issue_then_read_returns_same_nonce(self, nonce_store):
        nonce = nonce_store.issue(ADDRESS)

        assert nonce_store.read(ADDRESS) == nonce

    def test_read_normalizes_address_case(self, nonce_store):
        nonce = nonce_store.issue(ADDRESS)

        assert nonce_store.read(ADDRESS.upper().replace("0X", "0x")) == nonce

    def test_second_issue_supersedes_first(self, nonce_store):
        first = nonce_store.issue(ADDRESS)
        second = nonce_store.issue(ADDRESS)

        assert first != second
        assert nonce_store.read(ADDRESS) == second

    def test_read_unknown_address_returns_none(self, nonce_store):
        assert nonce_store.read(ADDRESS) is None

    def test_nonce_expires_after_ttl(self, nonce_store, clock):
        nonce_store.issue(ADDRESS)

        clock.advance(599)
        assert nonce_store.read(ADDRESS) is not None

        clock.advance(1)
        assert nonce_store.read(ADDRESS) is None

    def test_mark_used_is_visible_to_is_used(self, nonce_store):
        nonce = nonce_store.issue(ADDRESS)
        assert nonce_store.is_used(ADDRESS, nonce) is False

        nonce_store.mark_used(ADDRESS, nonce)

        assert nonce_store.is_used(ADDRESS, nonce) is True
        assert nonce_store.is_used(ADDRESS, "another") is False

    def test_used_marker_expires_with_ttl(self, nonce_store, clock):
        nonce = nonce_store.issue(ADDRESS)
        nonce_store.mark_used(ADDRESS, nonce)

        clock.advance(600)

        assert nonce_store.is_used(ADDRESS, nonce) is False

    def test_invalidate_removes_nonce_and_marker(self, nonce_store, cache):
        nonce = nonce_store.issue(ADDRESS)
        nonce_store.mark_used(ADDRESS, nonce)

        nonce_store.invalidate(ADDRESS, nonce)

        assert nonce_store.read(ADDRESS) is None
        assert nonce_store.is_used(ADDRESS, nonce) is False
        assert len(cache) == 0

    def test_invalidate_twice_is_safe(self, nonce_store, cache):
        nonce = nonce_store.issue(ADDRESS)
        nonce_store.mark_used(ADDRESS, nonce)

        nonce_store.invalidate(ADDRESS, nonce)
        nonce_store.invalidate(ADDRESS, nonce)

        assert len(cache) == 0


class TestNonceStoreFailures:
    """Behaviour when the backing cache is unavailable"""

    def test_is_used_fails_open(self):
        cache = Mock()
        cache.get.side_effect = CacheError("down")

        assert NonceStore(cache).is_used(ADDRESS, "n") is False

    @pytest.mark.parametrize("call", [
        lambda store: store.issue(ADDRESS),
        lambda store: store.mark_used(ADDRESS, "n"),
        lambda store: store.invalidate(ADDRESS, "n"),
        lambda store: store.read(ADDRESS),
    ])
    def test_writes_and_reads_propagate(self, call):
        cache = Mock()
        cache.get.side_effect = CacheError("down")
        cache.set.side_effect = CacheError("down")
        cache.delete.side_effect = CacheError("down")

        with pytest.raises(CacheError):
            call(NonceStore(cache))

    def test_keys(self):
        assert nonce_key("0xABC") == "eth_nonce:0xabc"
        assert nonce_used_key("0xABC", "n1") == "nonce_used:0xabc:n1"

    def test_issue_writes_with_configured_ttl(self):
        cache = Mock()

        nonce = NonceStore(cache, ttl_seconds=42).issue(ADDRESS)

        cache.set.assert_called_once_with(nonce_key(ADDRESS), nonce, 42)
