# wallet_auth/services/challenge.py
from __future__ import annotations

import logging
import re
from dataclasses import astuple, dataclass
from typing import Iterable, Optional

from wallet_auth.core.config import Settings
from wallet_auth.core.errors import AuthError, AuthFailure

logger = logging.getLogger(__name__)


# Challenge format signed by the wallet (EIP-4361 fields, comma separated):
# <domain>,<uri>,<chain_id>,<app_name>,<unix_timestamp>,<nonce>
#
# e.g. example.com,http://example.com,1,MyApp,1735600000,9f2c...
# There is no escaping, so no field may contain a comma.
FIELD_COUNT = 6
SEPARATOR = ","
# at most 20 digits, enough for any uint64
UINT_RE = re.compile(r"[0-9]{1,20}")


@dataclass(frozen=True)
class ChallengeMessage:
    domain: str
    uri: str
    chain_id: int
    app_name: str
    issued_at: int
    nonce: str

    def to_message(self) -> str:
        fields = [str(value) for value in astuple(self)]
        for value in fields:
            if SEPARATOR in value:
                raise ValueError(f"Challenge field contains a comma: {value!r}")
        return SEPARATOR.join(fields)


def _parse_uint(value: str, field: str) -> int:
    if not UINT_RE.fullmatch(value):
        logger.warning("Challenge %s is not an integer: %r", field, value)
        raise AuthError(AuthFailure.MALFORMED_MESSAGE)
    return int(value)


def parse_challenge_message(message: str) -> ChallengeMessage:
    parts = message.split(SEPARATOR)
    if len(parts) != FIELD_COUNT:
        logger.warning("Challenge has %d fields, expected %d", len(parts), FIELD_COUNT)
        raise AuthError(AuthFailure.MALFORMED_MESSAGE)

    domain, uri, chain_id, app_name, issued_at, nonce = parts
    return ChallengeMessage(
        domain=domain,
        uri=uri,
        chain_id=_parse_uint(chain_id, "chain_id"),
        app_name=app_name,
        issued_at=_parse_uint(issued_at, "timestamp"),
        nonce=nonce,
    )


def validate_challenge(
    msg: ChallengeMessage,
    expected_domain: str,
    expected_uri: str,
    allowed_chain_ids: Iterable[int],
    expected_app_name: Optional[str] = None,
) -> None:
    """
    Check the message was produced for this site and a supported network.

    Raises:
        AuthError: DOMAIN_MISMATCH, URI_MISMATCH, UNSUPPORTED_CHAIN or
            APP_NAME_MISMATCH, checked in that order
    """
    # domain binding stops a signature for another site being replayed here
    if msg.domain != expected_domain:
        logger.warning("Domain mismatch: expected %r, got %r", expected_domain, msg.domain)
        raise AuthError(AuthFailure.DOMAIN_MISMATCH)

    if msg.uri != expected_uri:
        logger.warning("URI mismatch: expected %r, got %r", expected_uri, msg.uri)
        raise AuthError(AuthFailure.URI_MISMATCH)

    allowed = list(allowed_chain_ids)
    if msg.chain_id not in allowed:
        logger.warning("Unsupported chain id %d, allowed: %s", msg.chain_id, allowed)
        raise AuthError(AuthFailure.UNSUPPORTED_CHAIN)

    if expected_app_name is not None and msg.app_name != expected_app_name:
        logger.warning("App name mismatch: expected %r, got %r", expected_app_name, msg.app_name)
        raise AuthError(AuthFailure.APP_NAME_MISMATCH)


def build_challenge(config: Settings, nonce: str, issued_at: int, chain_id: int = 1) -> ChallengeMessage:
    """Challenge a client should sign for this deployment."""
    return ChallengeMessage(
        domain=config.app_domain,
        uri=config.app_uri,
        chain_id=chain_id,
        app_name=config.app_name,
        issued_at=issued_at,
        nonce=nonce,
    )
