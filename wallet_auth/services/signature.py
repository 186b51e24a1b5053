# wallet_auth/services/signature.py
from __future__ import annotations

import logging

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature
from eth_keys.exceptions import ValidationError as KeyValidationError
from eth_utils import decode_hex

from wallet_auth.core.errors import AuthError, AuthFailure

logger = logging.getLogger(__name__)

# r (32) + s (32) + v (1)
SIGNATURE_LENGTH = 65
RECOVERY_IDS = (0, 1, 27, 28)


def decode_signature(signature: str) -> bytes:
    try:
        raw = decode_hex(signature)
    except (ValueError, TypeError):
        raise AuthError(AuthFailure.SIGNATURE_MALFORMED)

    if len(raw) != SIGNATURE_LENGTH:
        logger.warning("Signature has %d bytes, expected %d", len(raw), SIGNATURE_LENGTH)
        raise AuthError(AuthFailure.SIGNATURE_MALFORMED)

    if raw[-1] not in RECOVERY_IDS:
        logger.warning("Signature has invalid recovery id %d", raw[-1])
        raise AuthError(AuthFailure.SIGNATURE_MALFORMED)

    return raw


def recover_address(message: str, signature: str) -> str:
    """
    Recover the lowercase address that produced a personal_sign signature.

    encode_defunct(text=...) applies the EIP-191 prefix
    ("\\x19Ethereum Signed Message:\\n" + byte length) before Keccak-256, the
    same bytes a wallet hashes for personal_sign.

    Raises:
        AuthError: SIGNATURE_MALFORMED if the signature cannot be decoded or
            does not describe a valid secp256k1 point
    """
    raw = decode_signature(signature)
    try:
        recovered = Account.recover_message(encode_defunct(text=message), signature=raw)
    except (BadSignature, KeyValidationError, ValueError) as exc:
        logger.warning("Signature recovery error: %s: %s", type(exc).__name__, exc)
        raise AuthError(AuthFailure.SIGNATURE_MALFORMED)
    return recovered.lower()
