"""
Failure taxonomy for wallet sign-in.

Every rejected request ends with exactly one AuthFailure. Components raise
AuthError carrying the failure; the authentication service turns it into an
AuthResult at its boundary.
"""
from enum import Enum
from typing import Optional


class AuthFailure(str, Enum):
    RATE_LIMITED = "rate_limited"
    INVALID_ADDRESS = "invalid_address"
    NONCE_NOT_FOUND = "nonce_not_found"
    NONCE_ALREADY_USED = "nonce_already_used"
    MALFORMED_MESSAGE = "malformed_message"
    DOMAIN_MISMATCH = "domain_mismatch"
    URI_MISMATCH = "uri_mismatch"
    UNSUPPORTED_CHAIN = "unsupported_chain"
    APP_NAME_MISMATCH = "app_name_mismatch"
    NONCE_MISMATCH = "nonce_mismatch"
    SIGNATURE_EXPIRED = "signature_expired"
    INVALID_TIMESTAMP = "invalid_timestamp"
    SIGNATURE_MALFORMED = "signature_malformed"
    SIGNATURE_ADDRESS_MISMATCH = "signature_address_mismatch"
    USER_PERSISTENCE_FAILURE = "user_persistence_failure"


FAILURE_MESSAGES = {
    AuthFailure.RATE_LIMITED: "Too many requests. Please wait a minute and try again.",
    AuthFailure.INVALID_ADDRESS: "Invalid Ethereum address format.",
    AuthFailure.NONCE_NOT_FOUND: "Nonce not found or expired. Please request a new one.",
    AuthFailure.NONCE_ALREADY_USED: "Nonce already used. Please request a new one.",
    AuthFailure.MALFORMED_MESSAGE: "Invalid message format. Please try again.",
    AuthFailure.DOMAIN_MISMATCH: "Domain mismatch. Please refresh and try again.",
    AuthFailure.URI_MISMATCH: "URI mismatch. Please refresh and try again.",
    AuthFailure.UNSUPPORTED_CHAIN: "Unsupported chain. Please switch to a supported network.",
    AuthFailure.APP_NAME_MISMATCH: "Application name mismatch. Please refresh and try again.",
    AuthFailure.NONCE_MISMATCH: "Nonce mismatch. Please try again.",
    AuthFailure.SIGNATURE_EXPIRED: "Signature expired. Please sign a new message.",
    AuthFailure.INVALID_TIMESTAMP: "Invalid timestamp. Please check your system time.",
    AuthFailure.SIGNATURE_MALFORMED: "Invalid signature format.",
    AuthFailure.SIGNATURE_ADDRESS_MISMATCH: "Invalid signature. Address mismatch.",
    AuthFailure.USER_PERSISTENCE_FAILURE: "Authentication is temporarily unavailable. Please try again.",
}


class AuthError(Exception):
    """Raised by a component when a request must be rejected."""

    def __init__(self, failure: AuthFailure, message: Optional[str] = None):
        self.failure = failure
        self.message = message or FAILURE_MESSAGES[failure]
        super().__init__(self.message)


class CacheError(Exception):
    """The backing key-value store could not be reached or refused a command."""
