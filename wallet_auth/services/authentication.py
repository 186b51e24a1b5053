"""
Ethereum wallet sign-in.

Nonces and used markers live only in the cache; a User row is written only
after the whole check sequence has passed.
"""
import hmac
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from wallet_auth.core.config import Settings
from wallet_auth.core.errors import AuthError, AuthFailure, CacheError
from wallet_auth.models.user import User, is_eth_address
from wallet_auth.services.challenge import parse_challenge_message, validate_challenge
from wallet_auth.services.nonce_store import NonceStore
from wallet_auth.services.rate_limiter import RateLimiter
from wallet_auth.services.signature import recover_address
from wallet_auth.services.user_service import UserService

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    success: bool
    user: Optional[User] = None
    failure: Optional[AuthFailure] = None
    message: Optional[str] = None

    @classmethod
    def succeeded(cls, user: User) -> "AuthResult":
        return cls(success=True, user=user)

    @classmethod
    def failed(cls, error: AuthError) -> "AuthResult":
        return cls(success=False, failure=error.failure, message=error.message)


class EthAuthenticationService:
    """
    Issues sign-in nonces and verifies signed challenges.

    authenticate() runs the checks in a fixed order and stops at the first
    failure. The cheap checks come first; signature recovery is the most
    expensive step and runs only once everything else has passed.

    The nonce is marked used before the message is even parsed, so a second
    request carrying the same nonce is turned away while the first one is
    still being verified. Two requests that both read the used marker before
    either writes it can still both proceed; that window is accepted.
    """

    def __init__(
        self,
        config: Settings,
        nonce_store: NonceStore,
        auth_limiter: RateLimiter,
        nonce_limiter: RateLimiter,
        users: UserService,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.nonce_store = nonce_store
        self.auth_limiter = auth_limiter
        self.nonce_limiter = nonce_limiter
        self.users = users
        self._clock = clock

    def issue_nonce(self, eth_address: str, client_ip: str) -> str:
        """
        Issue a fresh nonce for an address, replacing any earlier one.

        Args:
            eth_address: Wallet address, any case
            client_ip: Requesting client's IP

        Returns:
            Hex nonce to embed in the challenge message

        Raises:
            AuthError: RATE_LIMITED, INVALID_ADDRESS or USER_PERSISTENCE_FAILURE
        """
        address = (eth_address or "").lower()

        if not self.nonce_limiter.allow(f"{client_ip}:{address}"):
            raise AuthError(AuthFailure.RATE_LIMITED)

        if not is_eth_address(address):
            raise AuthError(AuthFailure.INVALID_ADDRESS)

        try:
            return self.nonce_store.issue(address)
        except CacheError as exc:
            logger.error("Failed to store nonce for %s: %s", address, exc)
            raise AuthError(AuthFailure.USER_PERSISTENCE_FAILURE)

    def authenticate(self, eth_address: str, message: str, signature: str, client_ip: str) -> AuthResult:
        """
        Verify a signed challenge and sign the wallet in.

        Args:
            eth_address: Address the client claims to control
            message: Challenge string the wallet signed
            signature: 0x-prefixed 65-byte personal_sign signature
            client_ip: Requesting client's IP

        Returns:
            AuthResult with the user on success, or the first failure
        """
        address = (eth_address or "").lower()
        try:
            user = self._authenticate(address, message, signature, client_ip)
        except AuthError as exc:
            logger.warning("Sign-in rejected for %r from %s: %s", address, client_ip, exc.failure.value)
            return AuthResult.failed(exc)

        logger.info("Signed in %s from %s", address, client_ip)
        return AuthResult.succeeded(user)

    def _authenticate(self, address: str, message: str, signature: str, client_ip: str) -> User:
        if not self.auth_limiter.allow(client_ip):
            raise AuthError(AuthFailure.RATE_LIMITED)

        if not is_eth_address(address):
            raise AuthError(AuthFailure.INVALID_ADDRESS)

        nonce = self._read_nonce(address)
        if nonce is None:
            raise AuthError(AuthFailure.NONCE_NOT_FOUND)

        if self.nonce_store.is_used(address, nonce):
            raise AuthError(AuthFailure.NONCE_ALREADY_USED)

        self._write(self.nonce_store.mark_used, address, nonce)

        challenge = parse_challenge_message(message)
        validate_challenge(
            challenge,
            expected_domain=self.config.app_domain,
            expected_uri=self.config.app_uri,
            allowed_chain_ids=self.config.allowed_chain_ids,
            expected_app_name=self.config.app_name if self.config.enforce_app_name else None,
        )

        # surrogatepass: JSON can carry lone surrogates that plain utf-8 rejects
        if not hmac.compare_digest(
            challenge.nonce.encode("utf-8", "surrogatepass"), nonce.encode("utf-8", "surrogatepass")
        ):
            raise AuthError(AuthFailure.NONCE_MISMATCH)

        self._check_freshness(challenge.issued_at)

        if recover_address(message, signature) != address:
            raise AuthError(AuthFailure.SIGNATURE_ADDRESS_MISMATCH)

        user = self.users.get_or_create(address)
        self._write(self.nonce_store.invalidate, address, nonce)
        return user

    def _read_nonce(self, address: str) -> Optional[str]:
        try:
            return self.nonce_store.read(address)
        except CacheError as exc:
            logger.error("Nonce lookup failed for %s: %s", address, exc)
            return None

    def _write(self, operation: Callable[[str, str], None], address: str, nonce: str) -> None:
        try:
            operation(address, nonce)
        except CacheError as exc:
            logger.error("Nonce store write failed for %s: %s", address, exc)
            raise AuthError(AuthFailure.USER_PERSISTENCE_FAILURE)

    def _check_freshness(self, issued_at: int) -> None:
        now = int(self._clock())
        if now - issued_at > self.config.message_max_age_seconds:
            raise AuthError(AuthFailure.SIGNATURE_EXPIRED)
        if issued_at > now:
            raise AuthError(AuthFailure.INVALID_TIMESTAMP)
