"""
User Service
Find-or-create wallet users after a successful sign-in.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from wallet_auth.core.errors import AuthError, AuthFailure
from wallet_auth.models.user import User

logger = logging.getLogger(__name__)


class UserService:
    """Service for wallet user records."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_address(self, eth_address: str) -> Optional[User]:
        """
        Get a user by wallet address.

        Args:
            eth_address: Wallet address, any case

        Returns:
            User if found, None otherwise
        """
        stmt = select(User).where(User.eth_address == eth_address.lower())
        return self.db.scalar(stmt)

    def get_or_create(self, eth_address: str) -> User:
        """
        Return the user for an address, creating it on first sign-in.

        Two first sign-ins for the same wallet can race; the loser hits the
        unique index, rolls back and reads the winner's row.

        Raises:
            AuthError: USER_PERSISTENCE_FAILURE if the database fails or the
                address is rejected by the model
        """
        try:
            user = self.get_by_address(eth_address)
            if user:
                return user

            user = User(eth_address=eth_address)
            self.db.add(user)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                user = self.get_by_address(eth_address)
                if user is None:
                    raise
                return user

            self.db.refresh(user)
            logger.info("Created wallet user %s", user.eth_address)
            return user
        except (SQLAlchemyError, ValueError) as exc:
            self.db.rollback()
            logger.error("Failed to create user %s: %s", eth_address, exc)
            raise AuthError(AuthFailure.USER_PERSISTENCE_FAILURE)
