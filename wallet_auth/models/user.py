import re
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, validates

from wallet_auth.db.base import Base

ETH_ADDRESS_RE = re.compile(r"0x[0-9a-f]{40}")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_eth_address(address: str) -> bool:
    return ETH_ADDRESS_RE.fullmatch(address) is not None


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    # lowercase 0x-prefixed hex, the only identity a wallet user has
    eth_address: Mapped[str] = mapped_column(String(42), unique=True, index=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @validates("eth_address")
    def normalize_eth_address(self, key: str, value: str | None) -> str:
        address = (value or "").lower()
        if not is_eth_address(address):
            raise ValueError("Invalid Ethereum address format")
        return address

    @property
    def display_address(self) -> str:
        return f"{self.eth_address[:6]}...{self.eth_address[-4:]}"
