"""
Server profile model - one named SSH connection profile of an account.

Just the data structure - no business logic or class methods.
"""

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from ..constants import MAX_TOKEN_LENGTH
from .db_base import TimestampMixin
from .db_config import Base


class ServerProfile(Base, TimestampMixin):
    """SSH connection profile; the token column holds the account-scoped token."""

    __tablename__ = "ssh_servers"

    # Autoincrement id doubles as insertion order for listings
    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name = Column(String(100), nullable=False)
    host = Column(String(255), nullable=False)
    username = Column(String(100), nullable=False)
    port = Column(Integer, nullable=False, default=22)
    ssh_key = Column(String(500), nullable=False)  # path to the key, not the key material
    auth_key = Column(String(500), nullable=False)
    token = Column(String(MAX_TOKEN_LENGTH), nullable=True)

    account = relationship("Account", back_populates="servers")

    __table_args__ = (UniqueConstraint("account_id", "name", name="uq_ssh_servers_account_name"),)
