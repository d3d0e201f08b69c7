"""
Account model - the externally identified owner of server profiles.

Just the data structure - no business logic or class methods.
"""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from .db_base import TimestampMixin
from .db_config import Base


class Account(Base, TimestampMixin):
    """Chat-platform account that owns server profiles."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    external_id = Column(String(100), nullable=False, unique=True, index=True)
    display_name = Column(String(200), nullable=True)

    servers = relationship(
        "ServerProfile",
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ServerProfile.id",
    )
