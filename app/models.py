"""Database models for the Users API.

This module defines SQLAlchemy ORM models used by the application.
"""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base

PRIMARY = "primary"
SECONDARY = "secondary"


class User(Base):
    """
    SQLAlchemy model representing a registered user.

    A user owns one primary email stored on this row, any number of
    secondary addresses (:class:`UserEmail`) and one ledger entry per
    address it holds (:class:`LedgerEntry`).
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    display_name = Column(String(511), nullable=False)
    phone = Column(String(20), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    #: Secondary addresses owned by the user
    emails = relationship(
        "UserEmail",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserEmail.id",
    )

    #: Ledger rows for every address the user holds
    ledger_entries = relationship(
        "LedgerEntry",
        back_populates="user",
        cascade="all, delete-orphan",
    )


class UserEmail(Base):
    """
    SQLAlchemy model representing one secondary address of a user.
    """

    __tablename__ = "user_emails"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    #: Reference to the owning User object
    user = relationship("User", back_populates="emails")


class LedgerEntry(Base):
    """
    One row per address held by any user, primary or secondary.

    The unique constraint on ``address`` enforces global address
    uniqueness across both ``users.email`` and ``user_emails.email``.
    """

    __tablename__ = "address_ledger"

    id = Column(Integer, primary_key=True)
    address = Column(String(255), unique=True, index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    #: Either ``"primary"`` or ``"secondary"``
    slot = Column(String(16), nullable=False)

    user = relationship("User", back_populates="ledger_entries")
