"""CRUD operations for users and their secondary addresses.

This module contains database interaction logic for user records and
secondary address sets, isolated from FastAPI route handlers. None of
these functions commit: they run inside the transaction opened by
:mod:`app.coordinator`.
"""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from . import models, schemas
from .ledger import AddressLedger


def compose_display_name(first_name: str, last_name: str) -> str:
    return f"{first_name} {last_name}"


def phone_taken(db: Session, phone: str, excluding_user_id: int | None = None) -> bool:
    """
    Check whether a phone number belongs to another user.

    Args:
        db (Session): Database session.
        phone (str): Phone number.
        excluding_user_id (int | None): User whose own number is ignored.

    Returns:
        bool: ``True`` if another user holds the number.
    """
    stmt = select(models.User.id).where(models.User.phone == phone)
    if excluding_user_id is not None:
        stmt = stmt.where(models.User.id != excluding_user_id)
    return db.execute(stmt).first() is not None


def create_user(
    db: Session, user_in: schemas.UserCreate, hashed_password: str
) -> models.User:
    """
    Create a new user row and claim its primary address.

    Args:
        db (Session): Database session.
        user_in (UserCreate): Incoming user data.
        hashed_password (str): Securely hashed password.

    Returns:
        User: Newly created, flushed user instance.
    """
    user = models.User(
        first_name=user_in.first_name,
        last_name=user_in.last_name,
        display_name=compose_display_name(user_in.first_name, user_in.last_name),
        phone=user_in.phone,
        email=user_in.email,
        password_hash=hashed_password,
    )
    db.add(user)
    AddressLedger(db).claim(user, user.email, models.PRIMARY)
    db.flush()
    return user


def get_user(db: Session, user_id: int) -> models.User | None:
    """
    Retrieve a user by primary key with its secondary addresses loaded.

    Args:
        db (Session): Database session.
        user_id (int): User identifier.

    Returns:
        User | None: User if found, otherwise ``None``.
    """
    return db.execute(
        select(models.User)
        .options(selectinload(models.User.emails))
        .where(models.User.id == user_id)
    ).scalar_one_or_none()


def list_users(db: Session) -> Sequence[models.User]:
    """
    Retrieve all users ordered by id, each with its secondary addresses.

    Args:
        db (Session): Database session.

    Returns:
        list[User]: List of users.
    """
    return db.scalars(
        select(models.User)
        .options(selectinload(models.User.emails))
        .order_by(models.User.id)
    ).all()


def update_user(db: Session, user: models.User, changes: dict) -> models.User:
    """
    Apply a partial update to a user's identity fields.

    ``display_name`` is recomputed when either name part is supplied. A new
    primary address is claimed in the ledger; the caller has already
    released the old one.

    Args:
        db (Session): Database session.
        user (User): Target user.
        changes (dict): Supplied fields among ``first_name``, ``last_name``,
            ``phone`` and ``email``.

    Returns:
        User: Updated user instance.
    """
    new_email = changes.get("email")
    if new_email is not None and new_email != user.email:
        AddressLedger(db).claim(user, new_email, models.PRIMARY)

    for key, value in changes.items():
        setattr(user, key, value)

    if "first_name" in changes or "last_name" in changes:
        user.display_name = compose_display_name(user.first_name, user.last_name)

    db.add(user)
    db.flush()
    return user


def clear_secondary_addresses(db: Session, user: models.User) -> list[str]:
    """
    Schedule removal of every secondary address of a user.

    The rows and their ledger entries are deleted on the next flush.

    Returns:
        list[str]: The released addresses.
    """
    user.emails.clear()
    return AddressLedger(db).release(user, models.SECONDARY)


def add_secondary_addresses(
    db: Session, user: models.User, addresses: Sequence[str]
) -> None:
    """Attach new secondary addresses to a user and claim them."""
    ledger = AddressLedger(db)
    for address in addresses:
        user.emails.append(models.UserEmail(email=address))
        ledger.claim(user, address, models.SECONDARY)


def replace_secondary_addresses(
    db: Session, user: models.User, addresses: Sequence[str]
) -> models.User:
    """
    Replace a user's secondary address set with ``addresses``.

    Old rows are deleted and flushed before the new ones are inserted, so
    an address may move from the old set to the new one. An empty list
    leaves the user with no secondary addresses.

    Args:
        db (Session): Database session.
        user (User): Owner of the set.
        addresses (Sequence[str]): Complete new set, in submission order.

    Returns:
        User: The owner.
    """
    clear_secondary_addresses(db, user)
    db.flush()
    add_secondary_addresses(db, user, addresses)
    db.flush()
    return user


def delete_user(db: Session, user: models.User) -> None:
    """
    Delete a user and everything it owns.

    Secondary addresses and ledger entries are removed first, then the
    user row itself.

    Args:
        db (Session): Database session.
        user (User): User to delete.
    """
    clear_secondary_addresses(db, user)
    AddressLedger(db).release(user, models.PRIMARY)
    db.flush()
    db.delete(user)
    db.flush()
