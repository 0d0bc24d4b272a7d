"""Consistency coordinator for user records and their addresses.

Every mutating operation here runs as one transaction in two phases:
validate everything (phone and address uniqueness through the ledger),
then mutate everything. Any failure rolls the whole operation back, so a
rejected secondary address never leaves an orphan user behind.

When a concurrent writer slips past the pre-check, the store's unique
constraints reject the write; the check is then repeated and reported as
the same field-level :class:`~app.exceptions.ConflictError`.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import crud, models, notifications, schemas
from .database import transaction
from .exceptions import ConflictError, NotFoundError, TransientStoreError
from .ledger import AddressLedger, taken_message
from .security import get_password_hash

logger = logging.getLogger(__name__)


@dataclass
class UpdatePlan:
    """What an update will change, derived from the current user state.

    Attributes:
        changes: Supplied identity fields.
        new_email: New primary address, ``None`` when it stays the same.
        replace_emails: Whether the secondary set is replaced.
        emails: The new secondary set.
        released: Addresses of the user that the update discards.
    """

    changes: dict
    new_email: str | None = None
    replace_emails: bool = False
    emails: list[str] = field(default_factory=list)
    released: list[str] = field(default_factory=list)


def _require_user(db: Session, user_id: int) -> models.User:
    user = crud.get_user(db, user_id)
    if user is None:
        raise NotFoundError()
    return user


def _secondary_claims(addresses: Sequence[str]) -> list[tuple[str, str]]:
    return [(f"emails.{index}", address) for index, address in enumerate(addresses)]


def _check_create(db: Session, user_in: schemas.UserCreate) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    if crud.phone_taken(db, user_in.phone):
        errors["phone"] = [taken_message("phone")]

    claims = [("email", user_in.email)] + _secondary_claims(user_in.emails)
    errors.update(AddressLedger(db).find_conflicts(claims))
    return errors


def _plan_update(user: models.User, user_in: schemas.UserUpdate) -> UpdatePlan:
    changes = user_in.field_changes()
    new_email = changes.get("email")
    if new_email == user.email:
        new_email = None

    released = []
    if new_email is not None:
        released.append(user.email)
    if user_in.replaces_emails:
        released.extend(e.email for e in user.emails)

    return UpdatePlan(
        changes=changes,
        new_email=new_email,
        replace_emails=user_in.replaces_emails,
        emails=list(user_in.emails or []),
        released=released,
    )


def _check_update(
    db: Session, user: models.User, plan: UpdatePlan
) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    phone = plan.changes.get("phone")
    if phone is not None and crud.phone_taken(db, phone, excluding_user_id=user.id):
        errors["phone"] = [taken_message("phone")]

    claims = []
    if plan.new_email is not None:
        claims.append(("email", plan.new_email))
    if plan.replace_emails:
        claims.extend(_secondary_claims(plan.emails))

    errors.update(
        AddressLedger(db).find_conflicts(
            claims, owner_id=user.id, released=plan.released
        )
    )
    return errors


def _resolve_collision(
    db: Session, exc: IntegrityError, recheck: Callable[[], dict[str, list[str]]]
):
    """Turn a unique-constraint rejection into the matching field errors."""
    logger.info("Write rejected by a unique constraint, re-checking: %s", exc.orig)
    with transaction(db):
        errors = recheck()
    if errors:
        raise ConflictError(errors) from exc
    raise TransientStoreError("Concurrent update detected, please retry") from exc


def get_user(db: Session, user_id: int) -> models.User:
    """
    Fetch one user with its secondary addresses.

    Raises:
        NotFoundError: If the user does not exist.
    """
    return _require_user(db, user_id)


def list_users(db: Session) -> Sequence[models.User]:
    """Fetch every user with its secondary addresses, ordered by id."""
    return crud.list_users(db)


def create_user(db: Session, user_in: schemas.UserCreate) -> models.User:
    """
    Register a user together with its secondary addresses.

    Args:
        db (Session): Database session.
        user_in (UserCreate): Validated registration payload.

    Raises:
        ConflictError: If the phone or any address is already taken, or the
            address list repeats itself or the primary address.

    Returns:
        User: The created user with its secondary addresses.
    """
    hashed_password = get_password_hash(user_in.password)
    try:
        with transaction(db):
            errors = _check_create(db, user_in)
            if errors:
                raise ConflictError(errors)
            user = crud.create_user(db, user_in, hashed_password)
            crud.replace_secondary_addresses(db, user, user_in.emails)
            user_id = user.id
    except IntegrityError as exc:
        _resolve_collision(db, exc, lambda: _check_create(db, user_in))

    logger.info("Created user %s with %d secondary addresses", user_id, len(user_in.emails))
    return _require_user(db, user_id)


def update_user(
    db: Session, user_id: int, user_in: schemas.UserUpdate
) -> models.User:
    """
    Apply a partial update, optionally replacing the secondary address set.

    Updating the phone or primary email to the user's own current value is
    a no-op. When ``emails`` is present the old set is discarded entirely.

    Args:
        db (Session): Database session.
        user_id (int): Target user.
        user_in (UserUpdate): Validated update payload.

    Raises:
        NotFoundError: If the user does not exist.
        ConflictError: If a supplied value is held by someone else.

    Returns:
        User: The updated user with its current secondary addresses.
    """

    def check() -> dict[str, list[str]]:
        user = _require_user(db, user_id)
        return _check_update(db, user, _plan_update(user, user_in))

    try:
        with transaction(db):
            user = _require_user(db, user_id)
            plan = _plan_update(user, user_in)
            errors = _check_update(db, user, plan)
            if errors:
                raise ConflictError(errors)

            ledger = AddressLedger(db)
            if plan.new_email is not None:
                ledger.release(user, models.PRIMARY)
            if plan.replace_emails:
                crud.clear_secondary_addresses(db, user)
            db.flush()

            crud.update_user(db, user, plan.changes)
            if plan.replace_emails:
                crud.add_secondary_addresses(db, user, plan.emails)
            db.flush()
    except IntegrityError as exc:
        _resolve_collision(db, exc, check)

    logger.info("Updated user %s (fields: %s)", user_id, sorted(user_in.model_fields_set))
    return _require_user(db, user_id)


def delete_user(db: Session, user_id: int) -> None:
    """
    Delete a user with all of its secondary addresses.

    Raises:
        NotFoundError: If the user does not exist.
    """
    with transaction(db):
        user = _require_user(db, user_id)
        crud.delete_user(db, user)
    logger.info("Deleted user %s", user_id)


def _unique_in_order(addresses: Sequence[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for address in addresses:
        if address not in seen:
            seen.add(address)
            result.append(address)
    return result


def _addresses_of(user: models.User) -> list[str]:
    return _unique_in_order([user.email] + [e.email for e in user.emails])


def collect_notification_addresses(db: Session, user_id: int) -> list[str]:
    """
    Return the primary address followed by every secondary address.

    Exact duplicates are dropped, keeping first-seen order.

    Raises:
        NotFoundError: If the user does not exist.
    """
    return _addresses_of(_require_user(db, user_id))


async def notify_user(db: Session, user_id: int) -> notifications.DispatchReport:
    """
    Send the welcome email to every address of a user.

    Addresses are read first, then sent to one at a time; a failed send
    does not stop the remaining ones.

    Raises:
        NotFoundError: If the user does not exist.

    Returns:
        DispatchReport: Attempted and failed addresses.
    """
    user = _require_user(db, user_id)
    addresses = _addresses_of(user)
    return await notifications.dispatch_welcome_emails(addresses, user.display_name)
