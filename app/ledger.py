"""Address ledger: the global index of every address held by any user.

All uniqueness checks for primary and secondary addresses go through
:class:`AddressLedger`, and every write that introduces or removes an
address records it here. The unique constraint on
``address_ledger.address`` backs the checks at the store level.
"""

import logging
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger(__name__)


def taken_message(field: str) -> str:
    return f"The {field} has already been taken."


def duplicate_message(field: str) -> str:
    return f"The {field} field has a duplicate value."


class AddressLedger:
    """Answers "is this address taken, and by whom" for a session.

    Args:
        db (Session): Session the lookups and writes run in.
    """

    def __init__(self, db: Session):
        self.db = db

    def lookup(self, address: str) -> models.LedgerEntry | None:
        """
        Return the ledger entry holding ``address``.

        Args:
            address (str): Exact address value.

        Returns:
            LedgerEntry | None: Entry if the address is held, otherwise ``None``.
        """
        return self.db.execute(
            select(models.LedgerEntry).where(models.LedgerEntry.address == address)
        ).scalar_one_or_none()

    def is_taken(self, address: str, excluding_user_id: int | None = None) -> bool:
        """
        Check whether an address is held by any user.

        Args:
            address (str): Exact address value.
            excluding_user_id (int | None): Rows owned by this user are ignored.

        Returns:
            bool: ``True`` if another holder exists.
        """
        entry = self.lookup(address)
        if entry is None:
            return False
        return entry.user_id != excluding_user_id

    def find_conflicts(
        self,
        claims: Sequence[tuple[str, str]],
        owner_id: int | None = None,
        released: Iterable[str] = (),
    ) -> dict[str, list[str]]:
        """
        Check a batch of addresses about to be claimed by one user.

        A claim conflicts when the address is held by another user, when it
        is held by ``owner_id`` in a row the same operation keeps, or when an
        earlier claim in the batch already asked for it.

        Args:
            claims: ``(field, address)`` pairs in submission order.
            owner_id (int | None): User making the claims, ``None`` on create.
            released: Addresses of ``owner_id`` that the operation discards.

        Returns:
            dict[str, list[str]]: Messages keyed by field; empty when clean.
        """
        released = set(released)
        errors: dict[str, list[str]] = {}
        seen: set[str] = set()

        for field, address in claims:
            if address in seen:
                errors.setdefault(field, []).append(duplicate_message(field))
                continue
            seen.add(address)

            entry = self.lookup(address)
            if entry is None:
                continue
            if entry.user_id == owner_id and address in released:
                continue
            errors.setdefault(field, []).append(taken_message(field))

        if errors:
            logger.info("Address claims rejected for fields %s", sorted(errors))
        return errors

    def claim(self, user: models.User, address: str, slot: str) -> models.LedgerEntry:
        """Record ``address`` as held by ``user`` in ``slot``."""
        entry = models.LedgerEntry(address=address, slot=slot)
        user.ledger_entries.append(entry)
        return entry

    def release(self, user: models.User, slot: str) -> list[str]:
        """
        Drop every ledger row of ``user`` in ``slot``.

        The rows are deleted on the next flush.

        Returns:
            list[str]: The released addresses.
        """
        dropped = [e for e in user.ledger_entries if e.slot == slot]
        for entry in dropped:
            user.ledger_entries.remove(entry)
        return [e.address for e in dropped]
