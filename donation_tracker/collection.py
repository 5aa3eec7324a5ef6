"""Local donation collection kept in step with the remote donations table."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Protocol

from .config import CITY_SUGGESTIONS
from .errors import (
    UNEXPECTED_ERROR_MESSAGE,
    DonationTrackerError,
    RecordLockedError,
    UnexpectedError,
    ValidationError,
)
from .models import DonationForm, DonationRecord
from .validation import parse_quantity_update, validate_donation_form


logger = logging.getLogger(__name__)


class DonationSource(Protocol):
    def fetch_all(self) -> list[DonationRecord]: ...

    def insert(self, payload: dict[str, Any]) -> DonationRecord: ...

    def update_quantity(self, donation_id: str, quantity: int) -> DonationRecord | None: ...

    def delete(self, donation_id: str) -> None: ...


class DonationCollection:
    """Authoritative local list of donations plus per-record mutation locks.

    Local state only changes after the remote store confirms a write. The
    record tuple is swapped for a new one on every change, so a snapshot taken
    by a reader never changes underneath it.
    """

    def __init__(
        self,
        source: DonationSource,
        known_cities: Iterable[str] = CITY_SUGGESTIONS,
        require_contact: bool = True,
    ) -> None:
        self._source = source
        self.known_cities = tuple(known_cities)
        self.require_contact = require_contact
        self._records: tuple[DonationRecord, ...] = ()
        self._locked_ids: set[str] = set()
        self._guard = threading.Lock()
        self._session: Any | None = None
        self.loading = False
        self.load_error: str | None = None

    @property
    def records(self) -> tuple[DonationRecord, ...]:
        return self._records

    def get(self, donation_id: str) -> DonationRecord | None:
        for record in self._records:
            if record.id == donation_id:
                return record
        return None

    def is_locked(self, donation_id: str) -> bool:
        with self._guard:
            return donation_id in self._locked_ids

    def reload(self, session: Any | None) -> None:
        self._session = session
        if not session:
            with self._guard:
                self._records = ()
            self.loading = False
            self.load_error = None
            return

        self.loading = True
        self.load_error = None
        try:
            fetched = tuple(self._source.fetch_all())
        except DonationTrackerError as exc:
            self._fail_reload(exc.message)
            return
        except Exception:
            logger.exception("Unexpected failure while loading donations")
            self._fail_reload(UNEXPECTED_ERROR_MESSAGE)
            return

        with self._guard:
            self._records = fetched
        self.loading = False
        logger.info("Loaded %d donation(s)", len(fetched))

    def _fail_reload(self, message: str) -> None:
        with self._guard:
            self._records = ()
        self.loading = False
        self.load_error = message

    def insert_confirmed(self, record: DonationRecord) -> None:
        with self._guard:
            remaining = tuple(item for item in self._records if item.id != record.id)
            self._records = (record, *remaining)

    def apply_update_confirmed(
        self,
        donation_id: str,
        updated: DonationRecord | None,
    ) -> None:
        if updated is None:
            # The store returned no row, so the local quantity cannot be trusted.
            self.reload(self._session)
            return

        with self._guard:
            if not any(record.id == donation_id for record in self._records):
                logger.debug("Discarding update for donation %s no longer listed", donation_id)
                return
            self._records = tuple(
                updated if record.id == donation_id else record
                for record in self._records
            )

    def remove_confirmed(self, donation_id: str) -> None:
        with self._guard:
            self._records = tuple(
                record for record in self._records if record.id != donation_id
            )

    @contextmanager
    def _mutation_lock(self, donation_id: str) -> Iterator[None]:
        with self._guard:
            if donation_id in self._locked_ids:
                raise RecordLockedError(
                    "Another change to this donation is still in progress."
                )
            self._locked_ids.add(donation_id)
        try:
            yield
        except DonationTrackerError:
            raise
        except Exception as exc:
            logger.exception("Unexpected failure while changing donation %s", donation_id)
            raise UnexpectedError() from exc
        finally:
            with self._guard:
                self._locked_ids.discard(donation_id)

    def submit(self, form: DonationForm, session: Any | None) -> DonationRecord:
        if not session:
            raise ValidationError("Sign in to log donations.")

        payload = validate_donation_form(
            form,
            self.known_cities,
            require_contact=self.require_contact,
        )
        try:
            record = self._source.insert(payload)
        except DonationTrackerError:
            raise
        except Exception as exc:
            logger.exception("Unexpected failure while saving a donation")
            raise UnexpectedError() from exc

        self.insert_confirmed(record)
        logger.info("Logged donation %s (%s x%d)", record.id, record.food_name, record.quantity)
        return record

    def update_quantity(self, donation_id: str, raw_quantity: str | None) -> DonationRecord | None:
        """Change a quantity; returns ``None`` when nothing needed sending."""
        current = self.get(donation_id)
        if current is None:
            raise ValidationError("Donation record was not found.")

        next_quantity = parse_quantity_update(raw_quantity, current.quantity)
        if next_quantity is None:
            return None

        with self._mutation_lock(donation_id):
            updated = self._source.update_quantity(donation_id, next_quantity)
            self.apply_update_confirmed(donation_id, updated)

        if updated is None and self.load_error:
            logger.warning(
                "Donation %s quantity sent but reload failed: %s",
                donation_id,
                self.load_error,
            )
            return None

        logger.info("Donation %s quantity set to %d", donation_id, next_quantity)
        return self.get(donation_id)

    def delete(self, donation_id: str) -> None:
        with self._mutation_lock(donation_id):
            self._source.delete(donation_id)
            self.remove_confirmed(donation_id)
        logger.info("Deleted donation %s", donation_id)
