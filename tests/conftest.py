from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from donation_tracker.collection import DonationCollection
from donation_tracker.errors import RemoteError
from donation_tracker.models import DonationRecord


BASE_TIME = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def make_record(
    record_id: str,
    quantity: int = 1,
    food_name: str | None = None,
    minutes: int = 0,
    **extra: Any,
) -> DonationRecord:
    return DonationRecord(
        id=record_id,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        food_name=food_name or f"Food {record_id}",
        quantity=quantity,
        **extra,
    )


@dataclass
class FakeSession:
    email: str = "volunteer@example.org"

    @property
    def user(self) -> Any:
        return self


class FakeDonationSource:
    """In-memory stand-in for the donations table."""

    def __init__(self, rows: list[DonationRecord] | None = None) -> None:
        self.rows: list[DonationRecord] = list(rows or [])
        self.calls: list[tuple[str, Any]] = []
        self.fail_with: Exception | None = None
        self.return_updated_rows = True
        self.before_update: Callable[[str], None] | None = None
        self._next_id = 100

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def fetch_all(self) -> list[DonationRecord]:
        self.calls.append(("fetch_all", None))
        self._maybe_fail()
        return sorted(self.rows, key=lambda row: row.created_at, reverse=True)

    def insert(self, payload: dict[str, Any]) -> DonationRecord:
        self.calls.append(("insert", payload))
        self._maybe_fail()
        self._next_id += 1
        record = DonationRecord.from_row(
            {
                **payload,
                "id": f"d-{self._next_id}",
                "created_at": (BASE_TIME + timedelta(days=1, minutes=self._next_id)).isoformat(),
            }
        )
        self.rows.append(record)
        return record

    def update_quantity(self, donation_id: str, quantity: int) -> DonationRecord | None:
        self.calls.append(("update_quantity", (donation_id, quantity)))
        if self.before_update is not None:
            self.before_update(donation_id)
        self._maybe_fail()
        updated = None
        for index, row in enumerate(self.rows):
            if row.id == donation_id:
                updated = DonationRecord.from_row({**row.to_row(), "qty": quantity})
                self.rows[index] = updated
        if not self.return_updated_rows:
            return None
        return updated

    def delete(self, donation_id: str) -> None:
        self.calls.append(("delete", donation_id))
        self._maybe_fail()
        self.rows = [row for row in self.rows if row.id != donation_id]

    def remote_calls(self) -> list[str]:
        return [name for name, _ in self.calls]


class FakeSubscription:
    def __init__(self) -> None:
        self.active = True

    def unsubscribe(self) -> None:
        self.active = False


@dataclass
class FakeAuth:
    session: Any | None = None
    otp_error: str | None = None
    verify_error: str | None = None
    callbacks: list[Callable[[Any | None], None]] = field(default_factory=list)
    subscriptions: list[FakeSubscription] = field(default_factory=list)
    otp_requests: list[tuple[str, str | None]] = field(default_factory=list)
    signed_out: bool = False
    emits_sign_out: bool = True

    def get_session(self) -> Any | None:
        return self.session

    def on_auth_state_change(self, callback: Callable[[Any | None], None]) -> FakeSubscription:
        self.callbacks.append(callback)
        subscription = FakeSubscription()
        self.subscriptions.append(subscription)
        return subscription

    def emit(self, session: Any | None) -> None:
        self.session = session
        for callback, subscription in zip(self.callbacks, self.subscriptions):
            if subscription.active:
                callback(session)

    def sign_in_with_otp(self, email: str, redirect_to: str | None = None) -> str | None:
        self.otp_requests.append((email, redirect_to))
        return self.otp_error

    def verify_email_otp(self, email: str, token: str) -> str | None:
        if self.verify_error:
            return self.verify_error
        self.emit(FakeSession(email=email))
        return None

    def sign_out(self) -> None:
        self.signed_out = True
        if self.emits_sign_out:
            self.emit(None)


@pytest.fixture
def source() -> FakeDonationSource:
    return FakeDonationSource(
        [
            make_record("a", quantity=5, food_name="Rice", minutes=0, location="Chennai"),
            make_record("b", quantity=0, food_name="Bread", minutes=10, location="Pune"),
            make_record("c", quantity=3, food_name="Apples", minutes=20),
        ]
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def collection(source: FakeDonationSource, session: FakeSession) -> DonationCollection:
    donations = DonationCollection(source)
    donations.reload(session)
    source.calls.clear()
    return donations


@pytest.fixture
def remote_error() -> RemoteError:
    return RemoteError("permission denied for table donations")
