from __future__ import annotations

import pytest

from conftest import FakeDonationSource, FakeSession, make_record
from donation_tracker.collection import DonationCollection
from donation_tracker.errors import (
    RecordLockedError,
    RemoteError,
    UnexpectedError,
    ValidationError,
)
from donation_tracker.models import DonationForm


def _ids(collection: DonationCollection) -> list[str]:
    return [record.id for record in collection.records]


def test_reload_without_session_clears_and_skips_remote(
    collection: DonationCollection,
    source: FakeDonationSource,
) -> None:
    assert collection.records

    collection.reload(None)

    assert collection.records == ()
    assert source.calls == []
    assert collection.load_error is None


def test_reload_orders_newest_first(collection: DonationCollection) -> None:
    assert _ids(collection) == ["c", "b", "a"]
    assert not collection.loading


def test_reload_failure_clears_collection_and_records_error(
    collection: DonationCollection,
    source: FakeDonationSource,
    session: FakeSession,
    remote_error: RemoteError,
) -> None:
    source.fail_with = remote_error

    collection.reload(session)

    assert collection.records == ()
    assert collection.load_error == "permission denied for table donations"
    assert source.remote_calls() == ["fetch_all"]


def test_reload_unexpected_failure_records_generic_error(
    collection: DonationCollection,
    source: FakeDonationSource,
    session: FakeSession,
) -> None:
    source.fail_with = ConnectionError("network down")

    collection.reload(session)

    assert collection.records == ()
    assert collection.load_error == "An unexpected error occurred. Please try again."


def test_submit_prepends_remote_row_and_survives_reload(
    collection: DonationCollection,
    source: FakeDonationSource,
    session: FakeSession,
) -> None:
    form = DonationForm(
        food_name="Chapati",
        quantity="12",
        location="kochi",
        contact_number="9876543210",
    )

    record = collection.submit(form, session)

    assert collection.records[0] == record
    assert record.location == "Kochi"
    assert record.contact_number == "+919876543210"

    collection.reload(session)
    reloaded = collection.get(record.id)
    assert reloaded is not None
    assert (reloaded.id, reloaded.quantity, reloaded.food_name) == (record.id, 12, "Chapati")


def test_submit_validation_failure_never_reaches_remote(
    collection: DonationCollection,
    source: FakeDonationSource,
    session: FakeSession,
) -> None:
    before = collection.records

    with pytest.raises(ValidationError, match="Food name is required."):
        collection.submit(DonationForm(food_name=" "), session)

    assert source.calls == []
    assert collection.records == before


def test_submit_requires_a_session(collection: DonationCollection, source: FakeDonationSource) -> None:
    with pytest.raises(ValidationError):
        collection.submit(DonationForm(food_name="Rice", contact_number="9876543210"), None)
    assert source.calls == []


def test_submit_remote_failure_leaves_collection_unchanged(
    collection: DonationCollection,
    source: FakeDonationSource,
    session: FakeSession,
    remote_error: RemoteError,
) -> None:
    before = collection.records
    source.fail_with = remote_error

    with pytest.raises(RemoteError):
        collection.submit(DonationForm(food_name="Rice", contact_number="9876543210"), session)

    assert collection.records == before


def test_update_to_same_quantity_skips_remote(
    collection: DonationCollection,
    source: FakeDonationSource,
) -> None:
    before = collection.records

    assert collection.update_quantity("a", "5") is None

    assert source.calls == []
    assert collection.records is before


def test_update_replaces_record_with_remote_row(
    collection: DonationCollection,
    source: FakeDonationSource,
) -> None:
    updated = collection.update_quantity("a", "0")

    assert updated is not None
    assert updated.quantity == 0
    assert updated.is_finished
    assert collection.get("a") == updated
    assert _ids(collection) == ["c", "b", "a"]
    assert source.remote_calls() == ["update_quantity"]
    assert not collection.is_locked("a")


def test_update_without_returned_row_falls_back_to_reload(
    collection: DonationCollection,
    source: FakeDonationSource,
) -> None:
    source.return_updated_rows = False

    collection.update_quantity("c", "9")

    assert source.remote_calls() == ["update_quantity", "fetch_all"]
    record = collection.get("c")
    assert record is not None
    assert record.quantity == 9


def test_update_fallback_reload_failure_is_reported_not_logged_as_success(
    collection: DonationCollection,
    source: FakeDonationSource,
    remote_error: RemoteError,
    caplog: pytest.LogCaptureFixture,
) -> None:
    source.return_updated_rows = False

    def fail_next_fetch(_donation_id: str) -> None:
        def failing_fetch() -> list:
            raise remote_error

        source.fetch_all = failing_fetch  # type: ignore[method-assign]

    source.before_update = fail_next_fetch

    with caplog.at_level("INFO", logger="donation_tracker.collection"):
        result = collection.update_quantity("c", "9")

    assert result is None
    assert collection.load_error == remote_error.message
    assert collection.records == ()
    assert not collection.is_locked("c")
    assert "quantity set to" not in caplog.text
    assert "reload failed" in caplog.text


def test_update_remote_failure_leaves_record_and_releases_lock(
    collection: DonationCollection,
    source: FakeDonationSource,
) -> None:
    source.fail_with = RemoteError("Failed to update: row level security")
    before = collection.records

    with pytest.raises(RemoteError, match="Failed to update"):
        collection.update_quantity("a", "2")

    assert collection.records == before
    assert not collection.is_locked("a")


def test_update_unexpected_failure_is_wrapped_and_lock_released(
    collection: DonationCollection,
    source: FakeDonationSource,
) -> None:
    source.fail_with = TimeoutError("read timed out")

    with pytest.raises(UnexpectedError) as excinfo:
        collection.update_quantity("a", "2")

    assert excinfo.value.message == "An unexpected error occurred. Please try again."
    assert isinstance(excinfo.value.__cause__, TimeoutError)
    assert not collection.is_locked("a")


def test_update_rejects_invalid_quantity_before_remote(
    collection: DonationCollection,
    source: FakeDonationSource,
) -> None:
    with pytest.raises(ValidationError):
        collection.update_quantity("a", "-4")
    assert source.calls == []


def test_update_unknown_record_is_rejected(collection: DonationCollection) -> None:
    with pytest.raises(ValidationError, match="not found"):
        collection.update_quantity("missing", "3")


def test_second_mutation_on_locked_record_is_rejected(
    collection: DonationCollection,
    source: FakeDonationSource,
) -> None:
    rejected: list[Exception] = []

    def _concurrent_delete(donation_id: str) -> None:
        assert collection.is_locked(donation_id)
        with pytest.raises(RecordLockedError) as excinfo:
            collection.delete(donation_id)
        rejected.append(excinfo.value)

    source.before_update = _concurrent_delete

    collection.update_quantity("a", "1")

    assert len(rejected) == 1
    assert "delete" not in source.remote_calls()
    record = collection.get("a")
    assert record is not None
    assert record.quantity == 1


def test_mutations_on_different_records_do_not_block(
    collection: DonationCollection,
    source: FakeDonationSource,
) -> None:
    def _delete_other(donation_id: str) -> None:
        collection.delete("b")

    source.before_update = _delete_other

    collection.update_quantity("a", "4")

    assert _ids(collection) == ["c", "a"]


def test_late_update_for_removed_record_is_discarded(collection: DonationCollection) -> None:
    collection.remove_confirmed("a")

    collection.apply_update_confirmed("a", make_record("a", quantity=9))

    assert collection.get("a") is None
    assert _ids(collection) == ["c", "b"]


def test_delete_removes_after_confirmation(
    collection: DonationCollection,
    source: FakeDonationSource,
) -> None:
    collection.delete("b")

    assert _ids(collection) == ["c", "a"]
    assert source.remote_calls() == ["delete"]
    assert not collection.is_locked("b")


def test_delete_of_absent_record_does_not_raise(collection: DonationCollection) -> None:
    before = collection.records

    collection.delete("x")

    assert collection.records == before


def test_failed_delete_leaves_collection_untouched(
    collection: DonationCollection,
    source: FakeDonationSource,
) -> None:
    source.fail_with = RemoteError("Failed to delete: permission denied")
    before = collection.records

    with pytest.raises(RemoteError):
        collection.delete("b")

    assert collection.records == before
    assert not collection.is_locked("b")


def test_mutations_swap_in_new_snapshots(collection: DonationCollection) -> None:
    snapshot = collection.records

    collection.insert_confirmed(make_record("n", minutes=99))
    collection.remove_confirmed("a")

    assert _ids(collection) == ["n", "c", "b"]
    assert [record.id for record in snapshot] == ["c", "b", "a"]


def test_insert_confirmed_keeps_ids_unique(collection: DonationCollection) -> None:
    collection.insert_confirmed(make_record("a", quantity=8))

    assert _ids(collection) == ["a", "c", "b"]
    record = collection.get("a")
    assert record is not None
    assert record.quantity == 8
