"""Filtered, sorted, and summarized projections of the donation collection."""

from __future__ import annotations

import locale
import unicodedata
from dataclasses import dataclass
from typing import Iterable, Sequence

from .models import DonationRecord, DonationStats, FilterState


@dataclass(frozen=True)
class DerivedView:
    visible_records: tuple[DonationRecord, ...]
    stats: DonationStats


def _matches_search(record: DonationRecord, query: str) -> bool:
    searchable = (record.food_name, record.description, record.donor_name)
    return any(query in field.casefold() for field in searchable if field)


def _matches_status(record: DonationRecord, status_filter: str) -> bool:
    if status_filter == "active":
        return record.quantity > 0
    if status_filter == "finished":
        return record.quantity == 0
    return True


def _name_key(record: DonationRecord) -> str:
    decomposed = unicodedata.normalize("NFKD", record.food_name)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return locale.strxfrm(base.casefold())


def _sorted(records: list[DonationRecord], sort_key: str) -> list[DonationRecord]:
    # sorted() stays stable with reverse=True, so ties keep their prior order.
    if sort_key == "date":
        return sorted(records, key=lambda record: record.created_at, reverse=True)
    if sort_key == "quantity":
        return sorted(records, key=lambda record: record.quantity, reverse=True)
    if sort_key == "name":
        return sorted(records, key=_name_key)
    return list(records)


def compute_stats(records: Iterable[DonationRecord]) -> DonationStats:
    total = 0
    active = 0
    total_quantity = 0
    locations: set[str] = set()

    for record in records:
        total += 1
        if record.quantity > 0:
            active += 1
        total_quantity += record.quantity
        if record.location:
            locations.add(record.location)

    return DonationStats(
        total=total,
        active=active,
        finished=total - active,
        total_quantity=total_quantity,
        distinct_locations=len(locations),
    )


def location_options(records: Iterable[DonationRecord]) -> list[str]:
    """Distinct locations in collection order, for the location filter."""
    seen: dict[str, None] = {}
    for record in records:
        if record.location:
            seen.setdefault(record.location, None)
    return list(seen)


def derive(records: Sequence[DonationRecord], filters: FilterState) -> DerivedView:
    filtered = list(records)

    query = filters.search_query.strip().casefold()
    if query:
        filtered = [record for record in filtered if _matches_search(record, query)]

    if filters.location_filter:
        filtered = [
            record for record in filtered if record.location == filters.location_filter
        ]

    filtered = [
        record for record in filtered if _matches_status(record, filters.status_filter)
    ]

    return DerivedView(
        visible_records=tuple(_sorted(filtered, filters.sort_key)),
        stats=compute_stats(records),
    )
