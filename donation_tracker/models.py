"""Donation records and the transient state derived views are built from."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Mapping


STATUS_FILTERS = ("all", "active", "finished")
SORT_KEYS = ("date", "quantity", "name")


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class DonationRecord:
    id: str
    created_at: datetime
    food_name: str
    quantity: int
    description: str | None = None
    donor_name: str | None = None
    location: str | None = None
    contact_number: str | None = None

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError("Donation quantity cannot be negative.")

    @property
    def is_finished(self) -> bool:
        return self.quantity == 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "DonationRecord":
        """Build a record from a row returned by the donations table."""
        return cls(
            id=str(row["id"]),
            created_at=_parse_timestamp(row["created_at"]),
            food_name=str(row["food_name"]),
            quantity=int(row["qty"]),
            description=_optional_text(row.get("description")),
            donor_name=_optional_text(row.get("name")),
            location=_optional_text(row.get("location")),
            contact_number=_optional_text(row.get("contact_number")),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "food_name": self.food_name,
            "description": self.description,
            "qty": self.quantity,
            "name": self.donor_name,
            "location": self.location,
            "contact_number": self.contact_number,
        }


@dataclass(frozen=True)
class FilterState:
    search_query: str = ""
    location_filter: str = ""
    status_filter: str = "all"
    sort_key: str = "date"

    def __post_init__(self) -> None:
        if self.status_filter not in STATUS_FILTERS:
            raise ValueError(f"Status filter must be one of: {', '.join(STATUS_FILTERS)}.")
        if self.sort_key not in SORT_KEYS:
            raise ValueError(f"Sort key must be one of: {', '.join(SORT_KEYS)}.")

    @property
    def is_filtered(self) -> bool:
        return bool(
            self.search_query
            or self.location_filter
            or self.status_filter != "all"
        )

    def cleared(self) -> "FilterState":
        return replace(self, search_query="", location_filter="", status_filter="all")


@dataclass(frozen=True)
class DonationStats:
    total: int = 0
    active: int = 0
    finished: int = 0
    total_quantity: int = 0
    distinct_locations: int = 0


@dataclass(frozen=True)
class DonationForm:
    """Raw values as typed into the donation form."""

    food_name: str = ""
    description: str = ""
    quantity: str = "1"
    donor_name: str = ""
    location: str = ""
    contact_number: str = ""
