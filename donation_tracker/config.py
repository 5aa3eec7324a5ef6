"""Connection settings and shared constants."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping


DONATIONS_TABLE = "donations"
DONATION_COLUMNS = (
    "id, created_at, food_name, description, qty, name, location, contact_number"
)
DEFAULT_COUNTRY_CODE = "91"
LOCAL_NUMBER_LENGTH = 10
NOTICE_TTL_SECONDS = 5.0

CITY_SUGGESTIONS = (
    "Chennai",
    "Hyderabad",
    "Bengaluru",
    "Coimbatore",
    "Madurai",
    "Mumbai",
    "Delhi",
    "Kolkata",
    "Pune",
    "Kochi",
    "Trichy",
    "Salem",
    "Vizag",
    "Mysuru",
    "Ahmedabad",
)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _read(name: str, secrets: Mapping[str, Any], environ: Mapping[str, str]) -> str | None:
    value = secrets.get(name)
    if value is None:
        value = environ.get(name)
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def _flag(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in _TRUE_VALUES


@dataclass(frozen=True)
class TrackerSettings:
    supabase_url: str | None
    supabase_key: str | None
    email_redirect_to: str | None = None
    require_contact_number: bool = True
    known_cities: tuple[str, ...] = CITY_SUGGESTIONS

    @property
    def is_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def load_settings(
    secrets: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> TrackerSettings:
    """Build settings from Streamlit secrets, falling back to the environment."""
    secrets = secrets or {}
    environ = os.environ if environ is None else environ

    return TrackerSettings(
        supabase_url=_read("SUPABASE_URL", secrets, environ),
        supabase_key=_read("SUPABASE_KEY", secrets, environ),
        email_redirect_to=_read("EMAIL_REDIRECT_TO", secrets, environ),
        require_contact_number=_flag(
            _read("REQUIRE_CONTACT_NUMBER", secrets, environ),
            default=True,
        ),
    )
