"""Canonical forms for phone numbers, cities, and free text."""

from __future__ import annotations

import re
from typing import Iterable

from .config import DEFAULT_COUNTRY_CODE, LOCAL_NUMBER_LENGTH


WHATSAPP_BASE_URL = "https://wa.me/"


def clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def digits_only(value: str | None) -> str:
    if value is None:
        return ""
    return re.sub(r"\D", "", value)


def _with_country_code(digits: str) -> str:
    if len(digits) == LOCAL_NUMBER_LENGTH:
        return f"{DEFAULT_COUNTRY_CODE}{digits}"
    return digits


def sanitize_contact_input(value: str | None) -> str:
    """Keep at most ten digits of what was typed into the contact field."""
    return digits_only(value)[:LOCAL_NUMBER_LENGTH]


def normalize_phone(raw: str | None) -> str | None:
    digits = digits_only(raw)
    if not digits:
        return None
    return f"+{_with_country_code(digits)}"


def display_phone(canonical: str | None) -> str:
    digits = digits_only(canonical)
    if not digits:
        return ""
    with_country = _with_country_code(digits)
    country_code = with_country[:-LOCAL_NUMBER_LENGTH]
    local_part = with_country[-LOCAL_NUMBER_LENGTH:]
    return f"+{country_code} {local_part}"


def build_contact_link(canonical: str | None) -> str | None:
    digits = digits_only(canonical)
    if not digits:
        return None
    return f"{WHATSAPP_BASE_URL}{_with_country_code(digits)}"


def normalize_location(value: str | None, known_cities: Iterable[str]) -> str | None:
    """Snap a typed city onto its known spelling, or keep it as entered."""
    trimmed = clean_text(value)
    if trimmed is None:
        return None

    folded = trimmed.casefold()
    for city in known_cities:
        if city.casefold() == folded:
            return city
    return trimmed
