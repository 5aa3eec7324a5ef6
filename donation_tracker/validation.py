"""Checks applied to form input and quantity edits before any remote call."""

from __future__ import annotations

import math
from typing import Any, Iterable

from .config import LOCAL_NUMBER_LENGTH
from .errors import ValidationError
from .models import DonationForm
from .normalize import clean_text, digits_only, normalize_location, normalize_phone


def _parse_number(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def validate_donation_form(
    form: DonationForm,
    known_cities: Iterable[str],
    require_contact: bool = True,
) -> dict[str, Any]:
    """Return the insert payload for a form, or raise on the first bad field."""
    food_name = clean_text(form.food_name)
    if food_name is None:
        raise ValidationError("Food name is required.")

    quantity = _parse_number(form.quantity)
    if quantity is None or quantity <= 0:
        raise ValidationError("Quantity must be greater than zero.")
    if not quantity.is_integer():
        raise ValidationError("Quantity must be a whole number.")

    phone_digits = digits_only(form.contact_number)
    if require_contact and len(phone_digits) != LOCAL_NUMBER_LENGTH:
        raise ValidationError(
            f"Contact number must be exactly {LOCAL_NUMBER_LENGTH} digits."
        )

    return {
        "food_name": food_name,
        "description": clean_text(form.description),
        "qty": int(quantity),
        "name": clean_text(form.donor_name),
        "location": normalize_location(form.location, known_cities),
        "contact_number": normalize_phone(phone_digits),
    }


def parse_quantity_update(raw: str | None, current: int) -> int | None:
    """Parse a new quantity; ``None`` means there is nothing to send."""
    if raw is None or not str(raw).strip():
        return None

    quantity = _parse_number(raw)
    if quantity is None or quantity < 0 or not quantity.is_integer():
        raise ValidationError("Quantity must be zero or a positive number.")

    next_quantity = int(quantity)
    if next_quantity == current:
        return None
    return next_quantity
