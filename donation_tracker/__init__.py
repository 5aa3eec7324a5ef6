"""Food donation tracking on top of a hosted Supabase backend."""

from .collection import DonationCollection
from .config import CITY_SUGGESTIONS, TrackerSettings, load_settings
from .errors import (
    DonationTrackerError,
    RecordLockedError,
    RemoteError,
    UnexpectedError,
    ValidationError,
)
from .models import DonationForm, DonationRecord, DonationStats, FilterState
from .normalize import (
    build_contact_link,
    display_phone,
    normalize_location,
    normalize_phone,
    sanitize_contact_input,
)
from .notices import NoticeBoard
from .session import SessionLifecycle, SignInState
from .views import DerivedView, compute_stats, derive, location_options

__all__ = [
    "CITY_SUGGESTIONS",
    "DerivedView",
    "DonationCollection",
    "DonationForm",
    "DonationRecord",
    "DonationStats",
    "DonationTrackerError",
    "FilterState",
    "NoticeBoard",
    "RecordLockedError",
    "RemoteError",
    "SessionLifecycle",
    "SignInState",
    "TrackerSettings",
    "UnexpectedError",
    "ValidationError",
    "build_contact_link",
    "compute_stats",
    "derive",
    "display_phone",
    "load_settings",
    "location_options",
    "normalize_location",
    "normalize_phone",
    "sanitize_contact_input",
]
