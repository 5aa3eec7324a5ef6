"""Thin gateways over the Supabase client for the donations table and auth."""

from __future__ import annotations

import logging
from typing import Any, Callable

from supabase import AuthError, Client, PostgrestAPIError, create_client

from .config import DONATION_COLUMNS, DONATIONS_TABLE, TrackerSettings
from .errors import RemoteError
from .models import DonationRecord


logger = logging.getLogger(__name__)


def create_supabase_client(settings: TrackerSettings) -> Client:
    if not settings.is_configured:
        raise RemoteError("Supabase is not configured. Add SUPABASE_URL and SUPABASE_KEY.")
    return create_client(settings.supabase_url, settings.supabase_key)


def _error_message(exc: PostgrestAPIError | AuthError) -> str:
    message = getattr(exc, "message", None)
    return str(message or exc)


class DonationGateway:
    """Remote operations on the donations table."""

    def __init__(self, client: Client, table_name: str = DONATIONS_TABLE) -> None:
        self._client = client
        self.table_name = table_name

    def _table(self) -> Any:
        return self._client.table(self.table_name)

    def fetch_all(self) -> list[DonationRecord]:
        try:
            response = (
                self._table()
                .select(DONATION_COLUMNS)
                .order("created_at", desc=True)
                .execute()
            )
        except PostgrestAPIError as exc:
            logger.warning("Donation fetch failed: %s", _error_message(exc))
            raise RemoteError(_error_message(exc)) from exc
        return [DonationRecord.from_row(row) for row in response.data or []]

    def insert(self, payload: dict[str, Any]) -> DonationRecord:
        try:
            response = self._table().insert(payload).execute()
        except PostgrestAPIError as exc:
            logger.warning("Donation insert failed: %s", _error_message(exc))
            raise RemoteError(_error_message(exc)) from exc

        rows = response.data or []
        if not rows:
            raise RemoteError("Insert did not return the saved donation.")
        return DonationRecord.from_row(rows[0])

    def update_quantity(self, donation_id: str, quantity: int) -> DonationRecord | None:
        """Set a quantity and return the stored row, if the store sent one back."""
        try:
            response = (
                self._table()
                .update({"qty": quantity})
                .eq("id", donation_id)
                .execute()
            )
        except PostgrestAPIError as exc:
            logger.warning("Donation %s update failed: %s", donation_id, _error_message(exc))
            raise RemoteError(f"Failed to update: {_error_message(exc)}") from exc

        rows = response.data or []
        if not rows:
            return None
        return DonationRecord.from_row(rows[0])

    def delete(self, donation_id: str) -> None:
        try:
            self._table().delete().eq("id", donation_id).execute()
        except PostgrestAPIError as exc:
            logger.warning("Donation %s delete failed: %s", donation_id, _error_message(exc))
            raise RemoteError(f"Failed to delete: {_error_message(exc)}") from exc


class AuthGateway:
    """Session access and magic-link sign-in."""

    def __init__(self, client: Client) -> None:
        self._client = client

    def get_session(self) -> Any | None:
        return self._client.auth.get_session()

    def on_auth_state_change(self, callback: Callable[[Any | None], None]) -> Any:
        def _forward(_event: Any, session: Any | None) -> None:
            callback(session)

        return self._client.auth.on_auth_state_change(_forward)

    def sign_in_with_otp(self, email: str, redirect_to: str | None = None) -> str | None:
        """Send a magic link; returns an error message instead of raising."""
        options: dict[str, Any] = {"should_create_user": True}
        if redirect_to:
            options["email_redirect_to"] = redirect_to

        try:
            self._client.auth.sign_in_with_otp({"email": email, "options": options})
        except AuthError as exc:
            logger.warning("Magic link request failed: %s", _error_message(exc))
            return _error_message(exc)
        return None

    def verify_email_otp(self, email: str, token: str) -> str | None:
        """Exchange the emailed one-time code for a session."""
        try:
            self._client.auth.verify_otp({"email": email, "token": token, "type": "email"})
        except AuthError as exc:
            logger.warning("One-time code verification failed: %s", _error_message(exc))
            return _error_message(exc)
        return None

    def sign_out(self) -> None:
        self._client.auth.sign_out()
