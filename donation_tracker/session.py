"""Auth session tracking and the magic-link sign-in flow."""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

from .collection import DonationCollection


logger = logging.getLogger(__name__)

MAGIC_LINK_SENT_MESSAGE = "Check your email for the magic link to finish signing in."


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class AuthSource(Protocol):
    def get_session(self) -> Any | None: ...

    def on_auth_state_change(self, callback: Callable[[Any | None], None]) -> Subscription: ...

    def sign_in_with_otp(self, email: str, redirect_to: str | None = None) -> str | None: ...

    def verify_email_otp(self, email: str, token: str) -> str | None: ...

    def sign_out(self) -> None: ...


def session_email(session: Any | None) -> str | None:
    user = getattr(session, "user", None)
    return getattr(user, "email", None)


class SessionLifecycle:
    """Follows the auth session and reloads the collection on every change."""

    def __init__(self, auth: AuthSource, collection: DonationCollection) -> None:
        self._auth = auth
        self._collection = collection
        self._subscription: Subscription | None = None
        self.session: Any | None = None

    @property
    def is_signed_in(self) -> bool:
        return getattr(self.session, "user", None) is not None

    @property
    def user_email(self) -> str | None:
        return session_email(self.session)

    def start(self) -> None:
        if self._subscription is not None:
            return
        self._handle_change(self._auth.get_session())
        self._subscription = self._auth.on_auth_state_change(self._handle_change)

    def stop(self) -> None:
        if self._subscription is None:
            return
        self._subscription.unsubscribe()
        self._subscription = None

    def __enter__(self) -> "SessionLifecycle":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _handle_change(self, session: Any | None) -> None:
        was_signed_in = self.is_signed_in
        self.session = session
        if was_signed_in != self.is_signed_in:
            logger.info("Session %s", "started" if self.is_signed_in else "ended")
        self._collection.reload(session)

    def sign_out(self) -> None:
        self._auth.sign_out()
        self.session = None
        # Covers auth clients that do not emit SIGNED_OUT.
        self._collection.reload(None)


class SignInState:
    """Magic-link request status: idle, sending, sent, or error."""

    def __init__(self, auth: AuthSource, redirect_to: str | None = None) -> None:
        self._auth = auth
        self.redirect_to = redirect_to
        self.status = "idle"
        self.error: str | None = None

    @property
    def message(self) -> str | None:
        if self.status == "sent":
            return MAGIC_LINK_SENT_MESSAGE
        if self.status == "error" and self.error:
            return self.error
        return None

    def request_magic_link(self, email: str) -> bool:
        cleaned = email.strip()
        if not cleaned:
            return False

        self.status = "sending"
        self.error = None
        error = self._auth.sign_in_with_otp(cleaned, redirect_to=self.redirect_to)
        if error:
            self.status = "error"
            self.error = error
            return False

        self.status = "sent"
        return True

    def verify_code(self, email: str, code: str) -> bool:
        """Finish signing in with the one-time code from the magic-link email."""
        cleaned_email = email.strip()
        cleaned_code = code.strip()
        if not cleaned_email or not cleaned_code:
            return False

        error = self._auth.verify_email_otp(cleaned_email, cleaned_code)
        if error:
            self.status = "error"
            self.error = error
            return False

        self.status = "idle"
        self.error = None
        return True
