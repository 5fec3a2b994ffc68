"""
Transient error state for the login and register forms.

Each form owns one ``ErrorState`` and a single timer slot. A failed submission
shows the error and arms an 8 second auto-clear timer. Typing into the form can
replace that timer with a short debounce that clears the error once the user
has clearly moved on. Only one timer is ever pending: scheduling a new one
always cancels the previous handle first, so a stale timer can never clear a
newer error.

The 8 second window is a hard deadline. A debounce is never allowed to fire
after it, so input can clear an error early but never keep it alive longer.

The scheduler and clock are injectable. By default timers run on the current
asyncio loop (``loop.call_later``) measured against ``time.monotonic``, which
is the default loop's clock; tests pass a fake clock.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from app.constants.constants import (
    EMAIL_DEBOUNCE_DELAY,
    ERROR_AUTO_CLEAR_DELAY,
    ERROR_KIND_DISPLAY,
    FIELD_DEBOUNCE_DELAY,
    ErrorDisplay,
    ErrorKind,
)
from app.utils.forms.email_similarity import is_significantly_different

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Authentication failed. Please try again."


def _loop_call_later(delay: float, callback: Callable[[], None]):
    return asyncio.get_running_loop().call_later(delay, callback)


class ErrorState:
    """The one error currently shown on a form."""

    def __init__(self):
        self.message = ""
        self.kind = ErrorKind.GENERIC
        self.error_id = 0
        self.triggering_email = ""

    @property
    def is_active(self) -> bool:
        return bool(self.message)

    @property
    def display(self) -> ErrorDisplay:
        return ERROR_KIND_DISPLAY[self.kind]

    def set(self, message: str, kind: ErrorKind, email: str):
        self.message = message
        self.kind = kind
        self.error_id += 1
        self.triggering_email = email

    def reset(self):
        # error_id survives resets so it keeps increasing across failures
        self.message = ""
        self.kind = ErrorKind.GENERIC
        self.triggering_email = ""

    def __repr__(self):
        return f"<ErrorState #{self.error_id} {self.kind.value}: {self.message!r}>"


class TimerSlot:
    """Holds at most one pending timer handle."""

    def __init__(self, call_later: Optional[Callable] = None):
        self._call_later = call_later or _loop_call_later
        self._handle = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, delay: float, callback: Callable[[], None]):
        self.cancel()

        def fire():
            self._handle = None
            callback()

        self._handle = self._call_later(delay, fire)

    def cancel(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AuthFormErrors:
    """State controller shared by the login and register forms."""

    def __init__(
        self,
        call_later: Optional[Callable] = None,
        now: Optional[Callable[[], float]] = None,
        auto_clear_delay: float = ERROR_AUTO_CLEAR_DELAY,
        email_debounce_delay: float = EMAIL_DEBOUNCE_DELAY,
        field_debounce_delay: float = FIELD_DEBOUNCE_DELAY,
    ):
        self.state = ErrorState()
        self.auto_clear_delay = auto_clear_delay
        self.email_debounce_delay = email_debounce_delay
        self.field_debounce_delay = field_debounce_delay
        self._timer = TimerSlot(call_later)
        self._now = now or time.monotonic
        self._expires_at = 0.0
        self._latest_email = ""

    @property
    def has_pending_timer(self) -> bool:
        return self._timer.pending

    def time_left(self) -> float:
        """Seconds until the current error must be gone."""
        return max(0.0, self._expires_at - self._now())

    def trigger(self, message: str, kind: ErrorKind = ErrorKind.GENERIC, email: str = "") -> ErrorState:
        """Show a new error from a failed submission and arm the auto-clear timer."""
        self.state.set(message or DEFAULT_ERROR_MESSAGE, kind, email)
        self._latest_email = email
        self._expires_at = self._now() + self.auto_clear_delay
        self._timer.schedule(self.auto_clear_delay, self._expire)
        logger.debug(f"Form error #{self.state.error_id} ({kind.value}) shown for {email!r}")
        return self.state

    def dismiss(self):
        """Manual dismissal: clear now and make sure nothing fires later."""
        self._clear()

    def close(self):
        """Form teardown: drop the pending timer, leave the state alone."""
        self._timer.cancel()

    def on_email_change(self, value: str):
        if not self.state.is_active:
            return
        self._latest_email = value
        if self._clear_if_empty(value):
            return
        if not is_significantly_different(value, self.state.triggering_email):
            # A pending debounce re-checks the latest value when it fires
            return
        self._timer.schedule(min(self.email_debounce_delay, self.time_left()), self._email_debounce_elapsed)

    def _on_field_change(self, value: str):
        if not self.state.is_active:
            return
        if self._clear_if_empty(value):
            return
        self._timer.schedule(min(self.field_debounce_delay, self.time_left()), self._clear)

    def _clear_if_empty(self, value: str) -> bool:
        if value:
            return False
        self._clear()
        return True

    def _email_debounce_elapsed(self):
        remaining = self.time_left()
        if is_significantly_different(self._latest_email, self.state.triggering_email):
            self._clear()
        elif remaining > 0:
            # Typed back to the failing email: resume the original countdown
            self._timer.schedule(remaining, self._expire)
        else:
            self._expire()

    def _expire(self):
        logger.debug(f"Form error #{self.state.error_id} auto-cleared")
        self.state.reset()

    def _clear(self):
        self._timer.cancel()
        self.state.reset()


class LoginFormErrors(AuthFormErrors):

    def on_password_change(self, value: str):
        # Retyping the password cannot fix a missing account
        if self.state.kind == ErrorKind.ACCOUNT_NOT_FOUND:
            return
        self._on_field_change(value)


class RegisterFormErrors(AuthFormErrors):

    def on_name_change(self, value: str):
        self._on_field_change(value)

    def on_password_change(self, value: str):
        self._on_field_change(value)

    def on_confirm_password_change(self, value: str):
        self._on_field_change(value)
