"""Constants for user roles, participation statuses, auth error kinds, funnel stages and data maintenance."""

from enum import Enum
from typing import Dict, List, NamedTuple


class UserRole(str, Enum):
    """Enumeration of user roles on the platform."""

    attendee = "attendee"
    host = "host"


class RegistrationStatus(str, Enum):
    """Enumeration of registration review statuses."""

    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class WaitingListStatus(str, Enum):
    """Enumeration of waiting list entry statuses."""

    waiting = "waiting"
    promoted = "promoted"
    rejected = "rejected"


class InvitationStatus(str, Enum):
    """Enumeration of invitation statuses."""

    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class PaymentProofOwner(str, Enum):
    """Record types a payment proof can be attached to (URL path segment)."""

    waiting_list = "waiting-list"
    registration = "registration"


# ------------------------------
# Auth form errors
# ------------------------------
class ErrorKind(str, Enum):
    """Kinds of authentication failure surfaced on the login/register forms."""

    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    ACCOUNT_EXISTS = "ACCOUNT_EXISTS"
    GENERIC = "GENERIC"

    @classmethod
    def from_code(cls, code) -> "ErrorKind":
        """Map a server error code to a kind; unknown or missing codes are GENERIC."""
        if not code:
            return cls.GENERIC
        try:
            return cls(str(code).upper())
        except ValueError:
            return cls.GENERIC


class ErrorDisplay(NamedTuple):
    color: str
    guidance: str


ERROR_KIND_DISPLAY: Dict[ErrorKind, ErrorDisplay] = {
    ErrorKind.ACCOUNT_NOT_FOUND: ErrorDisplay(
        color="blue",
        guidance="Don't have an account? Create one to get started!",
    ),
    ErrorKind.INVALID_PASSWORD: ErrorDisplay(
        color="red",
        guidance="The password you entered is incorrect. Please try again.",
    ),
    ErrorKind.ACCOUNT_EXISTS: ErrorDisplay(
        color="green",
        guidance="You already have an account! Please sign in instead.",
    ),
    ErrorKind.GENERIC: ErrorDisplay(
        color="red",
        guidance="",
    ),
}

# Seconds
ERROR_AUTO_CLEAR_DELAY = 8.0
EMAIL_DEBOUNCE_DELAY = 1.0
FIELD_DEBOUNCE_DELAY = 0.8
EMAIL_MIN_EDIT_DISTANCE = 5


# ------------------------------
# Uploads
# ------------------------------
ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
MAX_UPLOAD_SIZE = 5 * 1024 * 1024  # 5MB
PAYMENT_PROOF_FOLDER = "eventpulse/payment-proofs"
QR_CODE_FOLDER = "eventpulse/qr-codes"
TEMPORARY_EVENT_PREFIX = "temp_"


# ------------------------------
# Analytics
# ------------------------------
FUNNEL_STAGES: List[tuple] = [
    # (summary field, label, color)
    ("invited", "Invitations Sent", "blue"),
    ("registered", "Registered", "green"),
    ("checked_in", "Checked In", "yellow"),
    ("completed", "Completed Event", "purple"),
]

FEEDBACK_STOP_WORDS = {
    "the", "and", "to", "of", "a", "in", "is", "it", "that", "this",
    "was", "i", "for", "on", "with", "as", "at", "be", "by",
}

POSITIVE_FEEDBACK_TERMS = [
    "good", "great", "excellent", "awesome", "love", "like", "fun", "happy", "amazing", "best",
    "😀", "😍", "👍", "❤️", "🔥", "👏", "🎉", "🤣",
]

NEGATIVE_FEEDBACK_TERMS = [
    "bad", "terrible", "awful", "hate", "dislike", "boring", "sad", "worst", "poor", "angry", "frustrated",
    "😡", "😞", "👎", "💔", "😢", "😭", "😠", "😤", "💩",
]


# ------------------------------
# Data maintenance
# ------------------------------
DELETE_CONFIRMATION_PHRASES = ("DELETE ALL DATA", "YES", "PROCEED")

COLLEGE_CSV_ALIASES: Dict[str, List[str]] = {
    "name": ["College Name", "Name", "college_name"],
    "address": ["Address", "address"],
    "city": ["City", "city"],
    "district": ["District", "district"],
    "state": ["State", "state"],
}
COLLEGE_REQUIRED_FIELDS = ("name", "district", "state")
COLLEGE_IMPORT_BATCH_SIZE = 100
