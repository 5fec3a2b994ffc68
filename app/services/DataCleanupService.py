"""Bulk cleanup of transactional data, keeping colleges, degrees and specializations."""

import logging
from typing import Callable, Dict, List, Sequence, Tuple

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.event import Event, Feedback, Rsvp
from app.models.invitation import Invitation
from app.models.notifications import RejectionNotification, WhatsAppNotification
from app.models.reference import College, Degree, Specialization
from app.models.registration import Participant, Registration, WaitingList
from app.models.user import EmailVerificationToken, PasswordResetToken, User

logger = logging.getLogger(__name__)

# Child tables first so foreign keys are never violated
PURGE_ORDER: List[Tuple[str, str, type]] = [
    ("password reset tokens", "🔑", PasswordResetToken),
    ("email verification tokens", "🔑", EmailVerificationToken),
    ("WhatsApp notifications", "📧", WhatsAppNotification),
    ("rejection notifications", "📧", RejectionNotification),
    ("participants", "👥", Participant),
    ("waiting list entries", "⏳", WaitingList),
    ("registrations", "📝", Registration),
    ("invitations", "📨", Invitation),
    ("feedback", "💬", Feedback),
    ("RSVPs", "✅", Rsvp),
    ("events", "🎉", Event),
    ("users", "👤", User),
]

REFERENCE_MODELS: List[Tuple[str, type]] = [
    ("colleges", College),
    ("degrees", Degree),
    ("specializations", Specialization),
]


async def count_rows(db: AsyncSession, models: Sequence[Tuple]) -> Dict[str, int]:
    """Row counts keyed by label; ``models`` items are (label, ..., Model)."""
    counts = {}
    for entry in models:
        label, model = entry[0], entry[-1]
        result = await db.execute(select(func.count()).select_from(model))
        counts[label] = result.scalar_one()
    return counts


async def reference_counts(db: AsyncSession) -> Dict[str, int]:
    return await count_rows(db, REFERENCE_MODELS)


async def purge_all_data(db: AsyncSession, report: Callable[[str], None] = print) -> Dict[str, int]:
    """
    Delete every non-reference row, in dependency order.

    Runs on the caller's session; the caller commits (or rolls back on error).
    Returns deleted row counts keyed by table label.
    """
    deleted = {}
    for label, emoji, model in PURGE_ORDER:
        report(f"{emoji} Deleting {label}...")
        result = await db.execute(delete(model).execution_options(synchronize_session=False))
        deleted[label] = result.rowcount or 0
    logger.info(f"Purged transactional data: {deleted}")
    return deleted


class NonHostPurgePlan:
    """Who and what a non-host purge will remove."""

    def __init__(self, hosts: List[User], non_hosts: List[User], dependent_counts: Dict[str, int]):
        self.hosts = hosts
        self.non_hosts = non_hosts
        self.dependent_counts = dependent_counts

    @property
    def user_ids(self) -> List[int]:
        return [user.id for user in self.non_hosts]


def _non_host_filters(user_ids: List[int]):
    registration_ids = select(Registration.id).where(Registration.user_id.in_(user_ids))
    return [
        ("WhatsApp notifications", WhatsAppNotification, WhatsAppNotification.user_id.in_(user_ids)),
        ("rejection notifications", RejectionNotification, RejectionNotification.user_id.in_(user_ids)),
        ("waiting list entries", WaitingList, WaitingList.user_id.in_(user_ids)),
        ("participants", Participant, Participant.registration_id.in_(registration_ids)),
        ("registrations", Registration, Registration.user_id.in_(user_ids)),
        ("feedback", Feedback, Feedback.user_id.in_(user_ids)),
        ("RSVPs", Rsvp, Rsvp.user_id.in_(user_ids)),
        ("invitations", Invitation, or_(
            Invitation.invited_by_id.in_(user_ids),
            Invitation.invited_user_id.in_(user_ids),
        )),
        ("email verification tokens", EmailVerificationToken, EmailVerificationToken.user_id.in_(user_ids)),
        ("password reset tokens", PasswordResetToken, PasswordResetToken.user_id.in_(user_ids)),
        ("users", User, User.id.in_(user_ids)),
    ]


async def plan_non_host_purge(db: AsyncSession) -> NonHostPurgePlan:
    host_ids = select(Event.host_id).distinct()
    hosts = (await db.execute(select(User).where(User.id.in_(host_ids)).order_by(User.id))).scalars().all()
    non_hosts = (await db.execute(select(User).where(User.id.not_in(host_ids)).order_by(User.id))).scalars().all()

    dependent_counts = {}
    user_ids = [user.id for user in non_hosts]
    if user_ids:
        for label, model, condition in _non_host_filters(user_ids):
            result = await db.execute(select(func.count()).select_from(model).where(condition))
            dependent_counts[label] = result.scalar_one()
    return NonHostPurgePlan(list(hosts), list(non_hosts), dependent_counts)


async def purge_non_host_users(
    db: AsyncSession,
    plan: NonHostPurgePlan,
    report: Callable[[str], None] = print,
) -> Dict[str, int]:
    """Delete the users in ``plan`` and everything that references them."""
    deleted = {}
    if not plan.user_ids:
        return deleted
    for step, (label, model, condition) in enumerate(_non_host_filters(plan.user_ids), start=1):
        report(f"{step}. Deleting {label}...")
        result = await db.execute(delete(model).where(condition).execution_options(synchronize_session=False))
        deleted[label] = result.rowcount or 0
    logger.info(f"Purged {len(plan.user_ids)} non-host users: {deleted}")
    return deleted
