from sqlalchemy import Column, Integer, String, ForeignKey, Enum

from app.constants.constants import InvitationStatus
from app.models.base import Base, TimestampMixin


class Invitation(Base, TimestampMixin):
    __tablename__ = "invitations"

    id = Column(Integer, primary_key=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    invited_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    invited_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)  # set once the invitee registers
    email = Column(String(255), nullable=False, index=True)
    status = Column(Enum(InvitationStatus), default=InvitationStatus.pending, nullable=False)
