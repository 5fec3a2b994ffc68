"""Events hosted on the platform, with RSVPs and live feedback."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    """Model representing an event organized by a host."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(500), nullable=True)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    capacity = Column(Integer, nullable=True)
    is_paid = Column(Boolean, default=False)
    qr_code = Column(String(1000), nullable=True)  # payment QR image URL
    host_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    host = relationship("User", back_populates="hosted_events")

    def __repr__(self):
        return f"<Event {self.title}>"


class Rsvp(Base):
    __tablename__ = "rsvps"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    checked_in = Column(Boolean, default=False, nullable=False)
    checked_in_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_rsvp_user_event"),
    )


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    content = Column(Text, nullable=True)
    emoji = Column(String(32), nullable=True)
    is_pinned = Column(Boolean, default=False, nullable=False)
    is_flagged = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
