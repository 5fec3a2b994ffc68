"""Event registrations, their participants, and the waiting list."""

from sqlalchemy import Column, Integer, String, ForeignKey, Enum, JSON
from sqlalchemy.orm import relationship

from app.constants.constants import RegistrationStatus, WaitingListStatus
from app.models.base import Base, TimestampMixin


class Registration(Base, TimestampMixin):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    team_name = Column(String(255), nullable=True)
    status = Column(Enum(RegistrationStatus), default=RegistrationStatus.pending, nullable=False)
    payment_proof = Column(String(1000), nullable=True)

    participants = relationship("Participant", back_populates="registration")


class Participant(Base):
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True)
    registration_id = Column(Integer, ForeignKey("registrations.id"), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)

    registration = relationship("Registration", back_populates="participants")


class WaitingList(Base, TimestampMixin):
    __tablename__ = "waiting_list"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    team_name = Column(String(255), nullable=True)
    # Team members are only materialised as Participant rows once approved
    participants = Column(JSON, nullable=True)
    status = Column(Enum(WaitingListStatus), default=WaitingListStatus.waiting, nullable=False)
    payment_proof = Column(String(1000), nullable=True)
