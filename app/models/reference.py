"""Reference (lookup) data: colleges, degrees and specializations.

These tables are long-lived and are never touched by the bulk cleanup scripts.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.models.base import Base


class College(Base):
    __tablename__ = "colleges"

    id = Column(Integer, primary_key=True)
    name = Column(String(500), nullable=False, index=True)
    address = Column(String(500), nullable=True)
    city = Column(String(255), nullable=True)
    district = Column(String(255), nullable=False, index=True)
    state = Column(String(255), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("name", "district", "state", name="uq_college_name_district_state"),
    )

    def __repr__(self):
        return f"<College {self.name} - {self.district}, {self.state}>"


class Degree(Base):
    __tablename__ = "degrees"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), unique=True, nullable=False)

    specializations = relationship("Specialization", back_populates="degree")


class Specialization(Base):
    __tablename__ = "specializations"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    degree_id = Column(Integer, ForeignKey("degrees.id"), nullable=False)

    degree = relationship("Degree", back_populates="specializations")
