from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Text, Float, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Professional information
    specialization = Column(String(100), nullable=False, index=True)
    qualifications = Column(JSON, nullable=False, default=list)  # [{degree, institution, year}]
    experience = Column(Integer, nullable=False, default=0)
    consultation_fee = Column(Float, nullable=False)
    about = Column(Text, nullable=True)

    # Weekly template: [{day, start_time, end_time, is_available}]
    availability = Column(JSON, nullable=False, default=list)

    # Hospital
    hospital_name = Column(String(255), nullable=True)
    hospital_address = Column(String(255), nullable=True)
    hospital_city = Column(String(100), nullable=True, index=True)
    hospital_state = Column(String(100), nullable=True)

    # Reputation
    rating = Column(Float, default=0)
    total_reviews = Column(Integer, default=0)
    is_verified = Column(Boolean, default=False)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="doctor")
    appointments = relationship("Appointment", back_populates="doctor")

    @property
    def hospital(self):
        if not any((self.hospital_name, self.hospital_address, self.hospital_city, self.hospital_state)):
            return None
        return {
            "name": self.hospital_name,
            "address": self.hospital_address,
            "city": self.hospital_city,
            "state": self.hospital_state,
        }

    @property
    def name(self):
        return self.user.name if self.user else None

    def __repr__(self):
        return f"<Doctor(id={self.id}, user_id={self.user_id}, specialization='{self.specialization}')>"
