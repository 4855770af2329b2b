from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Date, Boolean, Text, Float,
    Index, Enum as SQLEnum, text
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"

ACTIVE_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)
TERMINAL_STATUSES = (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW)

class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"

class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    ONLINE = "online"
    INSURANCE = "insurance"

def _values(enum_cls):
    return [member.value for member in enum_cls]

# Only one active booking per (doctor, date, time); terminal rows are kept for history
ACTIVE_SLOT_INDEX = "uq_appointments_active_slot"
_ACTIVE_SLOT_PREDICATE = text("status IN ('scheduled', 'confirmed')")

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            ACTIVE_SLOT_INDEX,
            "doctor_id", "appointment_date", "appointment_time",
            unique=True,
            postgresql_where=_ACTIVE_SLOT_PREDICATE,
            sqlite_where=_ACTIVE_SLOT_PREDICATE,
        ),
        Index("ix_appointments_patient_date", "patient_id", "appointment_date"),
        Index("ix_appointments_doctor_date", "doctor_id", "appointment_date"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)

    # Slot
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(String(5), nullable=False)  # "HH:MM"

    status = Column(
        SQLEnum(AppointmentStatus, native_enum=False, length=20, values_callable=_values),
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
        index=True,
    )

    # Clinical details
    reason = Column(String(200), nullable=False)
    symptoms = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    prescription = Column(Text, nullable=True)

    # Billing, snapshotted from the doctor at booking time
    consultation_fee = Column(Float, nullable=False)
    payment_status = Column(
        SQLEnum(PaymentStatus, native_enum=False, length=20, values_callable=_values),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    payment_method = Column(
        SQLEnum(PaymentMethod, native_enum=False, length=20, values_callable=_values),
        nullable=True,
    )

    # Cancellation
    cancelled_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(String(255), nullable=True)

    reminder_sent = Column(Boolean, default=False)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("User", foreign_keys=[patient_id])
    doctor = relationship("Doctor", back_populates="appointments")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, "
            f"slot='{self.appointment_date} {self.appointment_time}', status='{self.status}')>"
        )
