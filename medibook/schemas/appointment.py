from datetime import date, datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from ..models.appointment import AppointmentStatus, PaymentMethod, PaymentStatus
from .common import CamelModel
from .doctor import TIME_PATTERN


class AppointmentCreate(CamelModel):
    doctor_id: int
    appointment_date: date
    appointment_time: str = Field(pattern=TIME_PATTERN)
    reason: str = Field(min_length=1, max_length=200)
    symptoms: Optional[str] = Field(None, max_length=500)

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please provide reason for appointment")
        return value


class StatusUpdate(CamelModel):
    status: AppointmentStatus
    notes: Optional[str] = Field(None, max_length=1000)
    prescription: Optional[str] = Field(None, max_length=1000)


class CancelRequest(CamelModel):
    cancellation_reason: str = Field(min_length=1, max_length=255)


class PatientSummary(CamelModel):
    id: int
    name: str
    email: EmailStr
    phone: Optional[str] = None


class DoctorSummary(CamelModel):
    id: int
    user_id: int
    name: Optional[str] = None
    specialization: str


class AppointmentResponse(CamelModel):
    id: int
    patient_id: int
    doctor_id: int
    patient: Optional[PatientSummary] = None
    doctor: Optional[DoctorSummary] = None
    appointment_date: date
    appointment_time: str
    status: AppointmentStatus
    reason: str
    symptoms: Optional[str] = None
    notes: Optional[str] = None
    prescription: Optional[str] = None
    consultation_fee: float
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    cancelled_by: Optional[int] = None
    cancellation_reason: Optional[str] = None
    reminder_sent: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
