"""Booking workflow: create, read, transition and cancel appointments.

Every operation takes the caller's identity explicitly as ``(actor_id,
actor_role)``; nothing about the current user is kept on the workflow object.
"""
from datetime import date, datetime
from typing import Optional, Union
import logging

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ConflictError, ForbiddenError, InvalidTransitionError, ValidationError
from ..core.security import UserRole
from ..models.appointment import Appointment, AppointmentStatus
from .appointment_ledger import AppointmentLedger, Page
from .authorization import Access, ResourceOwners, require_access
from .doctor_directory import DoctorDirectory
from .lifecycle import CancelCommand, UpdateCommand, check_transition, command_for_status

logger = logging.getLogger(__name__)

REASON_MAX_LENGTH = 200
SYMPTOMS_MAX_LENGTH = 500
NOTES_MAX_LENGTH = 1000


class BookingWorkflow:
    def __init__(self, db: Session):
        self.db = db
        self.ledger = AppointmentLedger(db)
        self.doctors = DoctorDirectory(db)

    def create_appointment(
        self,
        patient_id: int,
        doctor_id: int,
        appointment_date: Union[date, str],
        appointment_time: str,
        reason: str,
        symptoms: Optional[str] = None,
    ) -> Appointment:
        """Book a slot for a patient.

        The pre-check gives the common case a clear error; the active-slot
        unique index still decides when two bookings race for the same slot.
        """
        doctor = self.doctors.get_by_id(doctor_id)

        appointment_date = self._parse_date(appointment_date)
        appointment_time = self._parse_slot_time(appointment_time)
        reason = self._clean_text(reason, "reason", REASON_MAX_LENGTH, required=True)
        symptoms = self._clean_text(symptoms, "symptoms", SYMPTOMS_MAX_LENGTH)

        if self.ledger.slot_taken(doctor.id, appointment_date, appointment_time):
            logger.warning(
                f"Refused double booking of doctor {doctor.id} at {appointment_date} {appointment_time}"
            )
            raise ConflictError("This time slot is already booked")

        appointment = self.ledger.insert(Appointment(
            patient_id=patient_id,
            doctor_id=doctor.id,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            status=AppointmentStatus.SCHEDULED,
            reason=reason,
            symptoms=symptoms,
            consultation_fee=doctor.consultation_fee,
        ))

        logger.info(
            f"Appointment {appointment.id} booked: patient {patient_id}, doctor {doctor.id}, "
            f"{appointment_date} {appointment_time}, fee {appointment.consultation_fee}"
        )
        return self.ledger.find_by_id(appointment.id)

    def get_appointment(self, appointment_id: int, actor_id: int, actor_role: UserRole) -> Appointment:
        appointment = self.ledger.find_by_id(appointment_id)
        require_access(
            actor_id, actor_role, self._owners(appointment),
            "Not authorized to view this appointment",
        )
        return appointment

    def update_status(
        self,
        appointment_id: int,
        actor_id: int,
        actor_role: UserRole,
        new_status: AppointmentStatus,
        notes: Optional[str] = None,
        prescription: Optional[str] = None,
    ) -> Appointment:
        appointment = self.ledger.find_by_id(appointment_id)
        access = require_access(
            actor_id, actor_role, self._owners(appointment),
            "Not authorized to update this appointment",
        )
        if access == Access.PATIENT:
            raise ForbiddenError("Only the doctor can update appointment status")
        if access == Access.ADMIN and AppointmentStatus(new_status) != AppointmentStatus.NO_SHOW:
            raise ForbiddenError("Admins can only mark an appointment as no-show")

        notes = self._clean_text(notes, "notes", NOTES_MAX_LENGTH)
        prescription = self._clean_text(prescription, "prescription", NOTES_MAX_LENGTH)
        command = command_for_status(new_status, notes=notes, prescription=prescription)
        return self._apply(appointment, command, access, actor_id)

    def cancel_appointment(
        self,
        appointment_id: int,
        actor_id: int,
        actor_role: UserRole,
        reason: str,
    ) -> Appointment:
        appointment = self.ledger.find_by_id(appointment_id)
        access = require_access(
            actor_id, actor_role, self._owners(appointment),
            "Not authorized to cancel this appointment",
        )
        if access == Access.ADMIN:
            raise ForbiddenError("Only the patient or doctor of this appointment can cancel it")

        if not appointment.is_active:
            raise InvalidTransitionError(
                f"Cannot cancel an appointment that is already {AppointmentStatus(appointment.status).value}"
            )

        reason = self._clean_text(reason, "cancellation reason", 255, required=True)
        command = CancelCommand(cancelled_by=actor_id, reason=reason)
        return self._apply(appointment, command, access, actor_id)

    def list_for_patient(
        self,
        actor_id: int,
        status: Optional[AppointmentStatus] = None,
        page: int = 1,
        limit: int = settings.DEFAULT_PAGE_SIZE,
    ) -> Page:
        return self.ledger.query_by_patient(actor_id, status=status, page=page, limit=limit)

    def list_for_doctor(
        self,
        actor_id: int,
        status: Optional[AppointmentStatus] = None,
        appointment_date: Optional[date] = None,
        page: int = 1,
        limit: int = settings.DEFAULT_PAGE_SIZE,
    ) -> Page:
        doctor = self.doctors.get_by_user_id(actor_id)
        return self.ledger.query_by_doctor(
            doctor.id, status=status, appointment_date=appointment_date, page=page, limit=limit
        )

    def _apply(self, appointment: Appointment, command: UpdateCommand, access: Access, actor_id: int) -> Appointment:
        previous = AppointmentStatus(appointment.status)
        check_transition(previous, command.target, access)

        updated = self.ledger.update(appointment.id, command.changes())
        logger.info(
            f"Appointment {appointment.id}: {previous.value} -> {command.target.value} "
            f"by {access.value} {actor_id}"
        )
        return updated

    def _owners(self, appointment: Appointment) -> ResourceOwners:
        doctor = appointment.doctor or self.doctors.get_by_id(appointment.doctor_id)
        return ResourceOwners(patient_user_id=appointment.patient_id, doctor_user_id=doctor.user_id)

    @staticmethod
    def _parse_date(value: Union[date, str]) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value))
        except ValueError:
            raise ValidationError("Invalid appointment date format. Use YYYY-MM-DD")

    @staticmethod
    def _parse_slot_time(value: str) -> str:
        try:
            parsed = datetime.strptime(str(value), "%H:%M")
        except ValueError:
            raise ValidationError("Invalid appointment time format. Use HH:MM")
        if parsed.minute % settings.SLOT_MINUTES:
            raise ValidationError(
                f"Appointment time must start on a {settings.SLOT_MINUTES}-minute slot boundary"
            )
        return parsed.strftime("%H:%M")

    @staticmethod
    def _clean_text(value: Optional[str], label: str, max_length: int, required: bool = False) -> Optional[str]:
        value = value.strip() if value else None
        if not value:
            if required:
                raise ValidationError(f"Please provide {label}")
            return None
        if len(value) > max_length:
            raise ValidationError(f"{label.capitalize()} cannot exceed {max_length} characters")
        return value
