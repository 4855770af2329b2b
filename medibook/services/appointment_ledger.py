from dataclasses import dataclass
from datetime import date
from typing import List, Optional
import logging
import math

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..models.appointment import Appointment, AppointmentStatus, ACTIVE_SLOT_INDEX, ACTIVE_STATUSES
from ..models.doctor import Doctor

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({
    "status",
    "notes",
    "prescription",
    "payment_status",
    "payment_method",
    "cancelled_by",
    "cancellation_reason",
})

# SQLite names the columns of a violated unique index rather than the index itself
_SQLITE_SLOT_COLUMNS = "appointments.doctor_id, appointments.appointment_date, appointments.appointment_time"


def is_slot_conflict(exc: IntegrityError) -> bool:
    """True when `exc` comes from the active-slot unique index."""
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint == ACTIVE_SLOT_INDEX
    message = str(exc.orig)
    return ACTIVE_SLOT_INDEX in message or _SQLITE_SLOT_COLUMNS in message


@dataclass
class Page:
    items: List[Appointment]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "pages": self.pages,
        }


class AppointmentLedger:
    """Durable store of appointments.

    Slot exclusivity is guaranteed by the `uq_appointments_active_slot`
    partial unique index; `insert` turns a violation into ConflictError.
    """

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Appointment).options(
            joinedload(Appointment.patient),
            joinedload(Appointment.doctor).joinedload(Doctor.user),
        )

    def insert(self, appointment: Appointment) -> Appointment:
        self.db.add(appointment)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if not is_slot_conflict(exc):
                raise
            logger.warning(
                f"Slot conflict for doctor {appointment.doctor_id} at "
                f"{appointment.appointment_date} {appointment.appointment_time}"
            )
            raise ConflictError("This time slot is already booked")
        self.db.refresh(appointment)
        return appointment

    def slot_taken(self, doctor_id: int, appointment_date: date, appointment_time: str) -> bool:
        existing = self.db.query(Appointment.id).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == appointment_date,
            Appointment.appointment_time == appointment_time,
            Appointment.status.in_(ACTIVE_STATUSES)
        ).first()
        return existing is not None

    def booked_times(self, doctor_id: int, appointment_date: date) -> List[str]:
        rows = self.db.query(Appointment.appointment_time).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == appointment_date,
            Appointment.status.in_(ACTIVE_STATUSES)
        ).all()
        return [row[0] for row in rows]

    def find_by_id(self, appointment_id: int) -> Appointment:
        appointment = self._query().filter(Appointment.id == appointment_id).first()
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def query_by_patient(
        self,
        patient_id: int,
        status: Optional[AppointmentStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page:
        query = self._query().filter(Appointment.patient_id == patient_id)
        if status:
            query = query.filter(Appointment.status == status)
        # most recent first
        query = query.order_by(
            Appointment.appointment_date.desc(),
            Appointment.appointment_time.desc(),
            Appointment.id.desc(),
        )
        return self._paginate(query, page, limit)

    def query_by_doctor(
        self,
        doctor_id: int,
        status: Optional[AppointmentStatus] = None,
        appointment_date: Optional[date] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page:
        query = self._query().filter(Appointment.doctor_id == doctor_id)
        if status:
            query = query.filter(Appointment.status == status)
        if appointment_date:
            query = query.filter(Appointment.appointment_date == appointment_date)
        # soonest first
        query = query.order_by(
            Appointment.appointment_date.asc(),
            Appointment.appointment_time.asc(),
            Appointment.id.asc(),
        )
        return self._paginate(query, page, limit)

    def update(self, appointment_id: int, fields: dict) -> Appointment:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        appointment = self.find_by_id(appointment_id)
        for name, value in fields.items():
            setattr(appointment, name, value)

        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    def _paginate(self, query, page: int, limit: int) -> Page:
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive integers")
        total = query.order_by(None).count()
        items = query.offset((page - 1) * limit).limit(limit).all()
        return Page(items=items, total=total, page=page, limit=limit)
