from datetime import date, datetime, timedelta
from typing import List, Optional
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ..core.config import settings
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..models.doctor import Doctor, WEEKDAYS
from ..models.user import User
from ..schemas.doctor import DoctorProfileCreate, DoctorProfileUpdate, Hospital
from .appointment_ledger import AppointmentLedger, Page

logger = logging.getLogger(__name__)

_HOSPITAL_COLUMNS = {
    "name": "hospital_name",
    "address": "hospital_address",
    "city": "hospital_city",
    "state": "hospital_state",
}


def slot_times(start: str, end: str, step_minutes: int) -> List[str]:
    """Slot start times in [start, end), e.g. 09:00, 09:30, ... for a 30 minute step."""
    current = datetime.strptime(start, "%H:%M")
    stop = datetime.strptime(end, "%H:%M")
    times = []
    while current + timedelta(minutes=step_minutes) <= stop:
        times.append(current.strftime("%H:%M"))
        current += timedelta(minutes=step_minutes)
    return times


class DoctorDirectory:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Doctor).options(joinedload(Doctor.user))

    def get_by_id(self, doctor_id: int) -> Doctor:
        doctor = self._query().filter(Doctor.id == doctor_id).first()
        if not doctor:
            raise NotFoundError("Doctor not found")
        return doctor

    def get_by_user_id(self, user_id: int) -> Doctor:
        doctor = self._query().filter(Doctor.user_id == user_id).first()
        if not doctor:
            raise NotFoundError("Doctor profile not found")
        return doctor

    def find_by_user_id(self, user_id: int) -> Optional[Doctor]:
        return self.db.query(Doctor).filter(Doctor.user_id == user_id).first()

    def create_profile(self, user_id: int, data: DoctorProfileCreate) -> Doctor:
        if self.find_by_user_id(user_id):
            raise ConflictError("Doctor profile already exists")

        doctor = Doctor(
            user_id=user_id,
            specialization=data.specialization,
            qualifications=[q.model_dump() for q in data.qualifications],
            experience=data.experience,
            consultation_fee=data.consultation_fee,
            availability=[a.model_dump() for a in data.availability],
            about=data.about,
        )
        self._apply_hospital(doctor, data.hospital)

        self.db.add(doctor)
        self.db.commit()
        logger.info(f"Created doctor profile {doctor.id} for user {user_id}")
        return self.get_by_id(doctor.id)

    def update_profile(self, user_id: int, data: DoctorProfileUpdate) -> Doctor:
        """Partial update of the caller's own profile.

        Fee changes only affect future bookings: appointments keep the fee
        they were booked with.
        """
        doctor = self.get_by_user_id(user_id)
        changes = data.model_dump(exclude_unset=True, exclude={"hospital"})

        if "hospital" in data.model_fields_set:
            self._apply_hospital(doctor, data.hospital)

        for name, value in changes.items():
            if value is None:
                continue
            setattr(doctor, name, value)

        self.db.commit()
        logger.info(f"Updated doctor profile {doctor.id}")
        return self.get_by_id(doctor.id)

    def set_verified(self, doctor_id: int, verified: bool = True) -> Doctor:
        doctor = self.get_by_id(doctor_id)
        doctor.is_verified = verified
        self.db.commit()
        return self.get_by_id(doctor_id)

    def search(
        self,
        specialization: Optional[str] = None,
        city: Optional[str] = None,
        min_fee: Optional[float] = None,
        max_fee: Optional[float] = None,
        rating: Optional[float] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page:
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive integers")

        query = self._query()
        if specialization:
            query = query.filter(Doctor.specialization.ilike(f"%{specialization}%"))
        if city:
            query = query.filter(Doctor.hospital_city.ilike(f"%{city}%"))
        if min_fee is not None:
            query = query.filter(Doctor.consultation_fee >= min_fee)
        if max_fee is not None:
            query = query.filter(Doctor.consultation_fee <= max_fee)
        if rating is not None:
            query = query.filter(Doctor.rating >= rating)
        if search:
            query = query.join(User, Doctor.user_id == User.id).filter(
                or_(User.name.ilike(f"%{search}%"), User.email.ilike(f"%{search}%"))
            )

        total = query.order_by(None).count()
        items = (
            query.order_by(Doctor.created_at.desc(), Doctor.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return Page(items=items, total=total, page=page, limit=limit)

    def available_slots(self, doctor_id: int, appointment_date: date) -> List[str]:
        """Free slots for a doctor on a date, from the weekly availability template."""
        doctor = self.get_by_id(doctor_id)
        weekday = WEEKDAYS[appointment_date.weekday()]

        if doctor.availability:
            entries = [entry for entry in doctor.availability if entry.get("day") == weekday]
            times = []
            for entry in entries:
                if not entry.get("is_available", True):
                    continue
                times.extend(slot_times(entry["start_time"], entry["end_time"], settings.SLOT_MINUTES))
        else:
            times = slot_times(settings.DEFAULT_DAY_START, settings.DEFAULT_DAY_END, settings.SLOT_MINUTES)

        booked = set(AppointmentLedger(self.db).booked_times(doctor_id, appointment_date))
        return sorted(t for t in set(times) if t not in booked)

    def _apply_hospital(self, doctor: Doctor, hospital: Optional[Hospital]) -> None:
        values = hospital.model_dump() if hospital else {}
        for key, column in _HOSPITAL_COLUMNS.items():
            setattr(doctor, column, values.get(key))
