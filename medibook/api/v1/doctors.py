from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...core.config import settings
from ...core.database import get_db
from ...api.deps import get_doctor_user
from ...models.doctor import Doctor
from ...models.user import User
from ...schemas.common import success_response
from ...schemas.doctor import DoctorProfileCreate, DoctorProfileUpdate, DoctorResponse
from ...services.doctor_directory import DoctorDirectory

router = APIRouter(prefix="/doctors", tags=["Doctors"])


def _serialize(doctor: Doctor) -> dict:
    return DoctorResponse.model_validate(doctor).model_dump(by_alias=True, mode="json")


@router.get("")
def list_doctors(
    specialization: Optional[str] = None,
    city: Optional[str] = None,
    min_fee: Optional[float] = Query(None, alias="minFee", ge=0),
    max_fee: Optional[float] = Query(None, alias="maxFee", ge=0),
    rating: Optional[float] = Query(None, ge=0, le=5),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db)
):
    """Search doctors by simple filter predicates."""
    result = DoctorDirectory(db).search(
        specialization=specialization,
        city=city,
        min_fee=min_fee,
        max_fee=max_fee,
        rating=rating,
        search=search,
        page=page,
        limit=limit,
    )
    return success_response(data={
        "doctors": [_serialize(d) for d in result.items],
        "pagination": result.pagination(),
    })


# /profile routes are declared before /{doctor_id} so they are matched first
@router.get("/profile")
def get_doctor_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_doctor_user)
):
    """The calling doctor's own profile."""
    doctor = DoctorDirectory(db).get_by_user_id(current_user.id)
    return success_response(data={"doctor": _serialize(doctor)})


@router.post("/profile", status_code=201)
def create_doctor_profile(
    payload: DoctorProfileCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_doctor_user)
):
    doctor = DoctorDirectory(db).create_profile(current_user.id, payload)
    return success_response(
        data={"doctor": _serialize(doctor)},
        message="Doctor profile created successfully",
    )


@router.put("/profile")
def update_doctor_profile(
    payload: DoctorProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_doctor_user)
):
    doctor = DoctorDirectory(db).update_profile(current_user.id, payload)
    return success_response(
        data={"doctor": _serialize(doctor)},
        message="Doctor profile updated successfully",
    )


@router.get("/{doctor_id}")
def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    doctor = DoctorDirectory(db).get_by_id(doctor_id)
    return success_response(data={"doctor": _serialize(doctor)})


@router.get("/{doctor_id}/available-slots")
def get_available_slots(
    doctor_id: int,
    appointment_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db)
):
    """Free booking slots for a doctor on the given date."""
    slots = DoctorDirectory(db).available_slots(doctor_id, appointment_date)
    return success_response(data={
        "doctorId": doctor_id,
        "date": appointment_date.isoformat(),
        "slots": slots,
    })
