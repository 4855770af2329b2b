from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...core.config import settings
from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import get_current_user, get_patient_user, get_doctor_user, require_role
from ...models.appointment import Appointment, AppointmentStatus
from ...models.user import User
from ...schemas.appointment import AppointmentCreate, AppointmentResponse, CancelRequest, StatusUpdate
from ...schemas.common import success_response
from ...services.appointment_ledger import Page
from ...services.booking_workflow import BookingWorkflow

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def _serialize(appointment: Appointment) -> dict:
    return AppointmentResponse.model_validate(appointment).model_dump(by_alias=True, mode="json")


def _page_body(page: Page) -> dict:
    return {
        "appointments": [_serialize(a) for a in page.items],
        "pagination": page.pagination(),
    }


@router.post("", status_code=201)
def create_appointment(
    payload: AppointmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_patient_user)
):
    """Book a time slot with a doctor."""
    appointment = BookingWorkflow(db).create_appointment(
        patient_id=current_user.id,
        doctor_id=payload.doctor_id,
        appointment_date=payload.appointment_date,
        appointment_time=payload.appointment_time,
        reason=payload.reason,
        symptoms=payload.symptoms,
    )
    return success_response(
        data={"appointment": _serialize(appointment)},
        message="Appointment booked successfully",
    )


@router.get("/patient/my-appointments")
def get_patient_appointments(
    status: Optional[AppointmentStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_patient_user)
):
    """The caller's appointments, most recent first."""
    result = BookingWorkflow(db).list_for_patient(current_user.id, status=status, page=page, limit=limit)
    return success_response(data=_page_body(result))


@router.get("/doctor/my-appointments")
def get_doctor_appointments(
    status: Optional[AppointmentStatus] = None,
    appointment_date: Optional[date] = Query(None, alias="date"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_doctor_user)
):
    """Appointments booked with the calling doctor, soonest first."""
    result = BookingWorkflow(db).list_for_doctor(
        current_user.id, status=status, appointment_date=appointment_date, page=page, limit=limit
    )
    return success_response(data=_page_body(result))


@router.get("/{appointment_id}")
def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """A single appointment, visible to its patient, its doctor and admins."""
    appointment = BookingWorkflow(db).get_appointment(appointment_id, current_user.id, current_user.role)
    return success_response(data={"appointment": _serialize(appointment)})


@router.put("/{appointment_id}/status")
def update_appointment_status(
    appointment_id: int,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.DOCTOR, UserRole.ADMIN]))
):
    """Move an appointment through its lifecycle and attach notes or a prescription."""
    appointment = BookingWorkflow(db).update_status(
        appointment_id,
        current_user.id,
        current_user.role,
        payload.status,
        notes=payload.notes,
        prescription=payload.prescription,
    )
    return success_response(
        data={"appointment": _serialize(appointment)},
        message="Appointment updated successfully",
    )


@router.put("/{appointment_id}/cancel")
def cancel_appointment(
    appointment_id: int,
    payload: CancelRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Cancel a scheduled or confirmed appointment (patient or doctor)."""
    appointment = BookingWorkflow(db).cancel_appointment(
        appointment_id, current_user.id, current_user.role, payload.cancellation_reason
    )
    return success_response(
        data={"appointment": _serialize(appointment)},
        message="Appointment cancelled successfully",
    )
