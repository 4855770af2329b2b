from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_admin_user
from ...models.user import User
from ...schemas.common import success_response
from ...schemas.doctor import DoctorResponse
from ...services.admin_service import AdminService
from ...services.doctor_directory import DoctorDirectory

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/stats")
def get_stats(
    db: Session = Depends(get_db),
    _: User = Depends(get_admin_user)
):
    """Aggregate platform statistics."""
    return success_response(data={"stats": AdminService(db).get_stats()})


@router.put("/doctors/{doctor_id}/verify")
def verify_doctor(
    doctor_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(get_admin_user)
):
    doctor = DoctorDirectory(db).set_verified(doctor_id)
    return success_response(
        data={"doctor": DoctorResponse.model_validate(doctor).model_dump(by_alias=True, mode="json")},
        message="Doctor verified successfully",
    )
