import enum
from dataclasses import dataclass
from typing import Optional

from ..core.exceptions import ForbiddenError
from ..core.security import UserRole


class Access(str, enum.Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"
    DENIED = "denied"


@dataclass(frozen=True)
class ResourceOwners:
    """User ids owning an appointment: the patient and the doctor's user account."""

    patient_user_id: int
    doctor_user_id: Optional[int]


def authorize(actor_id: int, actor_role: UserRole, owners: ResourceOwners) -> Access:
    """Decide how (and whether) a caller may act on an appointment.

    Ownership is checked against the caller's role so a doctor who also happens
    to hold the patient id of a booking is still treated by the role they
    authenticated with.
    """
    role = UserRole(actor_role)
    if role == UserRole.ADMIN:
        return Access.ADMIN
    if role == UserRole.PATIENT and actor_id == owners.patient_user_id:
        return Access.PATIENT
    if role == UserRole.DOCTOR and owners.doctor_user_id is not None and actor_id == owners.doctor_user_id:
        return Access.DOCTOR
    return Access.DENIED


def require_access(
    actor_id: int,
    actor_role: UserRole,
    owners: ResourceOwners,
    message: str = "Not authorized to access this appointment",
) -> Access:
    access = authorize(actor_id, actor_role, owners)
    if access == Access.DENIED:
        raise ForbiddenError(message)
    return access
