"""Appointment status state machine and the commands that drive it.

Every status change is expressed as one of the command classes below. A
command knows the status it moves the appointment to and the only fields it is
allowed to write, so a cancellation can never carry a prescription and a
confirmation can never set ``cancelled_by``.
"""
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple, Union

from ..core.exceptions import InvalidTransitionError
from ..models.appointment import AppointmentStatus
from .authorization import Access


S = AppointmentStatus

TRANSITIONS: Dict[Tuple[AppointmentStatus, AppointmentStatus], FrozenSet[Access]] = {
    (S.SCHEDULED, S.CONFIRMED): frozenset({Access.DOCTOR}),
    (S.SCHEDULED, S.CANCELLED): frozenset({Access.PATIENT, Access.DOCTOR}),
    (S.CONFIRMED, S.COMPLETED): frozenset({Access.DOCTOR}),
    (S.CONFIRMED, S.CANCELLED): frozenset({Access.PATIENT, Access.DOCTOR}),
    (S.SCHEDULED, S.NO_SHOW): frozenset({Access.DOCTOR, Access.ADMIN}),
    (S.CONFIRMED, S.NO_SHOW): frozenset({Access.DOCTOR, Access.ADMIN}),
}


def allowed_actors(current: AppointmentStatus, target: AppointmentStatus) -> FrozenSet[Access]:
    return TRANSITIONS.get((AppointmentStatus(current), AppointmentStatus(target)), frozenset())


def check_transition(current: AppointmentStatus, target: AppointmentStatus, actor: Access) -> None:
    """Raise InvalidTransitionError unless `actor` may move `current` to `target`."""
    current = AppointmentStatus(current)
    target = AppointmentStatus(target)
    actors = allowed_actors(current, target)
    if not actors:
        raise InvalidTransitionError(
            f"Cannot change appointment status from '{current.value}' to '{target.value}'"
        )
    if actor not in actors:
        raise InvalidTransitionError(
            f"The {actor.value} cannot change appointment status from "
            f"'{current.value}' to '{target.value}'"
        )


@dataclass(frozen=True)
class ConfirmCommand:
    notes: Optional[str] = None
    prescription: Optional[str] = None

    target = AppointmentStatus.CONFIRMED

    def changes(self) -> dict:
        return _with_clinical_fields({"status": self.target}, self.notes, self.prescription)


@dataclass(frozen=True)
class CompleteCommand:
    notes: Optional[str] = None
    prescription: Optional[str] = None

    target = AppointmentStatus.COMPLETED

    def changes(self) -> dict:
        return _with_clinical_fields({"status": self.target}, self.notes, self.prescription)


@dataclass(frozen=True)
class CancelCommand:
    cancelled_by: int
    reason: str

    target = AppointmentStatus.CANCELLED

    def changes(self) -> dict:
        return {
            "status": self.target,
            "cancelled_by": self.cancelled_by,
            "cancellation_reason": self.reason,
        }


@dataclass(frozen=True)
class NoShowCommand:
    notes: Optional[str] = None

    target = AppointmentStatus.NO_SHOW

    def changes(self) -> dict:
        return _with_clinical_fields({"status": self.target}, self.notes, None)


UpdateCommand = Union[ConfirmCommand, CompleteCommand, CancelCommand, NoShowCommand]


def _with_clinical_fields(changes: dict, notes: Optional[str], prescription: Optional[str]) -> dict:
    if notes is not None:
        changes["notes"] = notes
    if prescription is not None:
        changes["prescription"] = prescription
    return changes


def command_for_status(
    status: AppointmentStatus,
    notes: Optional[str] = None,
    prescription: Optional[str] = None,
) -> UpdateCommand:
    """Build the command behind the doctor status endpoint.

    Cancellation has its own operation because it records who cancelled and why.
    """
    status = AppointmentStatus(status)
    if status == AppointmentStatus.CONFIRMED:
        return ConfirmCommand(notes=notes, prescription=prescription)
    if status == AppointmentStatus.COMPLETED:
        return CompleteCommand(notes=notes, prescription=prescription)
    if status == AppointmentStatus.NO_SHOW:
        if prescription is not None:
            raise InvalidTransitionError("A prescription cannot be attached to a no-show")
        return NoShowCommand(notes=notes)
    if status == AppointmentStatus.CANCELLED:
        raise InvalidTransitionError("Use the cancel endpoint to cancel an appointment")
    raise InvalidTransitionError(f"Cannot change appointment status to '{status.value}'")
