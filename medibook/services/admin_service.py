from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..core.security import UserRole
from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..models.user import User


class AdminService:
    def __init__(self, db: Session):
        self.db = db

    def get_stats(self, today: Optional[date] = None) -> dict:
        """Aggregate platform statistics for the admin dashboard."""
        today = today or date.today()

        users_by_role = dict(
            self.db.query(User.role, func.count(User.id)).group_by(User.role).all()
        )

        by_status = {s.value: 0 for s in AppointmentStatus}
        for status, count in self.db.query(
            Appointment.status, func.count(Appointment.id)
        ).group_by(Appointment.status).all():
            by_status[AppointmentStatus(status).value] = count

        month_start = today.replace(day=1)
        if month_start.month == 12:
            next_month = month_start.replace(year=month_start.year + 1, month=1)
        else:
            next_month = month_start.replace(month=month_start.month + 1)

        monthly_revenue = self.db.query(
            func.coalesce(func.sum(Appointment.consultation_fee), 0)
        ).filter(
            Appointment.status == AppointmentStatus.COMPLETED,
            Appointment.appointment_date >= month_start,
            Appointment.appointment_date < next_month
        ).scalar()

        pending_approvals = self.db.query(func.count(Doctor.id)).filter(
            Doctor.is_verified.is_(False)
        ).scalar()

        return {
            "totalUsers": sum(users_by_role.values()),
            "totalDoctors": users_by_role.get(UserRole.DOCTOR, 0),
            "totalPatients": users_by_role.get(UserRole.PATIENT, 0),
            "totalAppointments": sum(by_status.values()),
            "appointmentsByStatus": by_status,
            "pendingApprovals": pending_approvals or 0,
            "monthlyRevenue": float(monthly_revenue or 0),
        }
