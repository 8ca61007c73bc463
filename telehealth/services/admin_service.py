from sqlalchemy.orm import Session
from sqlalchemy import func, or_
from datetime import date
from decimal import Decimal
from typing import List, Optional
import logging

from ..core.exceptions import ValidationFailed
from ..core.security import UserRole
from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..models.user import User
from ..schemas.admin import AdminDashboard, AdminUserItem, DashboardStats
from .appointment_service import PENDING_STATUSES, appointment_response
from .auth_service import AuthService

logger = logging.getLogger(__name__)

RECENT_APPOINTMENTS = 10

class AdminService:
    def __init__(self, db: Session):
        self.db = db

    def stats(self, today: Optional[date] = None) -> DashboardStats:
        today = today or date.today()

        revenue = self.db.query(func.sum(Doctor.consultation_fee)).select_from(Appointment).join(
            Doctor, Appointment.doctor_id == Doctor.id
        ).filter(
            Appointment.status == AppointmentStatus.COMPLETED
        ).scalar()

        return DashboardStats(
            total_patients=self.db.query(Patient).count(),
            total_doctors=self.db.query(Doctor).count(),
            total_appointments=self.db.query(Appointment).count(),
            pending_appointments=self.db.query(Appointment).filter(
                Appointment.status.in_(PENDING_STATUSES)
            ).count(),
            completed_today=self.db.query(Appointment).filter(
                Appointment.status == AppointmentStatus.COMPLETED,
                Appointment.scheduled_date == today
            ).count(),
            revenue=Decimal(str(revenue or 0)).quantize(Decimal("0.01")),
        )

    def dashboard(self, today: Optional[date] = None) -> AdminDashboard:
        recent = self.db.query(Appointment).order_by(
            Appointment.scheduled_date.desc(), Appointment.id.desc()
        ).limit(RECENT_APPOINTMENTS).all()

        return AdminDashboard(
            stats=self.stats(today),
            recent_appointments=[appointment_response(a) for a in recent],
        )

    def list_users(
        self,
        role: Optional[UserRole] = None,
        search: Optional[str] = None
    ) -> List[AdminUserItem]:
        query = self.db.query(User)
        if role is not None:
            query = query.filter(User.role == role)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(User.full_name.ilike(pattern), User.email.ilike(pattern)))

        users = []
        for user in query.order_by(User.created_at.desc(), User.id.desc()).all():
            item = AdminUserItem(
                **{field: getattr(user, field) for field in AdminUserItem.model_fields
                   if field not in ("is_doctor", "is_patient")},
                is_doctor=user.doctor is not None,
                is_patient=user.patient is not None,
            )
            users.append(item)
        return users

    def set_active(self, admin: User, user_id: int, is_active: bool) -> User:
        if user_id == admin.id and not is_active:
            raise ValidationFailed("You cannot deactivate your own account")

        user = AuthService(self.db).set_active(user_id, is_active)
        logger.info(f"Admin {admin.id} changed activation of user {user.id}")
        return user
