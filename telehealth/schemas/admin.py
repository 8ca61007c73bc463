from pydantic import BaseModel
from typing import List
from decimal import Decimal

from .auth import UserResponse
from .appointment import AppointmentResponse

class DashboardStats(BaseModel):
    total_patients: int
    total_doctors: int
    total_appointments: int
    pending_appointments: int
    completed_today: int
    revenue: Decimal

class AdminUserItem(UserResponse):
    is_doctor: bool
    is_patient: bool

class AdminDashboard(BaseModel):
    stats: DashboardStats
    recent_appointments: List[AppointmentResponse]

class UserActivation(BaseModel):
    is_active: bool
