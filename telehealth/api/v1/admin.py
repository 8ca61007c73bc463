from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import get_admin_user
from ...services.admin_service import AdminService
from ...services.appointment_service import AppointmentService, appointment_response
from ...schemas.admin import AdminDashboard, AdminUserItem, UserActivation
from ...schemas.appointment import AppointmentResponse
from ...schemas.auth import UserResponse
from ...models.appointment import AppointmentStatus
from ...models.user import User

router = APIRouter(prefix="/admin", tags=["Administration"])

@router.get("/dashboard", response_model=AdminDashboard)
async def get_dashboard(
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """Platform totals and the latest bookings."""
    return AdminService(db).dashboard()

@router.get("/users", response_model=List[AdminUserItem])
async def list_users(
    role: Optional[UserRole] = None,
    search: Optional[str] = Query(None, max_length=100),
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    """Users, optionally narrowed by role and by a name or email fragment."""
    return AdminService(db).list_users(role, search)

@router.patch("/users/{user_id}/activation", response_model=UserResponse)
async def set_user_activation(
    user_id: int,
    data: UserActivation,
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    user = AdminService(db).set_active(admin, user_id, data.is_active)
    return UserResponse.model_validate(user)

@router.get("/appointments", response_model=List[AppointmentResponse])
async def list_all_appointments(
    status: Optional[AppointmentStatus] = None,
    admin: User = Depends(get_admin_user),
    db: Session = Depends(get_db)
):
    appointments = AppointmentService(db).list_all(status)
    return [appointment_response(a) for a in appointments]
