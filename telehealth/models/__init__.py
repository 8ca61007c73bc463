from .user import User, RefreshToken
from .patient import Patient
from .doctor import Doctor, DoctorSchedule
from .appointment import Appointment, AppointmentStatus, AppointmentType
from .pre_consultation import PreConsultationForm, SymptomSeverity
from .referral import Referral, ReferralStatus, ReferralUrgency
from .prescription import Prescription, PrescriptionStatus
from .consultation_summary import ConsultationSummary
from .follow_up import FollowUp, FollowUpStatus, FollowUpPriority
from .conversation import Conversation, Message
from .document import Document

__all__ = [
    "User", "RefreshToken", "Patient", "Doctor", "DoctorSchedule",
    "Appointment", "AppointmentStatus", "AppointmentType",
    "PreConsultationForm", "SymptomSeverity",
    "Referral", "ReferralStatus", "ReferralUrgency",
    "Prescription", "PrescriptionStatus", "ConsultationSummary",
    "FollowUp", "FollowUpStatus", "FollowUpPriority",
    "Conversation", "Message", "Document",
]
