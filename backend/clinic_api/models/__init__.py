from clinic_api.models.base import Base
from clinic_api.models.user import Role, User
from clinic_api.models.audit_log import AuditAction, AuditEvent
from clinic_api.models.patient import Patient
from clinic_api.models.medical_history import MedicalHistory
from clinic_api.models.visit import Visit
from clinic_api.models.appointment import Appointment, AppointmentStatus
from clinic_api.models.camp_submission import CampSubmission

__all__ = [
    "Base",
    "Role",
    "User",
    "AuditAction",
    "AuditEvent",
    "Patient",
    "MedicalHistory",
    "Visit",
    "Appointment",
    "AppointmentStatus",
    "CampSubmission",
]
