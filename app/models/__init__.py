# SQLAlchemy models for dental-directory
#
# - Profile: identity -> role
# - ProfessionalRecord: dentist data, with approval/block projections
# - ApprovalDecision: approval ledger (latest row is authoritative)
# - FieldConfig: registration form configuration
# - Specialty: specialty catalog

from .approval import ApprovalDecision, ApprovalStatus
from .field_config import FieldCategory, FieldConfig
from .professional import ProfessionalRecord
from .profile import Profile, UserRole
from .specialty import Specialty

__all__ = [
    "ApprovalDecision",
    "ApprovalStatus",
    "FieldCategory",
    "FieldConfig",
    "ProfessionalRecord",
    "Profile",
    "Specialty",
    "UserRole",
]
