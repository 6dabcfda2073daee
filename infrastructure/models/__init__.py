"""Infrastructure models package exports."""
from .base import Base
from .donation import DonationModel
from .admin import AdminUserModel, AdminSessionModel

__all__ = [
    "Base",
    "DonationModel",
    "AdminUserModel",
    "AdminSessionModel",
]
