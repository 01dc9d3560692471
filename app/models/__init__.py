"""SQLAlchemy models for the MVC architecture."""

from .base import Base
from .upload import UploadRecord, UploadStatus  # noqa: F401
from .user import User, UserRole  # noqa: F401

__all__ = [
    "Base",
    "User",
    "UserRole",
    "UploadRecord",
    "UploadStatus",
]
