"""Pydantic schemas used as views in the MVC architecture."""

from .auth import LoginRequest, TokenResponse
from .common import ErrorResponse
from .files import (
    SceneResponse,
    UploadAcceptedResponse,
    UploadRecordResponse,
    UploadStatusResponse,
    VisualizeLessonRequest,
    VisualizeLessonResponse,
)
from .users import (
    RoleSelectionRequest,
    UserRegistrationRequest,
    UserRegistrationResponse,
    UserResponse,
)

__all__ = [
    "ErrorResponse",
    "LoginRequest",
    "RoleSelectionRequest",
    "SceneResponse",
    "TokenResponse",
    "UploadAcceptedResponse",
    "UploadRecordResponse",
    "UploadStatusResponse",
    "UserRegistrationRequest",
    "UserRegistrationResponse",
    "UserResponse",
    "VisualizeLessonRequest",
    "VisualizeLessonResponse",
]
