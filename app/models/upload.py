"""SQLAlchemy model for uploaded lesson files and their generated variants."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy import Enum as SqlEnum
from sqlalchemy.dialects.postgresql import UUID

from app.models.base import Base


class UploadStatus(str, Enum):
    """Processing lifecycle of an upload; the last two values are terminal."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not UploadStatus.PROCESSING


class UploadRecord(Base):
    __tablename__ = "upload_records"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )
    owner_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    original_name = Column(String(512), nullable=False)
    category = Column(String(20), nullable=False)
    source_link = Column(Text, nullable=False)
    status = Column(
        SqlEnum(UploadStatus, name="upload_status"),
        nullable=False,
        default=UploadStatus.PROCESSING,
        index=True,
    )
    transcript = Column(JSON, nullable=True)
    extracted_text = Column(Text, nullable=True)
    audio_link = Column(Text, nullable=True)
    blind_friendly_link = Column(Text, nullable=True)
    dyslexia_friendly = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )


__all__ = ["UploadRecord", "UploadStatus"]
