"""Session file schemas - Pydantic models for session materials"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class SessionFileResponse(BaseModel):
    id: int
    sessionId: int
    fileName: str
    mimeType: Optional[str] = None
    sizeBytes: Optional[int] = None
    r2Key: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, session_file) -> "SessionFileResponse":
        return cls(
            id=session_file.id,
            sessionId=session_file.session_id,
            fileName=session_file.file_name,
            mimeType=session_file.mime_type,
            sizeBytes=session_file.size_bytes,
            r2Key=session_file.r2_key,
            created_at=session_file.created_at,
        )


class SessionFileUrlResponse(BaseModel):
    url: str
    expiresIn: int
