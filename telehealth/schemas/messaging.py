from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from ..core.security import UserRole

class ConversationStart(BaseModel):
    # Doctors pass patient_id, patients pass doctor_id
    patient_id: Optional[int] = None
    doctor_id: Optional[int] = None

class ConversationResponse(BaseModel):
    id: int
    doctor_id: int
    patient_id: int
    last_message: str
    last_message_at: datetime
    doctor_unread_count: int
    patient_unread_count: int

    counterpart_name: Optional[str] = None
    unread_count: int = 0

    class Config:
        from_attributes = True

class MessageCreate(BaseModel):
    content: str = Field(..., max_length=5000)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Message cannot be empty")
        return value.strip()

class MessageResponse(BaseModel):
    id: int
    conversation_id: int
    sender_id: int
    sender_role: UserRole
    recipient_id: int
    recipient_role: UserRole
    content: str
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
