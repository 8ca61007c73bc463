from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime

DocumentCategory = Literal["lab_result", "imaging", "prescription", "letter", "insurance", "other"]

class DocumentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=500)
    file_type: str = Field(..., max_length=100)
    file_size: int = Field(..., gt=0)
    category: DocumentCategory = "other"

class DocumentResponse(BaseModel):
    id: int
    patient_id: int
    uploaded_by: int
    name: str
    file_url: str
    file_type: str
    file_size: int
    category: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
