from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_current_patient
from ...services.document_service import DocumentService
from ...schemas.document import DocumentCreate, DocumentResponse
from ...models.patient import Patient

router = APIRouter(prefix="/documents", tags=["Documents"])

@router.post("", response_model=DocumentResponse, status_code=201)
async def register_document(
    data: DocumentCreate,
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    """Record a file the patient uploaded to storage."""
    return DocumentService(db).register(patient, data)

@router.get("", response_model=List[DocumentResponse])
async def list_documents(
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    return DocumentService(db).list_for_patient(patient)

@router.delete("/{document_id}")
async def delete_document(
    document_id: int,
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    DocumentService(db).delete(patient, document_id)
    return {"message": "Document deleted"}
