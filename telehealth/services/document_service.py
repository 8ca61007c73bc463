from sqlalchemy.orm import Session
from typing import List
import logging

from ..core.config import settings
from ..core.exceptions import NotFoundError, ValidationFailed
from ..core.security import AuthorizationError
from ..models.document import Document
from ..models.patient import Patient
from ..schemas.document import DocumentCreate

logger = logging.getLogger(__name__)

class DocumentService:
    def __init__(self, db: Session):
        self.db = db

    def register(self, patient: Patient, data: DocumentCreate) -> Document:
        """Record a file the patient has uploaded to storage."""
        if data.file_size > settings.MAX_UPLOAD_BYTES:
            raise ValidationFailed("File size must be less than 10MB")

        document = Document(
            patient_id=patient.id,
            uploaded_by=patient.user_id,
            **data.model_dump()
        )
        self.db.add(document)
        self.db.commit()
        self.db.refresh(document)

        logger.info(f"Patient {patient.id} uploaded document {document.id}")
        return document

    def list_for_patient(self, patient: Patient) -> List[Document]:
        return self.db.query(Document).filter(
            Document.patient_id == patient.id
        ).order_by(Document.created_at.desc(), Document.id.desc()).all()

    def delete(self, patient: Patient, document_id: int) -> None:
        document = self.db.query(Document).filter(Document.id == document_id).first()
        if not document:
            raise NotFoundError("Document")
        if document.patient_id != patient.id:
            raise AuthorizationError("Not your document")

        self.db.delete(document)
        self.db.commit()
