from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional
import logging

from ..core.exceptions import NotFoundError, ValidationFailed
from ..core.security import AuthorizationError, UserRole
from ..models.conversation import Conversation, Message
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..models.user import User
from ..schemas.messaging import ConversationResponse
from .prescription_service import is_patient_of

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100

class MessagingService:
    """Doctor-patient conversations; each pair shares exactly one thread."""

    def __init__(self, db: Session):
        self.db = db

    def _participant(self, user: User):
        if user.role == UserRole.DOCTOR and user.doctor is not None:
            return user.doctor
        if user.role == UserRole.PATIENT and user.patient is not None:
            return user.patient
        raise AuthorizationError("Only doctors and patients can use messaging")

    def _get_conversation(self, user: User, conversation_id: int) -> Conversation:
        conversation = self.db.query(Conversation).filter(
            Conversation.id == conversation_id
        ).first()
        if not conversation:
            raise NotFoundError("Conversation")

        participant = self._participant(user)
        if user.role == UserRole.DOCTOR and conversation.doctor_id != participant.id:
            raise AuthorizationError("Not your conversation")
        if user.role == UserRole.PATIENT and conversation.patient_id != participant.id:
            raise AuthorizationError("Not your conversation")
        return conversation

    def to_response(self, conversation: Conversation, user: User) -> ConversationResponse:
        response = ConversationResponse.model_validate(conversation)
        if user.role == UserRole.DOCTOR:
            response.counterpart_name = conversation.patient.full_name
            response.unread_count = conversation.doctor_unread_count
        else:
            response.counterpart_name = conversation.doctor.full_name
            response.unread_count = conversation.patient_unread_count
        return response

    def start(self, user: User, patient_id: Optional[int] = None, doctor_id: Optional[int] = None) -> Conversation:
        """Return the pair's conversation, creating it on first contact."""
        participant = self._participant(user)
        if user.role == UserRole.DOCTOR:
            if patient_id is None:
                raise ValidationFailed("patient_id is required")
            doctor = participant
            patient = self.db.query(Patient).filter(Patient.id == patient_id).first()
            if not patient:
                raise NotFoundError("Patient")
        else:
            if doctor_id is None:
                raise ValidationFailed("doctor_id is required")
            patient = participant
            doctor = self.db.query(Doctor).filter(Doctor.id == doctor_id).first()
            if not doctor:
                raise NotFoundError("Doctor")

        if not is_patient_of(self.db, doctor, patient.id):
            raise AuthorizationError("Messaging requires an appointment between doctor and patient")

        conversation = self.db.query(Conversation).filter(
            Conversation.doctor_id == doctor.id,
            Conversation.patient_id == patient.id
        ).first()
        if conversation:
            return conversation

        conversation = Conversation(
            doctor_id=doctor.id,
            patient_id=patient.id,
            last_message="",
            last_message_at=datetime.utcnow(),
        )
        self.db.add(conversation)
        self.db.commit()
        self.db.refresh(conversation)
        return conversation

    def list_conversations(self, user: User) -> List[Conversation]:
        participant = self._participant(user)
        query = self.db.query(Conversation)
        if user.role == UserRole.DOCTOR:
            query = query.filter(Conversation.doctor_id == participant.id)
        else:
            query = query.filter(Conversation.patient_id == participant.id)
        return query.order_by(Conversation.last_message_at.desc(), Conversation.id.desc()).all()

    def send(self, user: User, conversation_id: int, content: str) -> Message:
        conversation = self._get_conversation(user, conversation_id)

        if user.role == UserRole.DOCTOR:
            recipient_id = conversation.patient.user_id
            recipient_role = UserRole.PATIENT
            conversation.patient_unread_count = (conversation.patient_unread_count or 0) + 1
        else:
            recipient_id = conversation.doctor.user_id
            recipient_role = UserRole.DOCTOR
            conversation.doctor_unread_count = (conversation.doctor_unread_count or 0) + 1

        message = Message(
            conversation_id=conversation.id,
            sender_id=user.id,
            sender_role=user.role,
            recipient_id=recipient_id,
            recipient_role=recipient_role,
            content=content,
        )
        self.db.add(message)

        conversation.last_message = content[:PREVIEW_LENGTH]
        conversation.last_message_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(message)
        return message

    def read_messages(self, user: User, conversation_id: int) -> List[Message]:
        """Messages oldest first; the other party's messages are marked read."""
        conversation = self._get_conversation(user, conversation_id)

        now = datetime.utcnow()
        self.db.query(Message).filter(
            Message.conversation_id == conversation.id,
            Message.recipient_id == user.id,
            Message.is_read == False  # noqa: E712
        ).update({"is_read": True, "read_at": now}, synchronize_session=False)

        if user.role == UserRole.DOCTOR:
            conversation.doctor_unread_count = 0
        else:
            conversation.patient_unread_count = 0
        self.db.commit()

        return self.db.query(Message).filter(
            Message.conversation_id == conversation.id
        ).order_by(Message.created_at, Message.id).all()
