from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import require_role
from ...services.messaging_service import MessagingService
from ...schemas.messaging import (
    ConversationResponse, ConversationStart, MessageCreate, MessageResponse
)
from ...models.user import User

router = APIRouter(prefix="/conversations", tags=["Messaging"])

participant = require_role([UserRole.DOCTOR, UserRole.PATIENT])

@router.get("", response_model=List[ConversationResponse])
async def list_conversations(
    current_user: User = Depends(participant),
    db: Session = Depends(get_db)
):
    service = MessagingService(db)
    return [service.to_response(c, current_user) for c in service.list_conversations(current_user)]

@router.post("", response_model=ConversationResponse)
async def start_conversation(
    data: ConversationStart,
    current_user: User = Depends(participant),
    db: Session = Depends(get_db)
):
    """Open the thread with a patient or doctor, reusing an existing one."""
    service = MessagingService(db)
    conversation = service.start(current_user, data.patient_id, data.doctor_id)
    return service.to_response(conversation, current_user)

@router.get("/{conversation_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    conversation_id: int,
    current_user: User = Depends(participant),
    db: Session = Depends(get_db)
):
    return MessagingService(db).read_messages(current_user, conversation_id)

@router.post("/{conversation_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    conversation_id: int,
    data: MessageCreate,
    current_user: User = Depends(participant),
    db: Session = Depends(get_db)
):
    return MessagingService(db).send(current_user, conversation_id, data.content)
