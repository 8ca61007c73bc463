from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Text, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..core.security import UserRole

class Conversation(Base):
    __tablename__ = "conversations"
    __table_args__ = (UniqueConstraint("doctor_id", "patient_id", name="uq_conversation_pair"),)

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)

    last_message = Column(String(100), nullable=False, default="")
    last_message_at = Column(DateTime, nullable=False)
    doctor_unread_count = Column(Integer, nullable=False, default=0)
    patient_unread_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, server_default=func.now())

    doctor = relationship("Doctor")
    patient = relationship("Patient")
    messages = relationship("Message", back_populates="conversation", order_by="Message.id")

    def __repr__(self):
        return f"<Conversation(id={self.id}, doctor_id={self.doctor_id}, patient_id={self.patient_id})>"

class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    sender_role = Column(SQLEnum(UserRole), nullable=False)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    recipient_role = Column(SQLEnum(UserRole), nullable=False)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    conversation = relationship("Conversation", back_populates="messages")

    def __repr__(self):
        return f"<Message(id={self.id}, conversation_id={self.conversation_id})>"
