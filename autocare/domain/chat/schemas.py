"""Chat domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import Chat, CustomQuestion, Message, MessageType, QuestionCategory
from ...shared.validators import require_text

MAX_MESSAGE_LENGTH = 2000


def check_message_content(v: str) -> str:
    v = require_text(v, "Message content")
    if len(v) > MAX_MESSAGE_LENGTH:
        raise ValueError(f"Message content must be at most {MAX_MESSAGE_LENGTH} characters")
    return v


class CreateChatRequest(BaseModel):
    customerId: int
    employeeId: int


class SendMessageRequest(BaseModel):
    chatId: int
    content: str
    type: MessageType = MessageType.TEXT
    customQuestionId: Optional[int] = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        return check_message_content(v)


class EditMessageRequest(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        return check_message_content(v)


class CustomQuestionCreate(BaseModel):
    question: str
    category: QuestionCategory = QuestionCategory.GENERAL

    @field_validator("question")
    @classmethod
    def validate_question(cls, v):
        return require_text(v, "Question")


class ChatResponse(BaseModel):
    id: int
    customerId: int
    customerName: Optional[str] = None
    customerEmail: Optional[str] = None
    employeeId: int
    employeeName: Optional[str] = None
    employeeEmail: Optional[str] = None
    createdAt: Optional[datetime] = None
    lastMessageAt: Optional[datetime] = None
    lastMessageContent: Optional[str] = None

    @classmethod
    def from_model(cls, chat: Chat) -> "ChatResponse":
        return cls(
            id=chat.id,
            customerId=chat.customer_id,
            customerName=chat.customer.full_name if chat.customer else None,
            customerEmail=chat.customer.email if chat.customer else None,
            employeeId=chat.employee_id,
            employeeName=chat.employee.full_name if chat.employee else None,
            employeeEmail=chat.employee.email if chat.employee else None,
            createdAt=chat.created_at,
            lastMessageAt=chat.last_message_at,
            lastMessageContent=chat.last_message_content,
        )


class MessageResponse(BaseModel):
    id: int
    chatId: int
    senderId: int
    senderName: Optional[str] = None
    content: str
    type: MessageType
    customQuestionId: Optional[int] = None
    createdAt: Optional[datetime] = None
    editedAt: Optional[datetime] = None
    isEdited: bool
    isDeleted: bool

    @classmethod
    def from_model(cls, message: Message) -> "MessageResponse":
        return cls(
            id=message.id,
            chatId=message.chat_id,
            senderId=message.sender_id,
            senderName=message.sender.full_name if message.sender else None,
            content=message.content,
            type=message.type,
            customQuestionId=message.custom_question_id,
            createdAt=message.created_at,
            editedAt=message.edited_at,
            isEdited=message.is_edited,
            isDeleted=message.is_deleted,
        )


class CustomQuestionResponse(BaseModel):
    id: int
    question: str
    category: QuestionCategory
    isActive: bool

    @classmethod
    def from_model(cls, question: CustomQuestion) -> "CustomQuestionResponse":
        return cls(
            id=question.id,
            question=question.question,
            category=question.category,
            isActive=question.is_active,
        )
