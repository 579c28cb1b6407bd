"""Chat service - Customer/employee conversations and quick questions"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Chat, CustomQuestion, Message, MessageType, QuestionCategory, Role, User
from ...shared.errors import (
    NotFoundError,
    PermissionDeniedError,
    StateError,
    ValidationError,
)
from ..appointments import policies
from ..users.repository import UserRepository
from .repository import ChatRepository, CustomQuestionRepository, MessageRepository

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 200


class ChatService:
    """Service layer for chats and messages"""

    def __init__(self, db: Session):
        self.db = db
        self.chats = ChatRepository()
        self.messages = MessageRepository()
        self.questions = CustomQuestionRepository()
        self.users = UserRepository()

    # ============================================================================
    # CHATS
    # ============================================================================

    def create_or_get_chat(self, customer_id: int, employee_id: int) -> Chat:
        """Return the chat between two users, creating it on first contact"""
        existing = self.chats.find_chat(self.db, customer_id, employee_id)
        if existing:
            return existing

        customer = self.users.get_user_by_id(self.db, customer_id)
        employee = self.users.get_user_by_id(self.db, employee_id)
        if not customer or not employee:
            raise NotFoundError("Chat participant not found")
        if not policies.is_staff(employee):
            raise ValidationError("Chats must include a staff member")

        try:
            chat = self.chats.create_chat(self.db, customer_id, employee_id)
        except IntegrityError:
            # Another request opened the same chat first
            self.db.rollback()
            return self.chats.find_chat(self.db, customer_id, employee_id)

        logger.info(f"💬 Chat {chat.id} opened between customer {customer_id} and {employee_id}")
        return chat

    def open_chat(self, customer_id: int, employee_id: int, user: User) -> Chat:
        if user.id not in (customer_id, employee_id) and not policies.is_admin(user):
            raise PermissionDeniedError("You can only open chats you take part in")
        return self.create_or_get_chat(customer_id, employee_id)

    def get_user_chats(self, user: User) -> list[Chat]:
        if user.role == Role.CUSTOMER:
            return self.chats.get_chats_for_user(self.db, user.id, as_employee=False)
        return self.chats.get_chats_for_user(self.db, user.id, as_employee=True)

    def get_chat_for_participant(self, chat_id: int, user: User) -> Chat:
        chat = self.chats.get_chat(self.db, chat_id)
        if not chat:
            raise NotFoundError(f"Chat not found with id: {chat_id}")
        if not self.is_participant(chat, user) and not policies.is_admin(user):
            raise PermissionDeniedError("You are not a participant of this chat")
        return chat

    @staticmethod
    def is_participant(chat: Chat, user: User) -> bool:
        return user.id in (chat.customer_id, chat.employee_id)

    # ============================================================================
    # MESSAGES
    # ============================================================================

    def get_chat_messages(self, chat_id: int, user: User, page: int = 0, size: int = 50) -> list[Message]:
        self.get_chat_for_participant(chat_id, user)
        if page < 0 or size < 1 or size > MAX_PAGE_SIZE:
            raise ValidationError("Invalid pagination parameters")
        return self.messages.get_visible_messages(self.db, chat_id, page, size)

    def send_message(
        self,
        chat_id: int,
        content: str,
        user: User,
        message_type: MessageType = MessageType.TEXT,
        custom_question_id: Optional[int] = None,
    ) -> Message:
        chat = self.chats.get_chat(self.db, chat_id)
        if not chat:
            raise NotFoundError(f"Chat not found with id: {chat_id}")
        if not self.is_participant(chat, user):
            raise PermissionDeniedError("Only chat participants can send messages")

        if custom_question_id is not None:
            question = self.questions.get_by_id(self.db, custom_question_id)
            if not question or not question.is_active:
                raise NotFoundError(f"Custom question not found with id: {custom_question_id}")
            message_type = MessageType.CUSTOM_QUESTION

        message = self.messages.add_message(
            self.db,
            chat_id=chat.id,
            sender_id=user.id,
            content=content,
            type=message_type,
            custom_question_id=custom_question_id,
        )
        self.chats.touch_last_message(self.db, chat, content)
        message = self.messages.save(self.db, message)

        logger.info(f"💬 Message {message.id} sent in chat {chat.id} by user {user.id}")
        return message

    def edit_message(self, message_id: int, content: str, user: User) -> Message:
        message = self._get_own_message(message_id, user, action="edit")
        if message.is_edited:
            raise StateError("This message has already been edited and cannot be modified again")

        message.content = content
        message.is_edited = True
        message.edited_at = datetime.utcnow()
        return self.messages.save(self.db, message)

    def delete_message(self, message_id: int, user: User) -> Message:
        message = self._get_own_message(message_id, user, action="delete")
        message.is_deleted = True
        message = self.messages.save(self.db, message)
        logger.info(f"🗑️ Message {message_id} soft-deleted by user {user.id}")
        return message

    def _get_own_message(self, message_id: int, user: User, action: str) -> Message:
        message = self.messages.get_message(self.db, message_id)
        if not message or message.is_deleted:
            raise NotFoundError(f"Message not found with id: {message_id}")
        if message.sender_id != user.id:
            raise PermissionDeniedError(f"Unauthorized to {action} this message")
        return message

    # ============================================================================
    # CUSTOM QUESTIONS
    # ============================================================================

    def get_custom_questions(self, category: Optional[QuestionCategory] = None) -> list[CustomQuestion]:
        return self.questions.get_active(self.db, category)

    def create_custom_question(
        self, question: str, category: QuestionCategory, user: User
    ) -> CustomQuestion:
        if not policies.is_admin(user):
            raise PermissionDeniedError("Administrator access required")
        return self.questions.create(self.db, question=question, category=category, is_active=True)
