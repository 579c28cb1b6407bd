"""Chat repository - Database operations for chats, messages and quick questions"""

from datetime import datetime
from typing import Optional

from sqlalchemy import nulls_last, or_
from sqlalchemy.orm import Session, joinedload

from ...models import Chat, CustomQuestion, Message, QuestionCategory


class ChatRepository:
    """Repository for chat database operations"""

    @staticmethod
    def get_chat(db: Session, chat_id: int) -> Optional[Chat]:
        return (
            db.query(Chat)
            .options(joinedload(Chat.customer), joinedload(Chat.employee))
            .filter(Chat.id == chat_id)
            .first()
        )

    @staticmethod
    def find_chat(db: Session, customer_id: int, employee_id: int) -> Optional[Chat]:
        return (
            db.query(Chat)
            .filter(Chat.customer_id == customer_id, Chat.employee_id == employee_id)
            .first()
        )

    @staticmethod
    def create_chat(db: Session, customer_id: int, employee_id: int) -> Chat:
        chat = Chat(customer_id=customer_id, employee_id=employee_id)
        db.add(chat)
        db.commit()
        db.refresh(chat)
        return chat

    @staticmethod
    def get_chats_for_user(
        db: Session, user_id: int, as_employee: bool, include_all: bool = False
    ) -> list[Chat]:
        query = db.query(Chat).options(joinedload(Chat.customer), joinedload(Chat.employee))
        if not include_all:
            column = Chat.employee_id if as_employee else Chat.customer_id
            query = query.filter(column == user_id)
        return query.order_by(nulls_last(Chat.last_message_at.desc()), Chat.id.desc()).all()

    @staticmethod
    def get_chats_with_participant(db: Session, user_id: int) -> list[Chat]:
        return (
            db.query(Chat)
            .filter(or_(Chat.customer_id == user_id, Chat.employee_id == user_id))
            .all()
        )

    @staticmethod
    def touch_last_message(db: Session, chat: Chat, content: str) -> None:
        chat.last_message_at = datetime.utcnow()
        chat.last_message_content = content


class MessageRepository:
    """Repository for message database operations"""

    @staticmethod
    def get_message(db: Session, message_id: int) -> Optional[Message]:
        return (
            db.query(Message)
            .options(joinedload(Message.sender))
            .filter(Message.id == message_id)
            .first()
        )

    @staticmethod
    def get_visible_messages(db: Session, chat_id: int, page: int, size: int) -> list[Message]:
        """Oldest first, soft-deleted messages excluded"""
        return (
            db.query(Message)
            .options(joinedload(Message.sender))
            .filter(Message.chat_id == chat_id, Message.is_deleted.is_(False))
            .order_by(Message.created_at.asc(), Message.id.asc())
            .offset(page * size)
            .limit(size)
            .all()
        )

    @staticmethod
    def add_message(db: Session, **message_data) -> Message:
        message = Message(**message_data)
        db.add(message)
        return message

    @staticmethod
    def save(db: Session, message: Message) -> Message:
        db.commit()
        db.refresh(message)
        return message


class CustomQuestionRepository:
    @staticmethod
    def get_active(db: Session, category: Optional[QuestionCategory] = None) -> list[CustomQuestion]:
        query = db.query(CustomQuestion).filter(CustomQuestion.is_active.is_(True))
        if category is not None:
            query = query.filter(CustomQuestion.category == category)
        return query.order_by(CustomQuestion.id.asc()).all()

    @staticmethod
    def get_by_id(db: Session, question_id: int) -> Optional[CustomQuestion]:
        return db.query(CustomQuestion).filter(CustomQuestion.id == question_id).first()

    @staticmethod
    def create(db: Session, **question_data) -> CustomQuestion:
        question = CustomQuestion(**question_data)
        db.add(question)
        db.commit()
        db.refresh(question)
        return question
