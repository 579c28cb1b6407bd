"""User repository - Database operations for user accounts"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Appointment, Chat, Message, Role, User


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.strip().lower()).first()

    @staticmethod
    def create_user(db: Session, **user_data) -> User:
        user = User(**user_data)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def save(db: Session, user: User) -> User:
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def list_users(db: Session, page: int, size: int) -> tuple[list[User], int]:
        query = db.query(User)
        total = query.count()
        users = query.order_by(User.id.asc()).offset(page * size).limit(size).all()
        return users, total

    @staticmethod
    def get_users_by_role(db: Session, role: Role, enabled_only: bool = False) -> list[User]:
        query = db.query(User).filter(User.role == role)
        if enabled_only:
            query = query.filter(User.enabled.is_(True))
        return query.order_by(User.full_name.asc()).all()

    @staticmethod
    def count_users(db: Session, enabled: Optional[bool] = None, role: Optional[Role] = None) -> int:
        query = db.query(User)
        if enabled is not None:
            query = query.filter(User.enabled.is_(enabled))
        if role is not None:
            query = query.filter(User.role == role)
        return query.count()

    @staticmethod
    def delete_user(db: Session, user: User) -> None:
        """
        Hard delete a user.

        Appointments keep their history with the user references cleared;
        the user's chats and messages are removed.
        """
        db.query(Appointment).filter(Appointment.customer_id == user.id).update(
            {Appointment.customer_id: None}, synchronize_session=False
        )
        db.query(Appointment).filter(Appointment.employee_id == user.id).update(
            {Appointment.employee_id: None}, synchronize_session=False
        )

        chat_ids = [
            chat_id
            for (chat_id,) in db.query(Chat.id).filter(
                or_(Chat.customer_id == user.id, Chat.employee_id == user.id)
            )
        ]
        if chat_ids:
            db.query(Message).filter(Message.chat_id.in_(chat_ids)).delete(synchronize_session=False)
            db.query(Chat).filter(Chat.id.in_(chat_ids)).delete(synchronize_session=False)
        db.query(Message).filter(Message.sender_id == user.id).delete(synchronize_session=False)

        db.delete(user)
        db.commit()
