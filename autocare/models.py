import enum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Role(str, enum.Enum):
    CUSTOMER = "CUSTOMER"
    EMPLOYEE = "EMPLOYEE"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class AppointmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class MessageType(str, enum.Enum):
    TEXT = "TEXT"
    CUSTOM_QUESTION = "CUSTOM_QUESTION"
    SYSTEM_NOTIFICATION = "SYSTEM_NOTIFICATION"


class QuestionCategory(str, enum.Enum):
    SERVICE_STATUS = "SERVICE_STATUS"
    PICKUP_READY = "PICKUP_READY"
    FEEDBACK = "FEEDBACK"
    GENERAL = "GENERAL"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    role = Column(Enum(Role, native_enum=False, length=20), nullable=False, default=Role.CUSTOMER)
    enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer_appointments = relationship(
        "Appointment", back_populates="customer", foreign_keys="Appointment.customer_id"
    )
    employee_appointments = relationship(
        "Appointment", back_populates="employee", foreign_keys="Appointment.employee_id"
    )


class Appointment(Base):
    __tablename__ = "appointments"
    # One live booking per slot; cancelled rows free the slot again
    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "date",
            "time",
            unique=True,
            sqlite_where=text("status != 'CANCELLED'"),
            postgresql_where=text("status != 'CANCELLED'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    time = Column(Time, nullable=False)
    vehicle_type = Column(String(100), nullable=True)
    vehicle_number = Column(String(50), nullable=True)
    service_type = Column(String(255), nullable=False)
    instructions = Column(Text, nullable=True)
    # Contact details for bookings made without an account
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    employee_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    status = Column(
        Enum(AppointmentStatus, native_enum=False, length=20),
        nullable=False,
        default=AppointmentStatus.PENDING,
        index=True,
    )
    progress = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship(
        "User", back_populates="customer_appointments", foreign_keys=[customer_id]
    )
    employee = relationship(
        "User", back_populates="employee_appointments", foreign_keys=[employee_id]
    )


class Chat(Base):
    __tablename__ = "chats"
    __table_args__ = (UniqueConstraint("customer_id", "employee_id", name="uq_chats_participants"),)

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    last_message_at = Column(DateTime, nullable=True)
    last_message_content = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    customer = relationship("User", foreign_keys=[customer_id])
    employee = relationship("User", foreign_keys=[employee_id])
    messages = relationship("Message", back_populates="chat", cascade="all, delete-orphan")


class CustomQuestion(Base):
    __tablename__ = "custom_questions"

    id = Column(Integer, primary_key=True, index=True)
    question = Column(String(500), nullable=False)
    category = Column(
        Enum(QuestionCategory, native_enum=False, length=30),
        nullable=False,
        default=QuestionCategory.GENERAL,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(Integer, ForeignKey("chats.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    type = Column(
        Enum(MessageType, native_enum=False, length=30), nullable=False, default=MessageType.TEXT
    )
    custom_question_id = Column(Integer, ForeignKey("custom_questions.id"), nullable=True)
    is_edited = Column(Boolean, default=False, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)  # Soft delete
    edited_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    chat = relationship("Chat", back_populates="messages")
    sender = relationship("User")
    custom_question = relationship("CustomQuestion")
