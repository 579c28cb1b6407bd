import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date, time  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from autocare import rate_limiter  # noqa: E402
from autocare.database import Base, get_db  # noqa: E402
from autocare.main import app  # noqa: E402
from autocare.models import Appointment, AppointmentStatus, Role, User  # noqa: E402
from autocare.security import create_token_for_user, hash_password  # noqa: E402
from autocare.services.notification_service import (  # noqa: E402
    NotificationQueue,
    get_notification_queue,
)

PASSWORD = "secret123"


@pytest.fixture(scope="session")
def password_hash():
    return hash_password(PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def notifications():
    return NotificationQueue()


@pytest.fixture(autouse=True)
def memory_only_rate_limits():
    rate_limiter._redis_unavailable_until = float("inf")
    rate_limiter.memory_cache.clear()
    yield
    rate_limiter.memory_cache.clear()


@pytest.fixture
def client(session_factory, notifications):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_queue] = lambda: notifications
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db, password_hash):
    counter = {"n": 0}

    def _make_user(role: Role = Role.CUSTOMER, enabled: bool = True, name: str = None) -> User:
        counter["n"] += 1
        user = User(
            full_name=name or f"{role.value.title()} {counter['n']}",
            email=f"{role.value.lower()}{counter['n']}@example.com",
            password_hash=password_hash,
            phone="+15551234567",
            role=role,
            enabled=enabled,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def customer(make_user):
    return make_user(Role.CUSTOMER, name="Carol Customer")


@pytest.fixture
def other_customer(make_user):
    return make_user(Role.CUSTOMER, name="Oscar Other")


@pytest.fixture
def employee(make_user):
    return make_user(Role.EMPLOYEE, name="Eddie Employee")


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, name="Ada Admin")


@pytest.fixture
def super_admin(make_user):
    return make_user(Role.SUPER_ADMIN, name="Sam Super")


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_token_for_user(user)}"}


@pytest.fixture
def make_appointment(db):
    def _make_appointment(
        customer: User = None,
        employee: User = None,
        status: AppointmentStatus = AppointmentStatus.PENDING,
        on: date = date(2025, 6, 1),
        at: time = time(10, 0),
        **extra,
    ) -> Appointment:
        appointment = Appointment(
            date=on,
            time=at,
            vehicle_type=extra.pop("vehicle_type", "Sedan"),
            vehicle_number=extra.pop("vehicle_number", "ABC-123"),
            service_type=extra.pop("service_type", "Oil Change"),
            customer_id=customer.id if customer else None,
            employee_id=employee.id if employee else None,
            status=status,
            progress=extra.pop("progress", 0),
            **extra,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _make_appointment


def notification_kinds(queue: NotificationQueue) -> list[str]:
    """Appointment notification kinds recorded on a queue, in order"""
    return [job.args[1] for job in queue.jobs if job.function == "send_appointment_notification_task"]
