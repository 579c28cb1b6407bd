"""Appointment repository - Database operations for appointments"""

from datetime import date, time
from typing import Optional

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, AppointmentStatus

# API sort keys mapped to columns; anything else is rejected by the service
SORTABLE_COLUMNS = {
    "id": Appointment.id,
    "date": Appointment.date,
    "time": Appointment.time,
    "status": Appointment.status,
    "createdAt": Appointment.created_at,
    "updatedAt": Appointment.updated_at,
}


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def _query(db: Session):
        return db.query(Appointment).options(
            joinedload(Appointment.customer), joinedload(Appointment.employee)
        )

    @staticmethod
    def get_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return AppointmentRepository._query(db).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def find_conflicting(
        db: Session, slot_date: date, slot_time: time, exclude_id: Optional[int] = None
    ) -> Optional[Appointment]:
        """Any non-cancelled appointment booked at exactly this date and time"""
        query = db.query(Appointment).filter(
            Appointment.date == slot_date,
            Appointment.time == slot_time,
            Appointment.status != AppointmentStatus.CANCELLED,
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.first()

    @staticmethod
    def create(db: Session, **appointment_data) -> Appointment:
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def save(db: Session, appointment: Appointment) -> Appointment:
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def delete(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.commit()

    @staticmethod
    def list_paged(
        db: Session,
        status: Optional[AppointmentStatus],
        page: int,
        size: int,
        sort_by: str,
        sort_dir: str,
    ) -> tuple[list[Appointment], int]:
        """Return one page of appointments and the total match count"""
        query = db.query(Appointment)
        if status is not None:
            query = query.filter(Appointment.status == status)

        total = query.count()
        column = SORTABLE_COLUMNS[sort_by]
        order = desc(column) if sort_dir == "desc" else asc(column)
        items = (
            query.options(joinedload(Appointment.customer), joinedload(Appointment.employee))
            .order_by(order, Appointment.id)
            .offset(page * size)
            .limit(size)
            .all()
        )
        return items, total

    @staticmethod
    def get_by_customer(db: Session, customer_id: int) -> list[Appointment]:
        return (
            AppointmentRepository._query(db)
            .filter(Appointment.customer_id == customer_id)
            .order_by(Appointment.date.desc(), Appointment.time.desc())
            .all()
        )

    @staticmethod
    def get_by_employee(db: Session, employee_id: int) -> list[Appointment]:
        return (
            AppointmentRepository._query(db)
            .filter(Appointment.employee_id == employee_id)
            .order_by(Appointment.date.asc(), Appointment.time.asc())
            .all()
        )

    @staticmethod
    def get_by_status(db: Session, status: AppointmentStatus) -> list[Appointment]:
        return (
            AppointmentRepository._query(db)
            .filter(Appointment.status == status)
            .order_by(Appointment.date.asc(), Appointment.time.asc())
            .all()
        )

    @staticmethod
    def get_by_date_range(db: Session, start: date, end: date) -> list[Appointment]:
        return (
            AppointmentRepository._query(db)
            .filter(Appointment.date >= start, Appointment.date <= end)
            .order_by(Appointment.date.asc(), Appointment.time.asc())
            .all()
        )

    @staticmethod
    def get_by_date(db: Session, on_date: date) -> list[Appointment]:
        return AppointmentRepository.get_by_date_range(db, on_date, on_date)
