"""Dashboard repository - Aggregate queries over appointments"""

from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, AppointmentStatus, User
from ..appointments.state_machine import TERMINAL_STATUSES


class DashboardRepository:
    @staticmethod
    def count_by_status(db: Session) -> dict[AppointmentStatus, int]:
        rows = (
            db.query(Appointment.status, func.count(Appointment.id))
            .group_by(Appointment.status)
            .all()
        )
        return {status: count for status, count in rows}

    @staticmethod
    def count_on_date(db: Session, on_date: date) -> int:
        return db.query(func.count(Appointment.id)).filter(Appointment.date == on_date).scalar() or 0

    @staticmethod
    def dates_between(db: Session, start: date, end: date) -> list[date]:
        return [
            d
            for (d,) in db.query(Appointment.date).filter(
                Appointment.date >= start, Appointment.date <= end
            )
        ]

    @staticmethod
    def employee_workload(db: Session, limit: int) -> list[tuple[str, int]]:
        """Active (confirmed or in progress) appointments per assigned employee"""
        task_count = func.count(Appointment.id).label("task_count")
        return (
            db.query(User.full_name, task_count)
            .join(Appointment, Appointment.employee_id == User.id)
            .filter(
                Appointment.status.in_([AppointmentStatus.CONFIRMED, AppointmentStatus.IN_PROGRESS])
            )
            .group_by(User.id, User.full_name)
            .order_by(task_count.desc(), User.full_name.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def upcoming(db: Session, from_date: date, limit: int) -> list[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.customer))
            .filter(
                Appointment.date >= from_date,
                Appointment.status.notin_(list(TERMINAL_STATUSES)),
            )
            .order_by(Appointment.date.asc(), Appointment.time.asc())
            .limit(limit)
            .all()
        )
