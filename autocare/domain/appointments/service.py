"""Appointment service - Booking lifecycle, assignment and progress tracking"""

import logging
import math
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Appointment, AppointmentStatus, Role, User
from ...services.notification_service import NotificationKind, NotificationQueue
from ...shared.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ..users.repository import UserRepository
from . import policies
from .repository import SORTABLE_COLUMNS, AppointmentRepository
from .schemas import AppointmentCreate, AppointmentPage, AppointmentResponse, AppointmentUpdate
from .state_machine import AppointmentEvent, ensure_can_apply, next_status, status_for_progress

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def is_slot_violation(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    return "unique constraint" in message or "duplicate key" in message


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session, notifications: Optional[NotificationQueue] = None):
        self.db = db
        self.repo = AppointmentRepository()
        self.users = UserRepository()
        self.notifications = notifications or NotificationQueue()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _get_or_404(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError(f"Appointment not found with id: {appointment_id}")
        return appointment

    def get_appointment(self, appointment_id: int, user: User) -> Appointment:
        appointment = self._get_or_404(appointment_id)
        if not policies.is_owner_or_staff(appointment, user):
            raise PermissionDeniedError("You do not have access to this appointment")
        return appointment

    def list_appointments(
        self,
        user: User,
        status: Optional[AppointmentStatus] = None,
        page: int = 0,
        size: int = 10,
        sort_by: str = "date",
        sort_dir: str = "desc",
    ) -> AppointmentPage:
        self._require_staff(user)
        if page < 0:
            raise ValidationError("Page index must not be negative")
        if size < 1 or size > MAX_PAGE_SIZE:
            raise ValidationError(f"Page size must be between 1 and {MAX_PAGE_SIZE}")
        if sort_by not in SORTABLE_COLUMNS:
            raise ValidationError(
                f"Cannot sort by '{sort_by}'. Allowed: {', '.join(SORTABLE_COLUMNS)}"
            )
        sort_dir = sort_dir.lower()
        if sort_dir not in ("asc", "desc"):
            raise ValidationError("Sort direction must be 'asc' or 'desc'")

        items, total = self.repo.list_paged(self.db, status, page, size, sort_by, sort_dir)
        return AppointmentPage(
            content=[AppointmentResponse.from_model(a) for a in items],
            totalElements=total,
            totalPages=math.ceil(total / size) if total else 0,
            page=page,
            size=size,
        )

    def get_my_appointments(self, user: User) -> list[Appointment]:
        return self.repo.get_by_customer(self.db, user.id)

    def get_appointments_by_status(self, status: AppointmentStatus, user: User) -> list[Appointment]:
        self._require_staff(user)
        return self.repo.get_by_status(self.db, status)

    def get_todays_appointments(self, user: User, today: Optional[date] = None) -> list[Appointment]:
        self._require_staff(user)
        return self.repo.get_by_date(self.db, today or date.today())

    def get_appointments_by_date_range(self, start: date, end: date, user: User) -> list[Appointment]:
        self._require_staff(user)
        if start > end:
            raise ValidationError("Start date must not be after end date")
        return self.repo.get_by_date_range(self.db, start, end)

    def get_employee_appointments(self, employee_id: int, user: User) -> list[Appointment]:
        """Appointments assigned to an employee; unknown employees simply have none"""
        if not policies.is_admin(user) and not (
            user.role == Role.EMPLOYEE and user.id == employee_id
        ):
            raise PermissionDeniedError("You can only view your own assigned appointments")
        return self.repo.get_by_employee(self.db, employee_id)

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    def create_appointment(self, data: AppointmentCreate, user: Optional[User]) -> Appointment:
        """Book a slot; anonymous bookings keep the contact details given in the request"""
        self._ensure_slot_free(data.date, data.time)

        appointment_data = {
            "date": data.date,
            "time": data.time,
            "vehicle_type": data.vehicleType,
            "vehicle_number": data.vehicleNumber,
            "service_type": data.service,
            "instructions": data.instructions,
            "status": AppointmentStatus.PENDING,
            "progress": 0,
        }
        if user is not None:
            appointment_data["customer_id"] = user.id
        else:
            appointment_data["customer_name"] = data.customerName or "Valued Customer"
            appointment_data["customer_email"] = data.customerEmail
            appointment_data["customer_phone"] = data.customerPhone

        try:
            appointment = self.repo.create(self.db, **appointment_data)
        except IntegrityError as e:
            self.db.rollback()
            if is_slot_violation(e):
                logger.warning(f"⚠️ Slot {data.date} {data.time} taken by a concurrent booking")
                raise ConflictError() from e
            raise

        logger.info(
            f"✅ Appointment {appointment.id} booked for {appointment.date} {appointment.time} "
            f"({'customer ' + str(user.id) if user else 'anonymous'})"
        )
        self.notifications.notify(appointment, NotificationKind.APPOINTMENT_RECEIVED)
        return appointment

    def update_appointment(self, appointment_id: int, data: AppointmentUpdate, user: User) -> Appointment:
        appointment = self._get_or_404(appointment_id)
        self._authorize_customer_or_staff(appointment, user)
        ensure_can_apply(appointment.status, AppointmentEvent.UPDATE)
        self._ensure_customer_may_modify(appointment, user)

        new_date = data.date if data.date is not None else appointment.date
        new_time = data.time if data.time is not None else appointment.time
        slot_changed = new_date != appointment.date or new_time != appointment.time
        if slot_changed:
            self._ensure_slot_free(new_date, new_time, exclude_id=appointment.id)

        updates = {
            "date": new_date,
            "time": new_time,
            "vehicle_type": data.vehicleType,
            "vehicle_number": data.vehicleNumber,
            "service_type": data.service,
            "instructions": data.instructions,
        }
        for key, value in updates.items():
            if value is not None:
                setattr(appointment, key, value)

        appointment = self._commit(appointment)
        logger.info(f"✏️ Appointment {appointment.id} updated by user {user.id}")
        return appointment

    def cancel_appointment(self, appointment_id: int, user: User) -> Appointment:
        appointment = self._get_or_404(appointment_id)
        self._authorize_customer_or_staff(appointment, user)
        new_status = next_status(appointment.status, AppointmentEvent.CANCEL)
        self._ensure_customer_may_modify(appointment, user)

        appointment.status = new_status
        appointment = self._commit(appointment)
        logger.info(f"🚫 Appointment {appointment.id} cancelled by user {user.id}")
        self.notifications.notify(appointment, NotificationKind.APPOINTMENT_CANCELLED)
        return appointment

    def delete_appointment(self, appointment_id: int, user: User) -> None:
        if not policies.is_admin(user):
            raise PermissionDeniedError("Only administrators can delete appointments")
        appointment = self._get_or_404(appointment_id)
        self.repo.delete(self.db, appointment)
        logger.info(f"🗑️ Appointment {appointment_id} deleted by user {user.id}")

    # ------------------------------------------------------------------
    # Staff workflow
    # ------------------------------------------------------------------

    def assign_employee(self, appointment_id: int, employee_id: int, user: User) -> Appointment:
        """Approve a booking by attaching a staff member; status becomes CONFIRMED"""
        self._require_staff(user)
        appointment = self._get_or_404(appointment_id)
        new_status = next_status(appointment.status, AppointmentEvent.ASSIGN)

        employee = self._get_assignable_user(employee_id, allowed_roles=policies.STAFF_ROLES)

        appointment.employee_id = employee.id
        appointment.status = new_status
        appointment = self._commit(appointment)

        logger.info(f"👷 Appointment {appointment.id} assigned to user {employee.id} by {user.id}")
        self.notifications.notify(appointment, NotificationKind.APPOINTMENT_CONFIRMED)
        return appointment

    def allocate_to_employee(self, appointment_id: int, employee_id: int, user: User) -> Appointment:
        """Hand a confirmed appointment to an employee and start the work"""
        if not policies.is_super_admin(user):
            raise PermissionDeniedError("Only super administrators can allocate appointments")
        appointment = self._get_or_404(appointment_id)
        new_status = next_status(appointment.status, AppointmentEvent.ALLOCATE)

        employee = self._get_assignable_user(employee_id, allowed_roles={Role.EMPLOYEE})

        appointment.employee_id = employee.id
        appointment.status = new_status
        appointment = self._commit(appointment)
        logger.info(f"🚗 Appointment {appointment.id} allocated to employee {employee.id}")

        self._open_chat(appointment)
        self.notifications.notify(appointment, NotificationKind.APPOINTMENT_ALLOCATED)
        return appointment

    def change_status(
        self, appointment_id: int, status: AppointmentStatus, notes: Optional[str], user: User
    ) -> Appointment:
        self._require_staff(user)
        appointment = self._get_or_404(appointment_id)
        new_status = next_status(appointment.status, AppointmentEvent.CHANGE_STATUS, requested=status)

        if new_status in (AppointmentStatus.IN_PROGRESS, AppointmentStatus.COMPLETED) and (
            appointment.employee_id is None
        ):
            raise ValidationError(
                f"An employee must be assigned before moving to {new_status.value}"
            )

        previous = appointment.status
        appointment.status = new_status
        if new_status == AppointmentStatus.COMPLETED:
            appointment.progress = 100
        appointment = self._commit(appointment)

        logger.info(
            f"🔄 Appointment {appointment.id} status {previous.value} → {new_status.value} by {user.id}"
        )
        self.notifications.notify(appointment, NotificationKind.STATUS_CHANGED, note=notes)
        return appointment

    def update_progress(self, appointment_id: int, progress: int, user: User) -> Appointment:
        if progress is None or progress < 0 or progress > 100:
            raise ValidationError("Progress must be between 0 and 100")

        appointment = self._get_or_404(appointment_id)
        if not policies.can_update_progress(appointment, user):
            raise PermissionDeniedError("Only the assigned employee can update progress")
        if appointment.employee_id is None:
            raise ValidationError("Progress can only be tracked once an employee is assigned")

        new_status = status_for_progress(appointment.status, progress)
        completed = new_status == AppointmentStatus.COMPLETED

        appointment.progress = progress
        appointment.status = new_status
        appointment = self._commit(appointment)

        logger.info(f"📈 Appointment {appointment.id} progress set to {progress}% by {user.id}")
        if completed:
            self.notifications.notify(appointment, NotificationKind.APPOINTMENT_COMPLETED)
        return appointment

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_staff(self, user: User) -> None:
        if not policies.is_staff(user):
            raise PermissionDeniedError("Staff access required")

    def _authorize_customer_or_staff(self, appointment: Appointment, user: User) -> None:
        if not policies.is_owner_or_staff(appointment, user):
            raise PermissionDeniedError("You do not have access to this appointment")

    def _ensure_customer_may_modify(self, appointment: Appointment, user: User) -> None:
        """Non-staff owners may only act while the booking is still pending"""
        if policies.is_staff(user):
            return
        if not policies.can_modify_as_customer(appointment, user):
            raise PermissionDeniedError(
                "Appointments can only be changed by the customer while pending"
            )

    def _ensure_slot_free(self, slot_date, slot_time, exclude_id: Optional[int] = None) -> None:
        if self.repo.find_conflicting(self.db, slot_date, slot_time, exclude_id=exclude_id):
            raise ConflictError()

    def _get_assignable_user(self, user_id: int, allowed_roles) -> User:
        employee = self.users.get_user_by_id(self.db, user_id)
        if not employee:
            raise NotFoundError(f"Employee not found with id: {user_id}")
        if employee.role not in allowed_roles:
            raise ValidationError(
                f"User {user_id} has role {employee.role.value} and cannot be given appointments"
            )
        if not employee.enabled:
            raise ValidationError(f"Employee {user_id} is disabled")
        return employee

    def _commit(self, appointment: Appointment) -> Appointment:
        try:
            return self.repo.save(self.db, appointment)
        except IntegrityError as e:
            self.db.rollback()
            if is_slot_violation(e):
                raise ConflictError() from e
            raise

    def _open_chat(self, appointment: Appointment) -> None:
        """Make sure the customer can message the allocated employee"""
        if appointment.customer_id is None:
            return
        from ..chat.service import ChatService

        try:
            ChatService(self.db).create_or_get_chat(appointment.customer_id, appointment.employee_id)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Could not open chat for appointment {appointment.id}: {e}")
