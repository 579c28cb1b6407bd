"""Role-based authorization checks for appointment operations.

All checks take the acting user explicitly; a ``None`` user is an anonymous
caller and is never allowed anything beyond booking.
"""

from typing import Optional

from ...models import Appointment, AppointmentStatus, Role, User

STAFF_ROLES = frozenset({Role.EMPLOYEE, Role.ADMIN, Role.SUPER_ADMIN})
ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


def has_role(user: Optional[User], roles) -> bool:
    return user is not None and user.role in roles


def is_staff(user: Optional[User]) -> bool:
    return has_role(user, STAFF_ROLES)


def is_admin(user: Optional[User]) -> bool:
    return has_role(user, ADMIN_ROLES)


def is_super_admin(user: Optional[User]) -> bool:
    return has_role(user, {Role.SUPER_ADMIN})


def is_owner(appointment: Appointment, user: Optional[User]) -> bool:
    return (
        user is not None
        and appointment.customer_id is not None
        and appointment.customer_id == user.id
    )


def is_owner_or_staff(appointment: Appointment, user: Optional[User]) -> bool:
    return is_owner(appointment, user) or is_staff(user)


def can_modify_as_customer(appointment: Appointment, user: Optional[User]) -> bool:
    """Owners may only touch their booking until staff picks it up"""
    return is_owner(appointment, user) and appointment.status == AppointmentStatus.PENDING


def can_update_progress(appointment: Appointment, user: Optional[User]) -> bool:
    if is_admin(user):
        return True
    return (
        has_role(user, {Role.EMPLOYEE})
        and appointment.employee_id is not None
        and appointment.employee_id == user.id
    )
