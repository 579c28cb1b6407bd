from types import SimpleNamespace

import pytest

from autocare.domain.appointments import policies
from autocare.domain.appointments.state_machine import (
    AppointmentEvent,
    can_apply,
    ensure_can_apply,
    is_terminal,
    next_status,
    status_for_progress,
)
from autocare.models import AppointmentStatus, Role
from autocare.shared.errors import StateError


def user(role, user_id=1):
    return SimpleNamespace(id=user_id, role=role)


def appointment(status=AppointmentStatus.PENDING, customer_id=1, employee_id=None):
    return SimpleNamespace(status=status, customer_id=customer_id, employee_id=employee_id)


# ============================================================================
# STATE MACHINE
# ============================================================================


@pytest.mark.parametrize("status", [AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED])
def test_terminal_statuses_reject_every_event(status):
    assert is_terminal(status)
    for event in AppointmentEvent:
        assert not can_apply(status, event)


def test_assign_confirms_pending_appointment():
    assert next_status(AppointmentStatus.PENDING, AppointmentEvent.ASSIGN) == AppointmentStatus.CONFIRMED


def test_allocate_only_from_confirmed():
    assert (
        next_status(AppointmentStatus.CONFIRMED, AppointmentEvent.ALLOCATE)
        == AppointmentStatus.IN_PROGRESS
    )
    with pytest.raises(StateError) as exc:
        next_status(AppointmentStatus.PENDING, AppointmentEvent.ALLOCATE)
    assert "PENDING" in exc.value.detail


def test_cancel_allowed_while_pending_or_confirmed():
    for status in (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED):
        assert next_status(status, AppointmentEvent.CANCEL) == AppointmentStatus.CANCELLED
    with pytest.raises(StateError):
        next_status(AppointmentStatus.IN_PROGRESS, AppointmentEvent.CANCEL)


def test_cancel_terminal_names_current_status():
    with pytest.raises(StateError) as exc:
        ensure_can_apply(AppointmentStatus.COMPLETED, AppointmentEvent.CANCEL)
    assert exc.value.status_code == 400
    assert "COMPLETED" in exc.value.detail


def test_change_status_takes_requested_value():
    assert (
        next_status(
            AppointmentStatus.PENDING,
            AppointmentEvent.CHANGE_STATUS,
            requested=AppointmentStatus.CONFIRMED,
        )
        == AppointmentStatus.CONFIRMED
    )


def test_update_keeps_status():
    assert next_status(AppointmentStatus.CONFIRMED, AppointmentEvent.UPDATE) == AppointmentStatus.CONFIRMED


def test_progress_completes_only_at_100():
    assert status_for_progress(AppointmentStatus.IN_PROGRESS, 99) == AppointmentStatus.IN_PROGRESS
    assert status_for_progress(AppointmentStatus.IN_PROGRESS, 100) == AppointmentStatus.COMPLETED
    with pytest.raises(StateError):
        status_for_progress(AppointmentStatus.COMPLETED, 50)


# ============================================================================
# POLICIES
# ============================================================================


def test_staff_and_admin_role_sets():
    assert policies.is_staff(user(Role.EMPLOYEE))
    assert not policies.is_staff(user(Role.CUSTOMER))
    assert not policies.is_staff(None)
    assert policies.is_admin(user(Role.ADMIN))
    assert not policies.is_admin(user(Role.EMPLOYEE))
    assert policies.is_super_admin(user(Role.SUPER_ADMIN))
    assert not policies.is_super_admin(user(Role.ADMIN))


def test_owner_checks():
    owner = user(Role.CUSTOMER, user_id=7)
    stranger = user(Role.CUSTOMER, user_id=8)
    booking = appointment(customer_id=7)

    assert policies.is_owner(booking, owner)
    assert not policies.is_owner(booking, stranger)
    assert not policies.is_owner(appointment(customer_id=None), owner)
    assert policies.is_owner_or_staff(booking, user(Role.EMPLOYEE, user_id=99))


def test_customer_may_modify_only_while_pending():
    owner = user(Role.CUSTOMER, user_id=7)
    assert policies.can_modify_as_customer(appointment(customer_id=7), owner)
    assert not policies.can_modify_as_customer(
        appointment(status=AppointmentStatus.CONFIRMED, customer_id=7), owner
    )


def test_progress_updates_by_assigned_employee_or_admin():
    booking = appointment(status=AppointmentStatus.IN_PROGRESS, employee_id=5)
    assert policies.can_update_progress(booking, user(Role.EMPLOYEE, user_id=5))
    assert not policies.can_update_progress(booking, user(Role.EMPLOYEE, user_id=6))
    assert policies.can_update_progress(booking, user(Role.ADMIN, user_id=6))
    assert not policies.can_update_progress(booking, user(Role.CUSTOMER, user_id=5))
