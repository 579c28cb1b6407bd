from datetime import date, time

import pytest
from conftest import auth_headers, notification_kinds

from autocare.domain.appointments.repository import AppointmentRepository
from autocare.domain.appointments.schemas import AppointmentCreate
from autocare.domain.appointments.service import AppointmentService
from autocare.models import Appointment, AppointmentStatus, Chat, Role
from autocare.shared.errors import ConflictError

BOOKING = {
    "date": "2025-06-01",
    "time": "10:00:00",
    "vehicleType": "Sedan",
    "vehicleNumber": "ABC-123",
    "service": "Oil Change",
    "instructions": "Please check the brakes too",
}


def book(client, user=None, **overrides):
    headers = auth_headers(user) if user else {}
    return client.post("/appointments", json={**BOOKING, **overrides}, headers=headers)


# ============================================================================
# END TO END SCENARIOS
# ============================================================================


def test_full_lifecycle_from_booking_to_deletion(
    client, db, notifications, customer, employee, admin, super_admin
):
    response = book(client, customer)
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "PENDING"
    assert body["progress"] == 0
    assert body["customer"]["id"] == customer.id
    appointment_id = body["id"]

    response = client.patch(
        f"/appointments/{appointment_id}/assign/{employee.id}", headers=auth_headers(admin)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "CONFIRMED"
    assert response.json()["employee"]["id"] == employee.id

    response = client.put(
        f"/appointments/{appointment_id}/allocate",
        json={"employeeId": employee.id},
        headers=auth_headers(super_admin),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "IN_PROGRESS"

    response = client.patch(
        f"/employee/appointments/{appointment_id}/progress",
        json={"progress": 100},
        headers=auth_headers(employee),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "COMPLETED"
    assert response.json()["progress"] == 100

    assert client.delete(f"/appointments/{appointment_id}", headers=auth_headers(admin)).status_code == 204
    assert client.delete(f"/appointments/{appointment_id}", headers=auth_headers(admin)).status_code == 404

    assert notification_kinds(notifications) == [
        "APPOINTMENT_RECEIVED",
        "APPOINTMENT_CONFIRMED",
        "APPOINTMENT_ALLOCATED",
        "APPOINTMENT_COMPLETED",
    ]
    # Allocation opens a chat between the customer and the employee
    assert db.query(Chat).filter_by(customer_id=customer.id, employee_id=employee.id).count() == 1


def test_cancelled_slot_can_be_booked_again(client, customer, other_customer):
    first = book(client, customer)
    assert first.status_code == 201

    taken = book(client, other_customer)
    assert taken.status_code == 400
    assert taken.json()["detail"] == "The selected time slot is not available"

    cancel = client.patch(f"/appointments/{first.json()['id']}/cancel", headers=auth_headers(customer))
    assert cancel.status_code == 200
    assert cancel.json()["status"] == "CANCELLED"

    retry = book(client, other_customer)
    assert retry.status_code == 201


# ============================================================================
# BOOKING
# ============================================================================


def test_anonymous_booking_keeps_contact_details(client):
    response = book(
        client,
        customerName="Walk In",
        customerEmail="Walk.In@Example.com",
        customerPhone="+1 555 000 1111",
    )
    assert response.status_code == 201
    customer = response.json()["customer"]
    assert customer["id"] is None
    assert customer["fullName"] == "Walk In"
    assert customer["email"] == "walk.in@example.com"


def test_anonymous_booking_without_name_uses_default(client):
    response = book(client)
    assert response.status_code == 201
    assert response.json()["customer"]["fullName"] == "Valued Customer"


def test_booking_requires_service(client, customer):
    response = book(client, customer, service="   ")
    assert response.status_code == 400


def test_booking_rejects_bad_email(client):
    response = book(client, customerEmail="not-an-email")
    assert response.status_code == 400


def test_unique_index_rejects_duplicate_when_precheck_is_skipped(db, customer, other_customer, monkeypatch):
    monkeypatch.setattr(AppointmentRepository, "find_conflicting", staticmethod(lambda *a, **k: None))
    service = AppointmentService(db)
    data = AppointmentCreate(date=date(2025, 6, 1), time=time(10, 0), service="Oil Change")

    service.create_appointment(data, customer)
    with pytest.raises(ConflictError):
        service.create_appointment(data, other_customer)

    assert db.query(Appointment).count() == 1


def test_unique_index_ignores_cancelled_rows(db, make_appointment, customer):
    make_appointment(customer=customer, status=AppointmentStatus.CANCELLED)
    service = AppointmentService(db)
    data = AppointmentCreate(date=date(2025, 6, 1), time=time(10, 0), service="Tire Rotation")

    appointment = service.create_appointment(data, customer)
    assert appointment.status == AppointmentStatus.PENDING


# ============================================================================
# ACCESS CONTROL
# ============================================================================


def test_customer_cannot_read_or_cancel_someone_elses_appointment(
    client, make_appointment, customer, other_customer
):
    appointment = make_appointment(customer=customer)
    headers = auth_headers(other_customer)

    assert client.get(f"/appointments/{appointment.id}", headers=headers).status_code == 403
    assert client.patch(f"/appointments/{appointment.id}/cancel", headers=headers).status_code == 403
    assert (
        client.put(f"/appointments/{appointment.id}", json={"service": "Wash"}, headers=headers).status_code
        == 403
    )


def test_customer_cannot_change_confirmed_booking(client, make_appointment, customer, employee):
    appointment = make_appointment(customer=customer, employee=employee, status=AppointmentStatus.CONFIRMED)
    response = client.patch(f"/appointments/{appointment.id}/cancel", headers=auth_headers(customer))
    assert response.status_code == 403


def test_missing_token_is_unauthorized(client):
    assert client.get("/appointments/my").status_code == 401


def test_invalid_token_is_unauthorized(client):
    response = client.get("/appointments/my", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 401


def test_disabled_user_token_is_rejected(client, make_user):
    disabled = make_user(Role.CUSTOMER, enabled=False)
    assert client.get("/appointments/my", headers=auth_headers(disabled)).status_code == 401


def test_only_admins_delete(client, make_appointment, customer, employee):
    appointment = make_appointment(customer=customer)
    assert client.delete(f"/appointments/{appointment.id}", headers=auth_headers(employee)).status_code == 403
    assert client.delete(f"/appointments/{appointment.id}", headers=auth_headers(customer)).status_code == 403


def test_plain_admin_and_super_admin_both_delete(client, make_appointment, customer, admin, super_admin):
    first = make_appointment(customer=customer)
    second = make_appointment(customer=customer, at=time(11, 0))
    assert client.delete(f"/appointments/{first.id}", headers=auth_headers(admin)).status_code == 204
    assert client.delete(f"/appointments/{second.id}", headers=auth_headers(super_admin)).status_code == 204


# ============================================================================
# STATE RULES
# ============================================================================


def test_cancelling_terminal_appointment_is_state_error(client, make_appointment, customer, admin):
    appointment = make_appointment(customer=customer, status=AppointmentStatus.COMPLETED)
    response = client.patch(f"/appointments/{appointment.id}/cancel", headers=auth_headers(admin))
    assert response.status_code == 400
    assert "COMPLETED" in response.json()["detail"]


@pytest.mark.parametrize(
    "status, target_role, enabled",
    [
        (AppointmentStatus.PENDING, Role.EMPLOYEE, True),
        (AppointmentStatus.CONFIRMED, Role.ADMIN, True),
        (AppointmentStatus.CONFIRMED, Role.EMPLOYEE, False),
    ],
)
def test_failed_allocation_leaves_appointment_unchanged(
    client, db, make_appointment, make_user, customer, super_admin, status, target_role, enabled
):
    target = make_user(target_role, enabled=enabled)
    appointment = make_appointment(customer=customer, status=status)

    response = client.put(
        f"/appointments/{appointment.id}/allocate",
        json={"employeeId": target.id},
        headers=auth_headers(super_admin),
    )
    assert response.status_code == 400

    db.expire_all()
    reloaded = db.get(Appointment, appointment.id)
    assert reloaded.status == status
    assert reloaded.employee_id is None


@pytest.mark.parametrize(
    "target_role, enabled, expected",
    [
        (Role.CUSTOMER, True, 400),
        (Role.EMPLOYEE, False, 400),
        (None, True, 404),
    ],
)
def test_failed_assignment_leaves_appointment_unchanged(
    client, db, notifications, make_appointment, make_user, customer, admin, target_role, enabled, expected
):
    target_id = make_user(target_role, enabled=enabled).id if target_role else 9999
    appointment = make_appointment(customer=customer)

    response = client.patch(
        f"/appointments/{appointment.id}/assign/{target_id}", headers=auth_headers(admin)
    )
    assert response.status_code == expected

    db.expire_all()
    reloaded = db.get(Appointment, appointment.id)
    assert reloaded.status == AppointmentStatus.PENDING
    assert reloaded.employee_id is None
    assert notifications.jobs == []


def test_allocation_requires_super_admin(client, make_appointment, customer, employee, admin):
    appointment = make_appointment(customer=customer, status=AppointmentStatus.CONFIRMED)
    response = client.put(
        f"/appointments/{appointment.id}/allocate",
        json={"employeeId": employee.id},
        headers=auth_headers(admin),
    )
    assert response.status_code == 403


def test_allocating_to_unknown_employee_is_not_found(client, make_appointment, customer, super_admin):
    appointment = make_appointment(customer=customer, status=AppointmentStatus.CONFIRMED)
    response = client.put(
        f"/appointments/{appointment.id}/allocate",
        json={"employeeId": 9999},
        headers=auth_headers(super_admin),
    )
    assert response.status_code == 404


def test_progress_below_100_keeps_status(client, notifications, make_appointment, customer, employee):
    appointment = make_appointment(customer=customer, employee=employee, status=AppointmentStatus.IN_PROGRESS)
    response = client.patch(
        f"/employee/appointments/{appointment.id}/progress",
        json={"progress": 99},
        headers=auth_headers(employee),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "IN_PROGRESS"
    assert response.json()["progress"] == 99
    assert notification_kinds(notifications) == []


@pytest.mark.parametrize("progress", [-1, 101])
def test_progress_out_of_range(client, make_appointment, customer, employee, progress):
    appointment = make_appointment(customer=customer, employee=employee, status=AppointmentStatus.IN_PROGRESS)
    response = client.patch(
        f"/employee/appointments/{appointment.id}/progress",
        json={"progress": progress},
        headers=auth_headers(employee),
    )
    assert response.status_code == 400


def test_progress_by_other_employee_is_forbidden(client, make_appointment, make_user, customer, employee):
    appointment = make_appointment(customer=customer, employee=employee, status=AppointmentStatus.IN_PROGRESS)
    intruder = make_user(Role.EMPLOYEE)
    response = client.patch(
        f"/employee/appointments/{appointment.id}/progress",
        json={"progress": 50},
        headers=auth_headers(intruder),
    )
    assert response.status_code == 403


def test_change_status_to_completed_sets_full_progress(
    client, notifications, make_appointment, customer, employee, admin
):
    appointment = make_appointment(customer=customer, employee=employee, status=AppointmentStatus.IN_PROGRESS)
    response = client.patch(
        f"/appointments/{appointment.id}/status",
        json={"status": "COMPLETED", "notes": "All done"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "COMPLETED"
    assert response.json()["progress"] == 100
    assert notifications.jobs[-1].args == (appointment.id, "STATUS_CHANGED", "All done")


def test_change_status_to_in_progress_needs_employee(client, make_appointment, customer, admin):
    appointment = make_appointment(customer=customer, status=AppointmentStatus.PENDING)
    response = client.patch(
        f"/appointments/{appointment.id}/status",
        json={"status": "IN_PROGRESS"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400


def test_reschedule_into_taken_slot_conflicts(client, make_appointment, customer, admin):
    make_appointment(customer=customer, at=time(9, 0))
    mine = make_appointment(customer=customer, at=time(11, 0))
    response = client.put(
        f"/appointments/{mine.id}", json={"time": "09:00:00"}, headers=auth_headers(customer)
    )
    assert response.status_code == 400

    response = client.put(
        f"/appointments/{mine.id}", json={"time": "12:00:00", "service": "Brake Check"},
        headers=auth_headers(customer),
    )
    assert response.status_code == 200
    assert response.json()["time"] == "12:00:00"
    assert response.json()["service"] == "Brake Check"


# ============================================================================
# QUERIES
# ============================================================================


def test_list_appointments_paging_and_sorting(client, make_appointment, customer, admin):
    for hour in (8, 9, 10, 11, 12):
        make_appointment(customer=customer, at=time(hour, 0))

    response = client.get(
        "/appointments",
        params={"page": 1, "size": 2, "sortBy": "time", "sortDir": "asc"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    page = response.json()
    assert page["totalElements"] == 5
    assert page["totalPages"] == 3
    assert [a["time"] for a in page["content"]] == ["10:00:00", "11:00:00"]


def test_list_appointments_rejects_unknown_sort_key(client, admin):
    response = client.get("/appointments", params={"sortBy": "password"}, headers=auth_headers(admin))
    assert response.status_code == 400


def test_list_appointments_is_staff_only(client, customer):
    assert client.get("/appointments", headers=auth_headers(customer)).status_code == 403


def test_my_appointments_only_returns_own(client, make_appointment, customer, other_customer):
    make_appointment(customer=customer, at=time(9, 0))
    make_appointment(customer=other_customer, at=time(10, 0))

    response = client.get("/appointments/my", headers=auth_headers(customer))
    assert response.status_code == 200
    assert len(response.json()) == 1


def test_date_range_validation(client, admin):
    response = client.get(
        "/appointments/date-range",
        params={"startDate": "2025-06-10", "endDate": "2025-06-01"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 400


def test_date_range_and_status_filters(client, make_appointment, customer, admin):
    make_appointment(customer=customer, on=date(2025, 6, 1))
    make_appointment(customer=customer, on=date(2025, 6, 5), status=AppointmentStatus.CONFIRMED)
    make_appointment(customer=customer, on=date(2025, 7, 1))

    response = client.get(
        "/appointments/date-range",
        params={"startDate": "2025-06-01", "endDate": "2025-06-30"},
        headers=auth_headers(admin),
    )
    assert len(response.json()) == 2

    response = client.get("/appointments/status/CONFIRMED", headers=auth_headers(admin))
    assert [a["date"] for a in response.json()] == ["2025-06-05"]


def test_employee_sees_only_own_assignments(client, make_appointment, make_user, customer, employee):
    make_appointment(customer=customer, employee=employee, status=AppointmentStatus.CONFIRMED)
    other = make_user(Role.EMPLOYEE)

    response = client.get(f"/employee/appointments/{employee.id}", headers=auth_headers(employee))
    assert response.status_code == 200
    assert len(response.json()) == 1

    response = client.get(f"/employee/appointments/{employee.id}", headers=auth_headers(other))
    assert response.status_code == 403
