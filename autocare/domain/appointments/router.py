"""Appointment routers - Booking, staff workflow and employee progress endpoints"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user, get_optional_user
from ...database import get_db
from ...models import AppointmentStatus, User
from ...services.notification_service import NotificationQueue, get_notification_queue
from .schemas import (
    AllocationRequest,
    AppointmentCreate,
    AppointmentPage,
    AppointmentResponse,
    AppointmentUpdate,
    ChangeStatusRequest,
    UpdateProgressRequest,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])
employee_router = APIRouter(prefix="/employee/appointments", tags=["Employee"])


def get_appointment_service(
    db: Session = Depends(get_db),
    notifications: NotificationQueue = Depends(get_notification_queue),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, notifications)


def _respond(appointments) -> list[AppointmentResponse]:
    return [AppointmentResponse.from_model(a) for a in appointments]


# ============================================================================
# BOOKING
# ============================================================================


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment; works with or without a bearer token"""
    return AppointmentResponse.from_model(service.create_appointment(data, current_user))


@router.get("", response_model=AppointmentPage)
async def list_appointments(
    status: Optional[AppointmentStatus] = Query(None),
    page: int = Query(0),
    size: int = Query(10),
    sortBy: str = Query("date"),
    sortDir: str = Query("desc"),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return service.list_appointments(current_user, status, page, size, sortBy, sortDir)


@router.get("/my", response_model=list[AppointmentResponse])
async def my_appointments(
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return _respond(service.get_my_appointments(current_user))


@router.get("/status/{status}", response_model=list[AppointmentResponse])
async def appointments_by_status(
    status: AppointmentStatus,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return _respond(service.get_appointments_by_status(status, current_user))


@router.get("/today", response_model=list[AppointmentResponse])
async def todays_appointments(
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return _respond(service.get_todays_appointments(current_user))


@router.get("/date-range", response_model=list[AppointmentResponse])
async def appointments_by_date_range(
    startDate: date = Query(...),
    endDate: date = Query(...),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return _respond(service.get_appointments_by_date_range(startDate, endDate, current_user))


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_model(service.get_appointment(appointment_id, current_user))


@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_model(
        service.update_appointment(appointment_id, data, current_user)
    )


@router.patch("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_model(service.cancel_appointment(appointment_id, current_user))


@router.delete("/{appointment_id}", status_code=204)
async def delete_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    service.delete_appointment(appointment_id, current_user)
    return Response(status_code=204)


# ============================================================================
# STAFF WORKFLOW
# ============================================================================


@router.put("/{appointment_id}/allocate", response_model=AppointmentResponse)
async def allocate_appointment(
    appointment_id: int,
    data: AllocationRequest,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_model(
        service.allocate_to_employee(appointment_id, data.employeeId, current_user)
    )


@router.patch("/{appointment_id}/assign/{employee_id}", response_model=AppointmentResponse)
async def assign_employee(
    appointment_id: int,
    employee_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_model(
        service.assign_employee(appointment_id, employee_id, current_user)
    )


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def change_status(
    appointment_id: int,
    data: ChangeStatusRequest,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_model(
        service.change_status(appointment_id, data.status, data.notes, current_user)
    )


# ============================================================================
# EMPLOYEE
# ============================================================================


@employee_router.get("/{employee_id}", response_model=list[AppointmentResponse])
async def employee_appointments(
    employee_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return _respond(service.get_employee_appointments(employee_id, current_user))


@employee_router.patch("/{appointment_id}/progress", response_model=AppointmentResponse)
async def update_progress(
    appointment_id: int,
    data: UpdateProgressRequest,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_model(
        service.update_progress(appointment_id, data.progress, current_user)
    )
