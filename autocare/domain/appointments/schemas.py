"""Appointment domain schemas - Pydantic models for validation"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import Appointment, AppointmentStatus
from ...shared.validators import require_text, validate_email, validate_phone


class AppointmentCreate(BaseModel):
    """Booking request; contact fields are used when the caller is anonymous"""

    date: dt.date
    time: dt.time
    vehicleType: Optional[str] = None
    vehicleNumber: Optional[str] = None
    service: str
    instructions: Optional[str] = None
    customerName: Optional[str] = None
    customerEmail: Optional[str] = None
    customerPhone: Optional[str] = None

    @field_validator("service")
    @classmethod
    def validate_service(cls, v):
        return require_text(v, "Service")

    @field_validator("customerEmail")
    @classmethod
    def validate_customer_email(cls, v):
        return validate_email(v)

    @field_validator("customerPhone")
    @classmethod
    def validate_customer_phone(cls, v):
        return validate_phone(v)


class AppointmentUpdate(BaseModel):
    """Editable booking details; status and staff changes have their own endpoints"""

    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    vehicleType: Optional[str] = None
    vehicleNumber: Optional[str] = None
    service: Optional[str] = None
    instructions: Optional[str] = None

    @field_validator("service")
    @classmethod
    def validate_service(cls, v):
        if v is None:
            return v
        return require_text(v, "Service")


class AllocationRequest(BaseModel):
    employeeId: int


class ChangeStatusRequest(BaseModel):
    status: AppointmentStatus
    notes: Optional[str] = None


class UpdateProgressRequest(BaseModel):
    progress: int


class CustomerInfo(BaseModel):
    id: Optional[int] = None
    fullName: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class EmployeeInfo(BaseModel):
    id: int
    fullName: str
    email: str


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: int
    date: dt.date
    time: dt.time
    vehicleType: Optional[str] = None
    vehicleNumber: Optional[str] = None
    service: str
    instructions: Optional[str] = None
    status: AppointmentStatus
    progress: int
    customer: Optional[CustomerInfo] = None
    employee: Optional[EmployeeInfo] = None
    createdAt: Optional[dt.datetime] = None
    updatedAt: Optional[dt.datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, appointment: Appointment) -> "AppointmentResponse":
        customer = None
        if appointment.customer is not None:
            customer = CustomerInfo(
                id=appointment.customer.id,
                fullName=appointment.customer.full_name,
                email=appointment.customer.email,
                phone=appointment.customer.phone,
            )
        elif appointment.customer_name or appointment.customer_email:
            customer = CustomerInfo(
                fullName=appointment.customer_name,
                email=appointment.customer_email,
                phone=appointment.customer_phone,
            )

        employee = None
        if appointment.employee is not None:
            employee = EmployeeInfo(
                id=appointment.employee.id,
                fullName=appointment.employee.full_name,
                email=appointment.employee.email,
            )

        return cls(
            id=appointment.id,
            date=appointment.date,
            time=appointment.time,
            vehicleType=appointment.vehicle_type,
            vehicleNumber=appointment.vehicle_number,
            service=appointment.service_type,
            instructions=appointment.instructions,
            status=appointment.status,
            progress=appointment.progress or 0,
            customer=customer,
            employee=employee,
            createdAt=appointment.created_at,
            updatedAt=appointment.updated_at,
        )


class AppointmentPage(BaseModel):
    content: list[AppointmentResponse]
    totalElements: int
    totalPages: int
    page: int
    size: int
