"""Dashboard domain schemas"""

from datetime import date
from typing import Optional

from pydantic import BaseModel


class StatusCount(BaseModel):
    status: str
    count: int


class MonthlyTrend(BaseModel):
    month: str
    value: int


class EmployeeWorkload(BaseModel):
    employeeName: str
    taskCount: int


class UpcomingAppointment(BaseModel):
    id: int
    customerName: str
    vehicleModel: Optional[str] = None
    serviceType: str
    appointmentDate: date


class DashboardStatsResponse(BaseModel):
    totalServices: int
    completedServices: int
    inProgressServices: int
    pendingServices: int
    cancelledServices: int
    todayAppointments: int
    servicesByStatus: list[StatusCount]
    monthlyTrend: list[MonthlyTrend]
    employeeWorkload: list[EmployeeWorkload]
    upcomingAppointments: list[UpcomingAppointment]
