"""Dashboard service - Read-only statistics for staff"""

import logging
from collections import Counter
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...models import AppointmentStatus, User
from ...shared.errors import PermissionDeniedError
from ..appointments import policies
from .repository import DashboardRepository
from .schemas import (
    DashboardStatsResponse,
    EmployeeWorkload,
    MonthlyTrend,
    StatusCount,
    UpcomingAppointment,
)

logger = logging.getLogger(__name__)

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
TREND_MONTHS = 12
WORKLOAD_LIMIT = 4
UPCOMING_LIMIT = 5


def last_months(today: date, count: int = TREND_MONTHS) -> list[tuple[int, int]]:
    """(year, month) pairs for the last ``count`` months, oldest first, ending with today's"""
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))


def month_end(day: date) -> date:
    if day.month == 12:
        return date(day.year, 12, 31)
    return date(day.year, day.month + 1, 1) - timedelta(days=1)


class DashboardService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DashboardRepository()

    def get_dashboard_stats(self, user: User, today: Optional[date] = None) -> DashboardStatsResponse:
        if not policies.is_staff(user):
            raise PermissionDeniedError("Staff access required")
        today = today or date.today()

        by_status = self.repo.count_by_status(self.db)
        stats = DashboardStatsResponse(
            totalServices=sum(by_status.values()),
            completedServices=by_status.get(AppointmentStatus.COMPLETED, 0),
            inProgressServices=by_status.get(AppointmentStatus.IN_PROGRESS, 0),
            pendingServices=by_status.get(AppointmentStatus.PENDING, 0),
            cancelledServices=by_status.get(AppointmentStatus.CANCELLED, 0),
            todayAppointments=self.repo.count_on_date(self.db, today),
            servicesByStatus=[
                StatusCount(status=status.value, count=by_status[status])
                for status in AppointmentStatus
                if by_status.get(status)
            ],
            monthlyTrend=self._monthly_trend(today),
            employeeWorkload=[
                EmployeeWorkload(employeeName=name, taskCount=count)
                for name, count in self.repo.employee_workload(self.db, WORKLOAD_LIMIT)
            ],
            upcomingAppointments=[
                UpcomingAppointment(
                    id=a.id,
                    customerName=(
                        a.customer.full_name if a.customer else a.customer_name or "Unknown"
                    ),
                    vehicleModel=a.vehicle_type,
                    serviceType=a.service_type,
                    appointmentDate=a.date,
                )
                for a in self.repo.upcoming(self.db, today, UPCOMING_LIMIT)
            ],
        )
        logger.debug(f"📊 Dashboard stats computed: total={stats.totalServices}")
        return stats

    def _monthly_trend(self, today: date) -> list[MonthlyTrend]:
        months = last_months(today)
        first_year, first_month = months[0]
        start = date(first_year, first_month, 1)
        counts = Counter(
            (d.year, d.month) for d in self.repo.dates_between(self.db, start, month_end(today))
        )
        return [
            MonthlyTrend(month=MONTH_NAMES[month - 1], value=counts.get((year, month), 0))
            for year, month in months
        ]
