from sqlalchemy.ext.asyncio import AsyncSession

from crm.repositories.dashboard_repo import DashboardRepository
from crm.schemas.dashboard_schemas import (
    BillingStats,
    BookingStats,
    DashboardOverview,
    PatientStats,
)


class DashboardService:
    """Service layer for dashboard analytics."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = DashboardRepository(self.db)

    async def get_overview(self) -> DashboardOverview:
        stats = await self.repo.get_overview_stats()

        return DashboardOverview(
            patients=PatientStats(
                total=stats["total_patients"],
                registered_this_month=stats["patients_this_month"],
                assessments_completed=stats["assessments_completed"],
                contracts_signed=stats["contracts_signed"],
            ),
            bookings=BookingStats(
                total=stats["total_bookings"],
                upcoming=stats["upcoming_bookings"],
            ),
            billing=BillingStats(
                treatment_plans=stats["treatment_plans"],
                total_revenue=stats["total_revenue"],
                revenue_this_month=stats["revenue_this_month"],
                outstanding_balance=stats["outstanding_balance"],
                plans_paid_in_full=stats["plans_paid_in_full"],
                plans_pending_payment=stats["plans_pending_payment"],
            ),
        )
