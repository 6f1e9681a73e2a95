from decimal import Decimal
from pydantic import BaseModel, Field


class PatientStats(BaseModel):
    total: int = Field(default=0, description="Registered patients")
    registered_this_month: int = 0
    assessments_completed: int = 0
    contracts_signed: int = 0


class BookingStats(BaseModel):
    total: int = 0
    upcoming: int = Field(default=0, description="Bookings dated today or later")


class BillingStats(BaseModel):
    treatment_plans: int = 0
    total_revenue: Decimal = Decimal("0.00")
    revenue_this_month: Decimal = Decimal("0.00")
    outstanding_balance: Decimal = Decimal("0.00")
    plans_paid_in_full: int = 0
    plans_pending_payment: int = 0


class DashboardOverview(BaseModel):
    """Counts and sums shown on the clinic dashboard."""

    patients: PatientStats
    bookings: BookingStats
    billing: BillingStats
