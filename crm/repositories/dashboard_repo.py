from datetime import date
from decimal import Decimal
from typing import Any, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select, case

from crm.core.utils import money
from crm.models.patient_model import Patient, MedicalIntake
from crm.models.contract_model import Booking, Contract
from crm.models.billing_model import TreatmentPlan, Transaction


class DashboardRepository:
    """Repository for dashboard analytics queries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ============= Overview Statistics =============
    async def get_overview_stats(self) -> Dict[str, Any]:
        """Get dashboard overview statistics."""

        today = date.today()
        current_month_start = today.replace(day=1)

        # Patients
        patient_result = await self.db.execute(
            select(
                func.count(Patient.id).label("total"),
                func.sum(
                    case((func.date(Patient.created_at) >= current_month_start, 1), else_=0)
                ).label("this_month"),
            )
        )
        patient_stats = patient_result.first()

        assessments = (
            await self.db.execute(select(func.count(MedicalIntake.id)))
        ).scalar() or 0
        contracts = (await self.db.execute(select(func.count(Contract.id)))).scalar() or 0

        # Bookings
        booking_result = await self.db.execute(
            select(
                func.count(Booking.id).label("total"),
                func.sum(case((Booking.date >= today, 1), else_=0)).label("upcoming"),
            )
        )
        booking_stats = booking_result.first()

        # Revenue
        revenue_result = await self.db.execute(
            select(
                func.coalesce(func.sum(Transaction.amount), 0).label("total"),
                func.coalesce(
                    func.sum(
                        case(
                            (Transaction.date >= current_month_start, Transaction.amount),
                            else_=0,
                        )
                    ),
                    0,
                ).label("this_month"),
            )
        )
        revenue_stats = revenue_result.first()

        # Plans against what each patient has paid
        paid_subquery = (
            select(
                Transaction.patient_id.label("patient_id"),
                func.sum(Transaction.amount).label("paid"),
            )
            .group_by(Transaction.patient_id)
            .subquery()
        )
        plan_result = await self.db.execute(
            select(
                TreatmentPlan.total_to_pay,
                func.coalesce(paid_subquery.c.paid, 0),
            ).outerjoin(paid_subquery, paid_subquery.c.patient_id == TreatmentPlan.patient_id)
        )

        plans = 0
        paid_in_full = 0
        outstanding = Decimal("0.00")
        for total_to_pay, paid in plan_result.all():
            plans += 1
            total_to_pay, paid = money(total_to_pay), money(paid)
            if paid >= total_to_pay:
                paid_in_full += 1
            else:
                outstanding += total_to_pay - paid

        return {
            "total_patients": patient_stats.total or 0,
            "patients_this_month": patient_stats.this_month or 0,
            "assessments_completed": assessments,
            "contracts_signed": contracts,
            "total_bookings": booking_stats.total or 0,
            "upcoming_bookings": booking_stats.upcoming or 0,
            "treatment_plans": plans,
            "total_revenue": money(revenue_stats.total),
            "revenue_this_month": money(revenue_stats.this_month),
            "outstanding_balance": money(outstanding),
            "plans_paid_in_full": paid_in_full,
            "plans_pending_payment": plans - paid_in_full,
        }
