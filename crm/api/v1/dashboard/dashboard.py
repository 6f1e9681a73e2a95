import traceback
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.api.dependencies import get_db
from crm.schemas.dashboard_schemas import DashboardOverview
from crm.services.dashboard_service import DashboardService
from crm.core.utils import logger


router = APIRouter(prefix="/dashboard", tags=["dashboard"])


# ============= Dashboard Overview =============
@router.get(
    "/overview",
    response_model=DashboardOverview,
)
async def get_dashboard_overview(
    db: AsyncSession = Depends(get_db),
):
    """
    Get dashboard overview statistics.

    Returns key metrics including:
    - Patient counts (total, this month, assessments, contracts)
    - Bookings (total, upcoming)
    - Revenue and outstanding balance
    - Treatment plans paid in full or pending payment
    """
    service = DashboardService(db)

    try:
        overview = await service.get_overview()

        logger.log_info(
            {
                "event": "dashboard_overview_accessed",
                "total_patients": overview.patients.total,
            }
        )

        return overview

    except SQLAlchemyError as e:
        logger.log_warning({"event": "dashboard_overview_failed", "error": str(e)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    except Exception as e:
        logger.log_error(
            {
                "event": "dashboard_overview_error",
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve dashboard statistics",
        )
