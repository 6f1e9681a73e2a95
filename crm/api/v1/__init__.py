from fastapi import APIRouter
from .patient.patient_routes import router as patient_router
from .patient.assessment_routes import router as assessment_router
from .contract.contract_routes import router as contract_router
from .booking.booking_routes import router as booking_router
from .billing.treatment_plan_routes import router as treatment_plan_router
from .billing.transaction_routes import router as transaction_router
from .dashboard.dashboard import router as dashboard_router

router = APIRouter()


router.include_router(patient_router)
router.include_router(assessment_router)
router.include_router(contract_router)
router.include_router(booking_router)
router.include_router(treatment_plan_router)
router.include_router(transaction_router)
router.include_router(dashboard_router)
