from .patient_model import Patient, MedicalIntake
from .contract_model import Contract, Booking
from .billing_model import TreatmentPlan, Transaction
