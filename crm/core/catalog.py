"""
Clinic reference data.

Static catalogs used to validate requests and to let clients render the
treatment-plan picker and the medical questionnaire.
"""

from decimal import Decimal
from typing import Dict, List, Optional


# ============= Service Catalog =============
SERVICES: List[Dict] = [
    {
        "id": "fue",
        "name": "FUE Hair Transplant",
        "default_price": Decimal("2500"),
        "included_items": [
            "Medical Report",
            "Surgery",
            "Post-op Meds",
            "1 Year Follow-up",
            "Hair Wash Set",
        ],
    },
    {
        "id": "prp",
        "name": "PRP Therapy",
        "default_price": Decimal("800"),
        "included_items": ["Consultation", "PRP Session", "Post-treatment Care Kit"],
    },
    {
        "id": "micro",
        "name": "Scalp Micropigmentation",
        "default_price": Decimal("1800"),
        "included_items": ["Design Consultation", "Full Session", "Touch-up Session"],
    },
    {
        "id": "botox",
        "name": "Anti-Wrinkle Treatment",
        "default_price": Decimal("300"),
        "included_items": ["Consultation", "Treatment", "2-week Review"],
    },
]


def get_service(service_id: str) -> Optional[Dict]:
    for service in SERVICES:
        if service["id"] == service_id:
            return service
    return None


# ============= Medical Questionnaire =============
QUESTIONNAIRE: List[Dict] = [
    {
        "section": "General Information",
        "fields": [
            {"key": "gpName", "label": "GP Name / Surgery"},
            {"key": "occupation", "label": "Occupation"},
        ],
        "questions": [],
    },
    {
        "section": "Dermatological",
        "fields": [],
        "questions": [
            {"key": "psoriasis", "label": "Do you suffer from Psoriasis or Eczema on the scalp?"},
            {"key": "keloid", "label": "Do you have a history of Keloid scarring?"},
            {"key": "infection", "label": "Do you have an active scalp infection or folliculitis?"},
        ],
    },
    {
        "section": "Cardiovascular",
        "fields": [],
        "questions": [
            {"key": "hypertension", "label": "Do you have high blood pressure?"},
            {"key": "bloodThinners", "label": "Are you taking any blood thinners (e.g., Aspirin, Warfarin)?"},
            {"key": "pacemaker", "label": "Do you have a pacemaker?"},
        ],
    },
    {
        "section": "General Health",
        "fields": [],
        "questions": [
            {"key": "diabetes", "label": "Do you have Diabetes (Type 1 or 2)?"},
            {"key": "hivHepatitis", "label": "Have you tested positive for Hepatitis B/C or HIV?"},
            {"key": "anesthesiaAllergy", "label": "Do you have any allergies to local anesthesia (Lidocaine)?"},
        ],
    },
    {
        "section": "Lifestyle",
        "fields": [],
        "questions": [
            {"key": "smoking", "label": "Do you smoke?"},
            {"key": "alcohol", "label": "Do you drink alcohol?"},
        ],
    },
]

QUESTION_KEYS = [
    question["key"] for section in QUESTIONNAIRE for question in section["questions"]
]
