"""Receipt numbering and printable receipt rendering."""

import secrets
from datetime import date
from typing import Optional

from crm.config.config import settings
from crm.core.templates import render_template
from crm.schemas.billing_schemas import ReceiptSchema


def generate_receipt_number(on: Optional[date] = None, prefix: Optional[str] = None) -> str:
    """
    Build a receipt number such as ``CS-RC-20240215-4F9A1C``.

    The random suffix makes collisions unlikely; the unique column on
    ``transactions.receipt_number`` catches the rest.
    """
    on = on or date.today()
    prefix = prefix or settings.RECEIPT_PREFIX
    return f"{prefix}-{on:%Y%m%d}-{secrets.token_hex(3).upper()}"


def render_receipt_html(receipt: ReceiptSchema) -> str:
    return render_template(
        "receipt.html",
        {
            "receipt": receipt,
            "clinic_email": settings.CLINIC_EMAIL,
            "issued_on": receipt.date.strftime("%d/%m/%Y"),
        },
    )
