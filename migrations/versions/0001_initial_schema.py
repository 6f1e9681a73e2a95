"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(with_updated_at: bool = True):
    columns = [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        )
    ]
    if with_updated_at:
        columns.append(
            sa.Column(
                "updated_at",
                sa.TIMESTAMP(timezone=True),
                server_default=sa.func.now(),
                nullable=False,
            )
        )
    return columns


def _patient_fk():
    return sa.Column(
        "patient_id",
        sa.Uuid(),
        sa.ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "patients",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("dob", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(30), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_patients_id", "patients", ["id"])
    op.create_index("ix_patients_first_name", "patients", ["first_name"])
    op.create_index("ix_patients_last_name", "patients", ["last_name"])
    op.create_index("ix_patients_phone", "patients", ["phone"])
    op.create_index("ix_patients_email", "patients", ["email"], unique=True)
    op.create_index("ix_patients_created_at", "patients", ["created_at"])

    op.create_table(
        "medical_intakes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _patient_fk(),
        sa.Column(
            "data",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index(
        "ix_medical_intakes_patient_id", "medical_intakes", ["patient_id"], unique=True
    )

    op.create_table(
        "contracts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _patient_fk(),
        sa.Column("signature_url", sa.Text(), nullable=False),
        sa.Column(
            "signed_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_contracts_patient_id", "contracts", ["patient_id"], unique=True)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _patient_fk(),
        sa.Column(
            "contract_id",
            sa.Uuid(),
            sa.ForeignKey("contracts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("service_type", sa.String(150), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time_slot", sa.String(5), nullable=False),
        sa.Column("status", sa.String(30), nullable=False),
        *_timestamps(with_updated_at=False),
        sa.UniqueConstraint("date", "time_slot", name="uq_bookings_date_time_slot"),
    )
    op.create_index("ix_bookings_patient_id", "bookings", ["patient_id"])
    op.create_index("ix_bookings_contract_id", "bookings", ["contract_id"])
    op.create_index("ix_bookings_date", "bookings", ["date"])

    op.create_table(
        "treatment_plans",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _patient_fk(),
        sa.Column("service_id", sa.String(50), nullable=False),
        sa.Column("service_name", sa.String(150), nullable=False),
        sa.Column("base_cost", sa.Numeric(10, 2), nullable=False),
        sa.Column("discount", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_to_pay", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(30), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_treatment_plans_patient_id", "treatment_plans", ["patient_id"], unique=True
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _patient_fk(),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("proof_url", sa.Text(), nullable=True),
        sa.Column("proof_name", sa.String(255), nullable=True),
        sa.Column("receipt_number", sa.String(40), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        *_timestamps(with_updated_at=False),
    )
    op.create_index("ix_transactions_patient_id", "transactions", ["patient_id"])
    op.create_index(
        "ix_transactions_receipt_number", "transactions", ["receipt_number"], unique=True
    )
    op.create_index("ix_transactions_date", "transactions", ["date"])


def downgrade() -> None:
    op.drop_table("transactions")
    op.drop_table("treatment_plans")
    op.drop_table("bookings")
    op.drop_table("contracts")
    op.drop_table("medical_intakes")
    op.drop_table("patients")
