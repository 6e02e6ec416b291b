"""Voyage reporting tables.

Revision ID: 001_reporting
Revises:
Create Date: 2026-10-17

Adds vessels, voyages, reports, bunker_tracking and vessel_baselines.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001_reporting"
down_revision = None
branch_labels = None
depends_on = None

SUBSTANCES = ("lsifo", "lsmgo", "cyl_oil", "me_oil", "ae_oil", "vol_oil")


def upgrade() -> None:
    op.create_table(
        "vessels",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("flag", sa.String(100), nullable=True),
        sa.Column("current_captain", sa.String(255), nullable=True),
        sa.Column("bls", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_vessels_name", "vessels", ["name"])

    op.create_table(
        "voyages",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("voyage_number", sa.String(100), nullable=False, server_default=""),
        sa.Column("vessel_id", sa.Integer(), sa.ForeignKey("vessels.id"), nullable=False),
        sa.Column("departure_port", sa.String(255), nullable=False),
        sa.Column("destination_port", sa.String(255), nullable=False),
        sa.Column("cargo_status", sa.String(20), nullable=False),
        sa.Column("cargo_type", sa.String(100), nullable=True),
        sa.Column("cargo_quantity", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_distance", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("starting_report_id", sa.Integer(), nullable=True),
        sa.Column("ending_report_id", sa.Integer(), nullable=True),
    )
    op.create_index("ix_voyages_voyage_number", "voyages", ["voyage_number"])
    op.create_index("ix_voyages_vessel_id", "voyages", ["vessel_id"])
    op.create_index("ix_voyages_vessel_active", "voyages", ["vessel_id", "active"])

    op.create_table(
        "reports",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("report_type", sa.String(20), nullable=False),
        sa.Column("vessel_id", sa.Integer(), sa.ForeignKey("vessels.id"), nullable=False),
        sa.Column("voyage_id", sa.Integer(), sa.ForeignKey("voyages.id"), nullable=True),
        sa.Column("sequence_number", sa.Integer(), nullable=False),
        sa.Column("submitted_by", sa.String(255), nullable=False),
        sa.Column("submitted_at", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("reviewer", sa.String(255), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("report_date", sa.Date(), nullable=True),
        sa.Column("distance_traveled", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("distance_to_go", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("report_data", sa.JSON(), nullable=False),
    )
    op.create_index("ix_reports_report_type", "reports", ["report_type"])
    op.create_index("ix_reports_status", "reports", ["status"])
    op.create_index("ix_reports_vessel_voyage", "reports", ["vessel_id", "voyage_id"])
    op.create_index("ix_reports_voyage_sequence", "reports", ["voyage_id", "sequence_number"])

    substance_columns = []
    for suffix in ("rob", "consumed", "supplied"):
        for s in SUBSTANCES:
            substance_columns.append(
                sa.Column(f"{s}_{suffix}", sa.Float(), nullable=False, server_default=sa.text("0"))
            )

    op.create_table(
        "bunker_tracking",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("vessel_id", sa.Integer(), sa.ForeignKey("vessels.id"), nullable=False),
        sa.Column("report_id", sa.Integer(), nullable=False),
        sa.Column("report_date", sa.Date(), nullable=True),
        *substance_columns,
    )
    op.create_index("ix_bunker_tracking_vessel_report", "bunker_tracking", ["vessel_id", "report_id"])

    op.create_table(
        "vessel_baselines",
        sa.Column("vessel_id", sa.Integer(), sa.ForeignKey("vessels.id"), primary_key=True),
        sa.Column("report_id", sa.Integer(), sa.ForeignKey("reports.id"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("vessel_baselines")
    op.drop_index("ix_bunker_tracking_vessel_report", table_name="bunker_tracking")
    op.drop_table("bunker_tracking")
    op.drop_index("ix_reports_voyage_sequence", table_name="reports")
    op.drop_index("ix_reports_vessel_voyage", table_name="reports")
    op.drop_index("ix_reports_status", table_name="reports")
    op.drop_index("ix_reports_report_type", table_name="reports")
    op.drop_table("reports")
    op.drop_index("ix_voyages_vessel_active", table_name="voyages")
    op.drop_index("ix_voyages_vessel_id", table_name="voyages")
    op.drop_index("ix_voyages_voyage_number", table_name="voyages")
    op.drop_table("voyages")
    op.drop_index("ix_vessels_name", table_name="vessels")
    op.drop_table("vessels")
