"""
SQLAlchemy models for the voyage reporting database.
"""

from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Text,
    JSON,
)
from sqlalchemy.orm import relationship
from datetime import datetime

from api.database import Base
from src.reporting.types import SUBSTANCES


class Vessel(Base):
    """Vessel master data, maintained out of band (see api/cli.py add-vessel)."""

    __tablename__ = "vessels"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, index=True)
    flag = Column(String(100), nullable=True)
    current_captain = Column(String(255), nullable=True)
    bls = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    voyages = relationship("Voyage", back_populates="vessel")
    reports = relationship("Report", back_populates="vessel")

    def __repr__(self):
        return f"<Vessel(name='{self.name}', bls={self.bls})>"


class Voyage(Base):
    """A leg from one departure report to the next."""

    __tablename__ = "voyages"

    id = Column(Integer, primary_key=True)
    voyage_number = Column(String(100), nullable=False, default="", index=True)
    vessel_id = Column(Integer, ForeignKey("vessels.id"), nullable=False, index=True)
    departure_port = Column(String(255), nullable=False)
    destination_port = Column(String(255), nullable=False)
    cargo_status = Column(String(20), nullable=False)
    cargo_type = Column(String(100), nullable=True)
    cargo_quantity = Column(Float, nullable=False, default=0.0)
    total_distance = Column(Float, nullable=False, default=0.0)
    active = Column(Boolean, nullable=False, default=True)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    starting_report_id = Column(Integer, nullable=True)
    ending_report_id = Column(Integer, nullable=True)

    # Relationships
    vessel = relationship("Vessel", back_populates="voyages")

    __table_args__ = (
        Index("ix_voyages_vessel_active", "vessel_id", "active"),
    )

    def __repr__(self):
        return f"<Voyage(number='{self.voyage_number}', active={self.active})>"


class Report(Base):
    """Departure, noon, arrival or berth report."""

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True)
    report_type = Column(String(20), nullable=False, index=True)
    vessel_id = Column(Integer, ForeignKey("vessels.id"), nullable=False)
    voyage_id = Column(Integer, ForeignKey("voyages.id"), nullable=True)
    sequence_number = Column(Integer, nullable=False)
    submitted_by = Column(String(255), nullable=False)
    submitted_at = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    reviewer = Column(String(255), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    report_date = Column(Date, nullable=True)
    distance_traveled = Column(Float, nullable=False, default=0.0)
    distance_to_go = Column(Float, nullable=False, default=0.0)
    report_data = Column(JSON, nullable=False, default=dict)

    # Relationships
    vessel = relationship("Vessel", back_populates="reports")

    __table_args__ = (
        Index("ix_reports_vessel_voyage", "vessel_id", "voyage_id"),
        Index("ix_reports_voyage_sequence", "voyage_id", "sequence_number"),
    )

    def __repr__(self):
        return f"<Report(id={self.id}, type={self.report_type}, status={self.status})>"


class BunkerRecord(Base):
    """ROB snapshot per report: `<substance>_rob`, `_consumed` and `_supplied` columns."""

    __tablename__ = "bunker_tracking"

    id = Column(Integer, primary_key=True)
    vessel_id = Column(Integer, ForeignKey("vessels.id"), nullable=False)
    report_id = Column(Integer, nullable=False)
    report_date = Column(Date, nullable=True)

    lsifo_rob = Column(Float, nullable=False, default=0.0)
    lsmgo_rob = Column(Float, nullable=False, default=0.0)
    cyl_oil_rob = Column(Float, nullable=False, default=0.0)
    me_oil_rob = Column(Float, nullable=False, default=0.0)
    ae_oil_rob = Column(Float, nullable=False, default=0.0)
    vol_oil_rob = Column(Float, nullable=False, default=0.0)

    lsifo_consumed = Column(Float, nullable=False, default=0.0)
    lsmgo_consumed = Column(Float, nullable=False, default=0.0)
    cyl_oil_consumed = Column(Float, nullable=False, default=0.0)
    me_oil_consumed = Column(Float, nullable=False, default=0.0)
    ae_oil_consumed = Column(Float, nullable=False, default=0.0)
    vol_oil_consumed = Column(Float, nullable=False, default=0.0)

    lsifo_supplied = Column(Float, nullable=False, default=0.0)
    lsmgo_supplied = Column(Float, nullable=False, default=0.0)
    cyl_oil_supplied = Column(Float, nullable=False, default=0.0)
    me_oil_supplied = Column(Float, nullable=False, default=0.0)
    ae_oil_supplied = Column(Float, nullable=False, default=0.0)
    vol_oil_supplied = Column(Float, nullable=False, default=0.0)

    __table_args__ = (
        Index("ix_bunker_tracking_vessel_report", "vessel_id", "report_id"),
    )

    def columns(self) -> dict:
        """Substance columns as a flat dict."""
        return {
            f"{s}_{suffix}": getattr(self, f"{s}_{suffix}")
            for s in SUBSTANCES
            for suffix in ("rob", "consumed", "supplied")
        }

    def __repr__(self):
        return f"<BunkerRecord(report_id={self.report_id}, lsifo_rob={self.lsifo_rob})>"


class VesselBaseline(Base):
    """Pointer to each vessel's most recently approved report."""

    __tablename__ = "vessel_baselines"

    vessel_id = Column(Integer, ForeignKey("vessels.id"), primary_key=True)
    report_id = Column(Integer, ForeignKey("reports.id"), nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    def __repr__(self):
        return f"<VesselBaseline(vessel_id={self.vessel_id}, report_id={self.report_id})>"
