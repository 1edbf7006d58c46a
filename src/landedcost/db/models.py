"""SQLAlchemy models for the reference tables.

Rows are keyed by the normalized code (or upper-cased category) so lookups
match the in-memory tables exactly.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, String, Text, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class TariffRow(Base):
    """Tariff line with its duty component and cumulative rates (percent)."""

    __tablename__ = "tariffs"

    code = Column(String(32), primary_key=True)
    raw_code = Column(String(64), nullable=False)
    short_code = Column(String(16), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    customs_duty = Column(Float, nullable=False, default=0.0)
    statistical_tax = Column(Float, nullable=False, default=0.0)
    community_levy = Column(Float, nullable=False, default=0.0)
    solidarity_levy = Column(Float, nullable=False, default=0.0)
    other_levy = Column(Float, nullable=False, default=0.0)
    consumption_tax = Column(Float, nullable=False, default=0.0)
    rrr = Column(Float, nullable=False, default=0.0)
    rcp = Column(Float, nullable=False, default=0.0)
    cumulative_without_tax = Column(Float, nullable=False, default=0.0)
    cumulative_with_tax = Column(Float, nullable=False, default=0.0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class ExemptionRow(Base):
    """Product subject to conformity certification."""

    __tablename__ = "exemptions"

    code = Column(String(32), primary_key=True)
    raw_code = Column(String(64), nullable=False)
    description = Column(Text, nullable=False, default="")
    exempt = Column(Boolean, nullable=False, default=True)


class PortFeeRow(Base):
    __tablename__ = "port_fees"

    category = Column(String(64), primary_key=True)
    label = Column(String(255), nullable=False, default="")
    port_rate_per_tonne = Column(Float, nullable=False, default=0.0)
    municipal_rate_per_tonne = Column(Float, nullable=False, default=0.0)
