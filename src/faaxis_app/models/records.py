"""ORM rows backing the firm deal registry.

Both tables are maintained through the CMS; the calculator only reads them.
Parameter values are stored as text because the CMS accepts range strings
such as ``"45-50%"`` as well as plain numbers.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Float, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..database import Base
from .registry import FirmDeal, FirmParameter


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FirmDealRecord(Base):
    __tablename__ = "firm_deals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    firm: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    upfront_min: Mapped[float] = mapped_column(Float, nullable=False)
    upfront_max: Mapped[float] = mapped_column(Float, nullable=False)
    backend_min: Mapped[float] = mapped_column(Float, nullable=False)
    backend_max: Mapped[float] = mapped_column(Float, nullable=False)
    total_deal_min: Mapped[float] = mapped_column(Float, nullable=False)
    total_deal_max: Mapped[float] = mapped_column(Float, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def to_model(self) -> FirmDeal:
        return FirmDeal(
            firm=self.firm,
            upfront_min=self.upfront_min,
            upfront_max=self.upfront_max,
            backend_min=self.backend_min,
            backend_max=self.backend_max,
            total_deal_min=self.total_deal_min,
            total_deal_max=self.total_deal_max,
            notes=self.notes or "",
        )

    def __repr__(self) -> str:
        return f"<FirmDealRecord(id={self.id}, firm={self.firm})>"


class CalculationParameterRecord(Base):
    __tablename__ = "calculation_parameters"
    __table_args__ = (
        UniqueConstraint("firm", "param_name", name="uq_firm_param"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    firm: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    param_name: Mapped[str] = mapped_column(Text, nullable=False)
    param_value: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def to_model(self) -> FirmParameter:
        value: float | str = self.param_value
        try:
            value = float(self.param_value)
        except ValueError:
            pass
        return FirmParameter(firm=self.firm, param_name=self.param_name, param_value=value, notes=self.notes or "")

    def __repr__(self) -> str:
        return f"<CalculationParameterRecord(firm={self.firm}, param={self.param_name})>"
