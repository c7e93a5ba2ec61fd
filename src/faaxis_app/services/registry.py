from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import RegistryUnavailableError
from ..firms import match_firm_key
from ..models.records import CalculationParameterRecord, FirmDealRecord
from ..models.registry import FirmDeal, FirmParameter, RegistrySnapshot

logger = logging.getLogger(__name__)


def _clean(name: Optional[str]) -> str:
    return " ".join(str(name or "").split()).lower()


def find_deal(deals: Iterable[FirmDeal], firm_name: str) -> Optional[FirmDeal]:
    """Deal for ``firm_name``: an exact (case-insensitive) name match wins, then any deal sharing its firm key."""
    deals = list(deals)
    wanted = _clean(firm_name)
    for deal in deals:
        if _clean(deal.firm) == wanted:
            return deal
    key = match_firm_key(firm_name)
    if key is None:
        return None
    return next((deal for deal in deals if match_firm_key(deal.firm) == key), None)


def parameters_for(parameters: Iterable[FirmParameter], firm_name: str) -> List[FirmParameter]:
    wanted = _clean(firm_name)
    key = match_firm_key(firm_name)
    matched: List[FirmParameter] = []
    for param in parameters:
        if _clean(param.firm) == wanted:
            matched.append(param)
        elif key is not None and match_firm_key(param.firm) == key:
            matched.append(param)
    return matched


class FirmRegistry:
    """Read access to per-firm recruiting deals and named calculation parameters."""

    def list_deals(self) -> List[FirmDeal]:
        raise NotImplementedError

    def list_parameters(self) -> List[FirmParameter]:
        raise NotImplementedError

    def add_deal(self, deal: FirmDeal) -> None:
        raise NotImplementedError

    def set_parameter(self, parameter: FirmParameter) -> None:
        raise NotImplementedError

    def get_deal(self, firm_name: str) -> Optional[FirmDeal]:
        return find_deal(self.list_deals(), firm_name)

    def get_parameters(self, firm_name: str) -> List[FirmParameter]:
        return parameters_for(self.list_parameters(), firm_name)

    def snapshot(self) -> RegistrySnapshot:
        return RegistrySnapshot(deals=self.list_deals(), parameters=self.list_parameters())

    def is_empty(self) -> bool:
        return not self.list_deals()


class InMemoryFirmRegistry(FirmRegistry):
    def __init__(self, deals: Iterable[FirmDeal] = (), parameters: Iterable[FirmParameter] = ()):
        self._deals: List[FirmDeal] = []
        self._parameters: List[FirmParameter] = []
        for deal in deals:
            self.add_deal(deal)
        for parameter in parameters:
            self.set_parameter(parameter)

    @classmethod
    def from_snapshot(cls, snapshot: RegistrySnapshot) -> "InMemoryFirmRegistry":
        return cls(snapshot.deals, snapshot.parameters)

    def list_deals(self) -> List[FirmDeal]:
        return list(self._deals)

    def list_parameters(self) -> List[FirmParameter]:
        return list(self._parameters)

    def add_deal(self, deal: FirmDeal) -> None:
        self._deals = [item for item in self._deals if _clean(item.firm) != _clean(deal.firm)]
        self._deals.append(deal)

    def set_parameter(self, parameter: FirmParameter) -> None:
        self._parameters = [
            item
            for item in self._parameters
            if not (_clean(item.firm) == _clean(parameter.firm) and item.param_name.lower() == parameter.param_name.lower())
        ]
        self._parameters.append(parameter)


class SqlFirmRegistry(FirmRegistry):
    def __init__(self, db: Session):
        self.db = db

    def list_deals(self) -> List[FirmDeal]:
        try:
            rows = self.db.scalars(select(FirmDealRecord).order_by(FirmDealRecord.id)).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read firm deals: {e}")
            raise RegistryUnavailableError("Firm deals could not be loaded", cause=e) from e
        return [row.to_model() for row in rows]

    def list_parameters(self) -> List[FirmParameter]:
        try:
            rows = self.db.scalars(
                select(CalculationParameterRecord).order_by(CalculationParameterRecord.id)
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read calculation parameters: {e}")
            raise RegistryUnavailableError("Calculation parameters could not be loaded", cause=e) from e
        return [row.to_model() for row in rows]

    def _snapshot_isolation(self) -> str:
        # SQLite has no REPEATABLE READ; its transactions are serializable
        return "SERIALIZABLE" if self.db.get_bind().dialect.name == "sqlite" else "REPEATABLE READ"

    def snapshot(self) -> RegistrySnapshot:
        """Deals and parameters as of a single committed state.

        Both reads run in one transaction opened at REPEATABLE READ, so a CMS
        write committed between them is not seen. A transaction the caller
        already has open is reused at its own isolation level.
        """
        if not self.db.in_transaction():
            try:
                self.db.connection(execution_options={"isolation_level": self._snapshot_isolation()})
            except SQLAlchemyError as e:
                logger.error(f"Failed to open registry snapshot: {e}")
                raise RegistryUnavailableError(cause=e) from e
        deals = self.list_deals()
        parameters = self.list_parameters()
        return RegistrySnapshot(deals=deals, parameters=parameters)

    def add_deal(self, deal: FirmDeal) -> None:
        try:
            record = next(
                (row for row in self.db.scalars(select(FirmDealRecord)) if _clean(row.firm) == _clean(deal.firm)),
                None,
            )
            if record is None:
                record = FirmDealRecord(firm=deal.firm)
                self.db.add(record)
            record.upfront_min = deal.upfront_min
            record.upfront_max = deal.upfront_max
            record.backend_min = deal.backend_min
            record.backend_max = deal.backend_max
            record.total_deal_min = deal.total_deal_min
            record.total_deal_max = deal.total_deal_max
            record.notes = deal.notes or None
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save firm deal {deal.firm}: {e}")
            raise RegistryUnavailableError(f"Firm deal {deal.firm} could not be saved", cause=e) from e

    def set_parameter(self, parameter: FirmParameter) -> None:
        try:
            record = next(
                (
                    row
                    for row in self.db.scalars(select(CalculationParameterRecord))
                    if _clean(row.firm) == _clean(parameter.firm)
                    and row.param_name.lower() == parameter.param_name.lower()
                ),
                None,
            )
            if record is None:
                record = CalculationParameterRecord(firm=parameter.firm, param_name=parameter.param_name)
                self.db.add(record)
            record.param_value = str(parameter.param_value)
            record.notes = parameter.notes or None
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save parameter {parameter.firm}/{parameter.param_name}: {e}")
            raise RegistryUnavailableError("Calculation parameter could not be saved", cause=e) from e


def seed_registry(registry: FirmRegistry, snapshot: RegistrySnapshot) -> int:
    """Load ``snapshot`` into an empty registry. Returns the number of deals inserted."""
    if not registry.is_empty():
        return 0
    for deal in snapshot.deals:
        registry.add_deal(deal)
    for parameter in snapshot.parameters:
        registry.set_parameter(parameter)
    logger.info(f"Seeded firm registry with {len(snapshot.deals)} deals and {len(snapshot.parameters)} parameters")
    return len(snapshot.deals)
