"""Database-backed pricing: quotes and daily price listings per cabin."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy.orm import Session, selectinload

from cabanabook.database import get_session
from cabanabook.models.cabana import Cabana
from cabanabook.modules.pricing.breakdown import PriceBreakdown, PricingConfig, build_breakdown
from cabanabook.modules.pricing.season import evaluate
from cabanabook.stay import Capacity, Occupancy, StayInterval, validate_occupancy

logger = logging.getLogger(__name__)


@dataclass
class DailyPrice:
    cabana_id: int
    date: date
    base_price: float | None
    price: int
    temporada: str
    es_temporada_especial: bool


def load_cabana(session: Session, cabana_id: int) -> Cabana | None:
    """Fetch a cabin with its season rules loaded."""
    return (
        session.query(Cabana)
        .options(selectinload(Cabana.temporadas))
        .filter(Cabana.id == cabana_id)
        .first()
    )


class PricingEngine:
    """Prices stays and single dates from each cabin's stored configuration."""

    def get_pricing(self, cabana_id: int) -> tuple[PricingConfig, Capacity] | None:
        session = get_session()
        try:
            cabana = load_cabana(session, cabana_id)
            if not cabana:
                return None
            return cabana.pricing_config(), cabana.capacity()
        finally:
            session.close()

    def quote(
        self,
        cabana_id: int,
        check_in: date,
        check_out: date,
        occupancy: Occupancy,
    ) -> PriceBreakdown | None:
        """Price a stay after validating the dates and the cabin's capacity.

        Returns None when the cabin does not exist.
        """
        stay = StayInterval(check_in, check_out)
        pricing = self.get_pricing(cabana_id)
        if pricing is None:
            return None
        config, capacity = pricing
        validate_occupancy(occupancy, capacity)
        breakdown = build_breakdown(stay.check_in, stay.check_out, config, occupancy)
        logger.debug(
            "Quoted cabana %s %s..%s: %d nights, total %s",
            cabana_id, check_in, check_out, breakdown.noches, breakdown.total,
        )
        return breakdown

    def get_daily_prices(self, cabana_id: int, start_date: date, end_date: date) -> list[DailyPrice]:
        """Seasonal base price for each date in an inclusive range."""
        pricing = self.get_pricing(cabana_id)
        if pricing is None:
            return []
        config, _ = pricing
        return daily_prices(cabana_id, config, start_date, end_date)


def daily_prices(
    cabana_id: int, config: PricingConfig, start_date: date, end_date: date
) -> list[DailyPrice]:
    prices = []
    current = start_date
    while current <= end_date:
        season = evaluate(current, config.temporadas, config.base)
        prices.append(DailyPrice(
            cabana_id=cabana_id,
            date=current,
            base_price=config.base,
            price=season.precio,
            temporada=season.temporada,
            es_temporada_especial=season.es_temporada_especial,
        ))
        current += timedelta(days=1)
    return prices
