"""Guest-facing search: capacity, availability, price and ranking."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy.orm import selectinload

from cabanabook.config import settings
from cabanabook.database import get_session
from cabanabook.errors import InvalidStayError
from cabanabook.models.cabana import Cabana
from cabanabook.modules.availability.checker import has_overlap
from cabanabook.modules.availability.service import query_booked_intervals
from cabanabook.modules.pricing.breakdown import build_breakdown
from cabanabook.modules.search.recommender import CandidateProperty, SearchResult, recommend
from cabanabook.stay import Occupancy, StayInterval

logger = logging.getLogger(__name__)


@dataclass
class SearchRequest:
    check_in: date
    check_out: date
    adultos: int = 2
    menores: int = 0
    menores3: int = 0
    presupuesto_maximo: float | None = None

    @property
    def occupancy(self) -> Occupancy:
        return Occupancy(adultos=self.adultos, menores=self.menores, menores3=self.menores3)


def candidate_from_cabana(cabana: Cabana) -> CandidateProperty:
    return CandidateProperty(
        id=cabana.id,
        nombre=cabana.nombre,
        max_personas=cabana.capacity().max_personas,
        precio_base=cabana.precio_base,
        destacada=bool(cabana.destacada),
        amenities=frozenset(cabana.amenities or ()),
    )


class SmartSearch:
    """Recommends available cabins for a guest's dates, group and budget."""

    def __init__(self) -> None:
        self._config = settings.get("search", {})

    def validate_dates(self, check_in: date, check_out: date, today: date | None = None) -> StayInterval:
        today = today or date.today()
        earliest = today + timedelta(days=self._config.get("min_lead_days", 0))
        if check_in and check_in < earliest:
            raise InvalidStayError(f"Check-in must be on or after {earliest}")
        return StayInterval(check_in, check_out)

    def search(self, request: SearchRequest, today: date | None = None) -> list[SearchResult]:
        stay = self.validate_dates(request.check_in, request.check_out, today)
        occupancy = request.occupancy
        total_personas = occupancy.total_personas

        session = get_session()
        try:
            cabanas = (
                session.query(Cabana)
                .options(selectinload(Cabana.temporadas))
                .filter(Cabana.disponible.is_(True))
                .order_by(Cabana.id)
                .all()
            )
            priced = []
            for cabana in cabanas:
                candidate = candidate_from_cabana(cabana)
                if candidate.max_personas < total_personas:
                    continue
                if has_overlap(stay, query_booked_intervals(session, cabana.id)):
                    logger.debug("Cabana %s unavailable for %s..%s", cabana.id, stay.check_in, stay.check_out)
                    continue
                breakdown = build_breakdown(stay.check_in, stay.check_out, cabana.pricing_config(), occupancy)
                priced.append((candidate, breakdown.total, breakdown.noches))
        finally:
            session.close()

        results = recommend(priced, total_personas, request.presupuesto_maximo)
        logger.info(
            "Search %s..%s for %d guests: %d of %d cabins match",
            stay.check_in, stay.check_out, total_personas, len(results), len(cabanas),
        )
        return results
