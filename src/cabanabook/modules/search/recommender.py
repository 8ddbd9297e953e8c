"""Recommendation scoring for search results."""

from __future__ import annotations

from dataclasses import dataclass, field
from operator import attrgetter
from typing import Iterable

from cabanabook.modules.pricing.season import DEFAULT_BASE_PRICE

FEATURED_BONUS = 20
AMENITY_BONUS = {
    "pileta": 15,  # pool
    "parrilla": 10,  # grill
    "wifi": 5,
}


@dataclass(frozen=True)
class CandidateProperty:
    id: int
    nombre: str
    max_personas: int
    precio_base: float | None = None
    destacada: bool = False
    amenities: frozenset[str] = field(default_factory=frozenset)


@dataclass
class SearchResult:
    candidate: CandidateProperty
    precio_estimado: float
    noches: int
    score: float


def _capacity_points(max_personas: int, total_personas: int) -> int:
    ratio = max_personas / total_personas
    if ratio >= 1.5:
        return 30
    if ratio >= 1.2:
        return 20
    return 10


def _price_points(precio_base: float | None, estimated_price: float, max_budget: float | None) -> float:
    if max_budget:
        return max(0.0, (1 - estimated_price / max_budget) * 40)
    base = precio_base or DEFAULT_BASE_PRICE
    if base <= 150:
        return 30
    if base <= 200:
        return 20
    return 10


def score(
    candidate: CandidateProperty,
    estimated_price: float,
    total_personas: int,
    max_budget: float | None = None,
) -> float:
    """Relative ranking value; only the ordering between candidates matters."""
    points: float = _capacity_points(candidate.max_personas, total_personas)
    points += _price_points(candidate.precio_base, estimated_price, max_budget)
    if candidate.destacada:
        points += FEATURED_BONUS
    for amenity, bonus in AMENITY_BONUS.items():
        if amenity in candidate.amenities:
            points += bonus
    return points


def recommend(
    priced: Iterable[tuple[CandidateProperty, float, int]],
    total_personas: int,
    max_budget: float | None = None,
) -> list[SearchResult]:
    """Filter and rank ``(candidate, estimated_price, noches)`` triples.

    Candidates that cannot host everyone, or whose estimate is over the
    budget, are dropped before scoring. Equal scores keep their input order.
    """
    results = []
    for candidate, estimated_price, noches in priced:
        if candidate.max_personas < total_personas:
            continue
        if max_budget and estimated_price > max_budget:
            continue
        results.append(SearchResult(
            candidate=candidate,
            precio_estimado=estimated_price,
            noches=noches,
            score=score(candidate, estimated_price, total_personas, max_budget),
        ))
    return sorted(results, key=attrgetter("score"), reverse=True)
