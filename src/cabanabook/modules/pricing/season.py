"""Season rules and the per-date multiplier evaluator."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable

# Price used when a cabin has no base price configured
DEFAULT_BASE_PRICE = 100
BASE_SEASON = "Base"


@dataclass(frozen=True)
class DateRangeRule:
    nombre: str
    multiplicador: float
    fecha_inicio: date
    fecha_fin: date

    def __post_init__(self) -> None:
        if self.multiplicador < 1:
            raise ValueError(f"Season {self.nombre!r}: multiplier must be >= 1")
        if self.fecha_inicio is None or self.fecha_fin is None:
            raise ValueError(f"Season {self.nombre!r}: start and end dates are required")
        if self.fecha_inicio > self.fecha_fin:
            raise ValueError(f"Season {self.nombre!r}: start date is after end date")

    def matches(self, fecha: date) -> bool:
        return self.fecha_inicio <= fecha <= self.fecha_fin


@dataclass(frozen=True)
class WeekdayRule:
    """Recurring rule; days use 0 = Sunday through 6 = Saturday."""

    nombre: str
    multiplicador: float
    dias_semana: frozenset[int]

    def __post_init__(self) -> None:
        if self.multiplicador < 1:
            raise ValueError(f"Season {self.nombre!r}: multiplier must be >= 1")
        if not self.dias_semana:
            raise ValueError(f"Season {self.nombre!r}: at least one weekday is required")
        if any(d not in range(7) for d in self.dias_semana):
            raise ValueError(f"Season {self.nombre!r}: weekdays must be between 0 and 6")
        object.__setattr__(self, "dias_semana", frozenset(self.dias_semana))

    def matches(self, fecha: date) -> bool:
        return weekday_index(fecha) in self.dias_semana


SeasonRule = DateRangeRule | WeekdayRule


@dataclass(frozen=True)
class SeasonPrice:
    precio: int
    temporada: str
    es_temporada_especial: bool


def weekday_index(fecha: date) -> int:
    """Day of week with Sunday as 0."""
    return (fecha.weekday() + 1) % 7


def round_price(amount: float) -> int:
    """Round to the nearest currency unit, halves upward."""
    return math.floor(amount + 0.5)


def evaluate(
    fecha: date | datetime,
    rules: Iterable[SeasonRule] | None,
    base: float | None,
) -> SeasonPrice:
    """Return the nightly base price and season label that apply on a date.

    Rules are checked in their stored order. The first date-range rule that
    contains the date wins and ends the scan. A matching weekday rule only
    replaces the running price when it is higher, so several weekday matches
    resolve to the largest one and never lower the base.
    """
    if not base:
        return SeasonPrice(DEFAULT_BASE_PRICE, BASE_SEASON, False)
    if isinstance(fecha, datetime):
        fecha = fecha.date()

    precio = base
    temporada = BASE_SEASON
    for rule in rules or ():
        if isinstance(rule, DateRangeRule):
            if rule.matches(fecha):
                precio = base * rule.multiplicador
                temporada = rule.nombre
                break
        elif isinstance(rule, WeekdayRule):
            if rule.matches(fecha):
                candidate = base * rule.multiplicador
                if candidate > precio:
                    precio = candidate
                    temporada = rule.nombre
        else:
            raise TypeError(f"Unknown season rule type: {type(rule).__name__}")

    return SeasonPrice(
        precio=round_price(precio),
        temporada=temporada,
        es_temporada_especial=temporada != BASE_SEASON,
    )
