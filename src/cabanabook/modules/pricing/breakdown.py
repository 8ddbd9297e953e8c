"""Nightly price calculation and itemized stay breakdowns."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from cabanabook.modules.pricing.season import (
    DEFAULT_BASE_PRICE,
    DateRangeRule,
    SeasonRule,
    WeekdayRule,
    evaluate,
)
from cabanabook.stay import Occupancy, as_date, nights_between


@dataclass(frozen=True)
class PricingConfig:
    base: float | None
    adicional_adulto: float = 0.0
    adicional_menor: float = 0.0
    adicional_menor3: float = 0.0
    temporadas: tuple[SeasonRule, ...] = ()

    def __post_init__(self) -> None:
        if self.base is not None and self.base < 0:
            raise ValueError("Base price cannot be negative")
        for name in ("adicional_adulto", "adicional_menor", "adicional_menor3"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")
        object.__setattr__(self, "temporadas", tuple(self.temporadas))

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PricingConfig:
        """Build a config from the stored camelCase ``precios`` shape."""
        if not data:
            return default_pricing_config()
        return cls(
            base=data.get("base"),
            adicional_adulto=data.get("adicionalAdulto") or 0.0,
            adicional_menor=data.get("adicionalMenor") or 0.0,
            adicional_menor3=data.get("adicionalMenor3") or 0.0,
            temporadas=tuple(rule_from_dict(t) for t in data.get("temporadas") or []),
        )


def default_pricing_config() -> PricingConfig:
    """Configuration used for cabins with no stored prices."""
    return PricingConfig(base=DEFAULT_BASE_PRICE)


def _parse_date(value: date | str) -> date:
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return as_date(value)


def rule_from_dict(data: dict[str, Any]) -> SeasonRule:
    """Parse one stored season; date fields take precedence over weekdays."""
    nombre = data.get("nombre", "")
    multiplicador = float(data.get("multiplicador", 1))
    if data.get("fechaInicio") and data.get("fechaFin"):
        return DateRangeRule(
            nombre=nombre,
            multiplicador=multiplicador,
            fecha_inicio=_parse_date(data["fechaInicio"]),
            fecha_fin=_parse_date(data["fechaFin"]),
        )
    if data.get("diasSemana"):
        return WeekdayRule(
            nombre=nombre,
            multiplicador=multiplicador,
            dias_semana=frozenset(int(d) for d in data["diasSemana"]),
        )
    raise ValueError(f"Season {nombre!r} has neither a date range nor weekdays")


@dataclass(frozen=True)
class SurchargeDetail:
    adultos_extra: int = 0
    adicional_adultos: float = 0.0
    adicional_menores: float = 0.0
    adicional_menores3: float = 0.0

    @property
    def por_noche(self) -> float:
        return self.adicional_adultos + self.adicional_menores + self.adicional_menores3


def surcharge_for(config: PricingConfig, occupancy: Occupancy) -> SurchargeDetail:
    """Per-night surcharge for guests beyond the two included adults."""
    return SurchargeDetail(
        adultos_extra=occupancy.adultos_extra,
        adicional_adultos=occupancy.adultos_extra * config.adicional_adulto,
        adicional_menores=occupancy.menores * config.adicional_menor,
        adicional_menores3=occupancy.menores3 * config.adicional_menor3,
    )


def price_for_night(fecha: date, config: PricingConfig, occupancy: Occupancy) -> float:
    """Seasonal base price for one night plus the occupancy surcharge."""
    precio = evaluate(fecha, config.temporadas, config.base).precio
    return precio + surcharge_for(config, occupancy).por_noche


@dataclass
class NightlyPrice:
    fecha: date
    precio_base: int
    adicional_personas: float
    precio_total: float
    temporada: str
    es_temporada_especial: bool

    def to_snapshot(self) -> dict[str, Any]:
        """Shape stored in a reservation's ``desglose_precios``."""
        return {
            "fecha": self.fecha.isoformat(),
            "precioBase": self.precio_base,
            "adicionalPersonas": self.adicional_personas,
            "precioTotal": self.precio_total,
            "temporada": self.temporada,
        }


@dataclass
class PriceBreakdown:
    total: float = 0
    noches: int = 0
    desglose: list[NightlyPrice] = field(default_factory=list)
    adicional_personas_por_noche: float = 0
    detalle_adicionales: SurchargeDetail = field(default_factory=SurchargeDetail)

    @property
    def adicionales_personas(self) -> float:
        return self.adicional_personas_por_noche * self.noches

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "noches": self.noches,
            "adicionalPersonasPorNoche": self.adicional_personas_por_noche,
            "adicionalesPersonas": self.adicionales_personas,
            "detalleAdicionales": {
                "adultosExtra": self.detalle_adicionales.adultos_extra,
                "adicionalAdultos": self.detalle_adicionales.adicional_adultos,
                "adicionalMenores": self.detalle_adicionales.adicional_menores,
                "adicionalMenores3": self.detalle_adicionales.adicional_menores3,
            },
            "desglose": [
                {**night.to_snapshot(), "esTemporadaEspecial": night.es_temporada_especial}
                for night in self.desglose
            ],
        }


def build_breakdown(
    check_in: date | datetime | None,
    check_out: date | datetime | None,
    config: PricingConfig,
    occupancy: Occupancy,
) -> PriceBreakdown:
    """Itemize every night of a stay.

    Missing dates, or a check-out that is not after check-in, produce an
    empty breakdown instead of an error. The surcharge is computed once and
    added to each night, while the base price follows the season rules night
    by night.
    """
    if not check_in or not check_out:
        return PriceBreakdown()
    noches = nights_between(check_in, check_out)
    if noches <= 0:
        return PriceBreakdown()

    detalle = surcharge_for(config, occupancy)
    por_noche = detalle.por_noche
    desglose: list[NightlyPrice] = []
    total: float = 0
    for i in range(noches):
        fecha = as_date(check_in + timedelta(days=i))
        season = evaluate(fecha, config.temporadas, config.base)
        precio_total = season.precio + por_noche
        desglose.append(NightlyPrice(
            fecha=fecha,
            precio_base=season.precio,
            adicional_personas=por_noche,
            precio_total=precio_total,
            temporada=season.temporada,
            es_temporada_especial=season.es_temporada_especial,
        ))
        total += precio_total

    return PriceBreakdown(
        total=total,
        noches=noches,
        desglose=desglose,
        adicional_personas_por_noche=por_noche,
        detalle_adicionales=detalle,
    )
