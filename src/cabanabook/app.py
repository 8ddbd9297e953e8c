"""FastAPI application with pricing, availability, search and reservation routes."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from cabanabook.config import settings
from cabanabook.database import get_session, init_db
from cabanabook.errors import DatesUnavailableError, ReservationError
from cabanabook.models.cabana import Cabana
from cabanabook.models.reservation import Reservation
from cabanabook.models.season import Temporada
from cabanabook.modules.availability.service import AvailabilityChecker
from cabanabook.modules.calendar_sync import CalendarSyncer, export_ical
from cabanabook.modules.pricing.breakdown import PricingConfig
from cabanabook.modules.pricing.engine import PricingEngine
from cabanabook.modules.reservations import GuestInfo, ReservationManager
from cabanabook.modules.search import SearchRequest, SmartSearch
from cabanabook.scheduler import create_scheduler
from cabanabook.stay import Occupancy

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting cabanabook...")
    init_db()
    seed_cabanas_from_config()

    scheduler = create_scheduler()
    scheduler.start()
    logger.info("Scheduler started.")

    yield

    scheduler.shutdown()
    logger.info("cabanabook shut down.")


app = FastAPI(title="cabanabook", lifespan=lifespan)


@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError):
    status_code = 409 if isinstance(exc, DatesUnavailableError) else 400
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "error": type(exc).__name__})


def seed_cabanas_from_config() -> None:
    """Seed cabins from config.yaml if not already in DB."""
    session = get_session()
    try:
        for cfg in settings.get("cabanas", []):
            existing = session.query(Cabana).filter(Cabana.nombre == cfg["nombre"]).first()
            if existing:
                if cfg.get("ical_url") and existing.ical_url != cfg["ical_url"]:
                    existing.ical_url = cfg["ical_url"]
                    session.commit()
                continue

            precios = cfg.get("precios")
            config = PricingConfig.from_dict(precios)
            cabana = Cabana(
                nombre=cfg["nombre"],
                descripcion=cfg.get("descripcion"),
                max_adultos=cfg.get("max_adultos"),
                max_menores=cfg.get("max_menores"),
                max_personas=cfg.get("max_personas"),
                precio_base=config.base if precios else None,
                adicional_adulto=config.adicional_adulto,
                adicional_menor=config.adicional_menor,
                adicional_menor3=config.adicional_menor3,
                amenities=cfg.get("amenities", []),
                destacada=cfg.get("destacada", False),
                disponible=cfg.get("disponible", True),
                ical_url=cfg.get("ical_url"),
                temporadas=[Temporada.from_rule(rule, i) for i, rule in enumerate(config.temporadas)],
            )
            session.add(cabana)
            session.commit()
            logger.info("Seeded cabana: %s", cabana.nombre)
    finally:
        session.close()


# --- Serializers ---


def cabana_to_dict(cabana: Cabana) -> dict[str, Any]:
    capacity = cabana.capacity()
    return {
        "id": cabana.id,
        "nombre": cabana.nombre,
        "descripcion": cabana.descripcion,
        "capacidad": {
            "maxAdultos": capacity.max_adultos,
            "maxMenores": capacity.max_menores,
            "maxPersonas": capacity.max_personas,
        },
        "precioBase": cabana.precio_base,
        "amenities": cabana.amenities or [],
        "destacada": cabana.destacada,
        "disponible": cabana.disponible,
    }


def reservation_to_dict(reservation: Reservation) -> dict[str, Any]:
    return {
        "id": reservation.id,
        "cabanaId": reservation.cabana_id,
        "checkIn": reservation.check_in.isoformat(),
        "checkOut": reservation.check_out.isoformat(),
        "nights": reservation.nights,
        "adultos": reservation.adultos,
        "menores": reservation.menores,
        "menores3": reservation.menores3,
        "totalPersonas": reservation.total_personas,
        "precioBase": reservation.precio_base,
        "adicionalesPersonas": reservation.adicionales_personas,
        "total": reservation.total,
        "desglosePrecios": reservation.desglose_precios or [],
        "status": reservation.status,
        "source": reservation.source,
        "guestName": reservation.guest_name,
        "guestEmail": reservation.guest_email,
        "guestPhone": reservation.guest_phone,
        "specialRequests": reservation.special_requests,
        "createdAt": reservation.created_at.isoformat() if reservation.created_at else None,
    }


# --- Request bodies ---


class SearchBody(BaseModel):
    check_in: date
    check_out: date
    adultos: int = Field(default=2, ge=1)
    menores: int = Field(default=0, ge=0)
    menores3: int = Field(default=0, ge=0)
    presupuesto_maximo: float | None = Field(default=None, gt=0)


class ReservationBody(BaseModel):
    cabana_id: int
    check_in: date
    check_out: date
    adultos: int = Field(default=2, ge=1)
    menores: int = Field(default=0, ge=0)
    menores3: int = Field(default=0, ge=0)
    guest_name: str
    guest_email: str
    guest_phone: str | None = None
    special_requests: str | None = None
    source: str = "web"
    user_id: str | None = None
    user_email: str | None = None


class StatusBody(BaseModel):
    status: str


# --- Cabin routes ---


@app.get("/cabanas")
async def list_cabanas(disponible: bool | None = None):
    session = get_session()
    try:
        query = session.query(Cabana).order_by(Cabana.id)
        if disponible is not None:
            query = query.filter(Cabana.disponible.is_(disponible))
        return [cabana_to_dict(c) for c in query.all()]
    finally:
        session.close()


@app.get("/cabanas/{cabana_id}/quote")
async def quote_stay(
    cabana_id: int,
    check_in: date,
    check_out: date,
    adultos: int = Query(default=2, ge=1),
    menores: int = Query(default=0, ge=0),
    menores3: int = Query(default=0, ge=0),
):
    """Itemized price for a stay."""
    occupancy = Occupancy(adultos=adultos, menores=menores, menores3=menores3)
    breakdown = PricingEngine().quote(cabana_id, check_in, check_out, occupancy)
    if breakdown is None:
        raise HTTPException(status_code=404, detail="Cabana not found")
    return breakdown.to_dict()


@app.get("/cabanas/{cabana_id}/availability")
async def check_availability(cabana_id: int, check_in: date, check_out: date):
    session = get_session()
    try:
        if session.get(Cabana, cabana_id) is None:
            raise HTTPException(status_code=404, detail="Cabana not found")
    finally:
        session.close()
    checker = AvailabilityChecker()
    return {
        "cabanaId": cabana_id,
        "checkIn": check_in.isoformat(),
        "checkOut": check_out.isoformat(),
        "disponible": checker.is_available(cabana_id, check_in, check_out),
    }


@app.get("/cabanas/{cabana_id}/calendar")
async def month_calendar(
    cabana_id: int,
    year: int | None = None,
    month: int | None = Query(default=None, ge=1, le=12),
):
    """Per-day occupancy and nightly price for a month."""
    today = date.today()
    year = year or today.year
    month = month or today.month
    days = AvailabilityChecker().month_calendar(cabana_id, year, month)
    if not days:
        raise HTTPException(status_code=404, detail="Cabana not found")
    return {
        "cabanaId": cabana_id,
        "year": year,
        "month": month,
        "days": [
            {
                "fecha": d.fecha.isoformat(),
                "ocupado": d.ocupado,
                "precio": d.precio,
                "temporada": d.temporada,
                "esPrecioEspecial": d.es_precio_especial,
            }
            for d in days
        ],
    }


@app.get("/cabanas/{cabana_id}/calendar.ics")
async def calendar_feed(cabana_id: int):
    ical = export_ical(cabana_id)
    if ical is None:
        raise HTTPException(status_code=404, detail="Cabana not found")
    return Response(content=ical, media_type="text/calendar")


# --- Search ---


@app.post("/search")
async def search(body: SearchBody):
    request = SearchRequest(
        check_in=body.check_in,
        check_out=body.check_out,
        adultos=body.adultos,
        menores=body.menores,
        menores3=body.menores3,
        presupuesto_maximo=body.presupuesto_maximo,
    )
    results = SmartSearch().search(request)
    return [
        {
            "cabanaId": r.candidate.id,
            "nombre": r.candidate.nombre,
            "precioEstimado": r.precio_estimado,
            "noches": r.noches,
            "recomendacionScore": r.score,
            "destacada": r.candidate.destacada,
        }
        for r in results
    ]


# --- Reservations ---


@app.post("/reservations", status_code=201)
async def create_reservation(body: ReservationBody):
    reservation = ReservationManager().create_reservation(
        body.cabana_id,
        body.check_in,
        body.check_out,
        Occupancy(adultos=body.adultos, menores=body.menores, menores3=body.menores3),
        GuestInfo(
            name=body.guest_name,
            email=body.guest_email,
            phone=body.guest_phone,
            special_requests=body.special_requests,
        ),
        source=body.source,
        user_id=body.user_id,
        user_email=body.user_email,
    )
    if reservation is None:
        raise HTTPException(status_code=404, detail="Cabana not found")
    return reservation_to_dict(reservation)


@app.get("/reservations")
async def list_reservations(cabana_id: int | None = None, status: str | None = None):
    reservations = ReservationManager().list_reservations(cabana_id=cabana_id, status=status)
    return [reservation_to_dict(r) for r in reservations]


@app.get("/reservations/stats")
async def reservation_stats(cabana_id: int | None = None):
    stats = ReservationManager().get_stats(cabana_id)
    return {
        "total": stats.total,
        "pending": stats.pending,
        "confirmed": stats.confirmed,
        "cancelled": stats.cancelled,
        "totalRevenue": stats.total_revenue,
    }


@app.get("/reservations/{reservation_id}")
async def get_reservation(reservation_id: int):
    reservation = ReservationManager().get_reservation(reservation_id)
    if reservation is None:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return reservation_to_dict(reservation)


@app.post("/reservations/{reservation_id}/status")
async def update_reservation_status(reservation_id: int, body: StatusBody):
    reservation = ReservationManager().update_status(reservation_id, body.status)
    if reservation is None:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return reservation_to_dict(reservation)


@app.delete("/reservations/{reservation_id}", status_code=204)
async def delete_reservation(reservation_id: int):
    if not ReservationManager().delete_reservation(reservation_id):
        raise HTTPException(status_code=404, detail="Reservation not found")
    return Response(status_code=204)


# --- Calendar sync ---


@app.post("/sync")
async def trigger_sync():
    """Manually trigger calendar sync for every cabin with a feed."""
    CalendarSyncer().sync_all()
    return {"status": "ok"}


@app.post("/cabanas/{cabana_id}/sync")
async def trigger_cabana_sync(cabana_id: int):
    CalendarSyncer().sync_cabana_by_id(cabana_id)
    return {"status": "ok", "cabanaId": cabana_id}


def main() -> None:
    """Entry point for running the app."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    init_db()
    logger.info("Database initialized.")

    uvicorn.run(
        "cabanabook.app:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
