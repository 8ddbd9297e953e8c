"""Shared test fixtures."""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# Set test environment before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"  # In-memory DB for tests

from cabanabook.database import Base
from cabanabook.events import EventBus
from cabanabook.models.cabana import Cabana
from cabanabook.models.reservation import Reservation
from cabanabook.models.season import Temporada

# Import all models to register them
import cabanabook.models.mail  # noqa: F401


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def db_session():
    """Create a fresh in-memory database for each test."""
    engine = create_engine("sqlite://", echo=False)
    Base.metadata.create_all(engine)
    session_factory = sessionmaker(bind=engine)
    session = session_factory()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def sample_cabana(db_session: Session) -> Cabana:
    """A cabin for 4 with a summer season and a weekend rule."""
    cabana = Cabana(
        nombre="Cabaña del Bosque",
        descripcion="Junto al arroyo",
        max_adultos=4,
        max_menores=2,
        max_personas=4,
        precio_base=100.0,
        adicional_adulto=20.0,
        adicional_menor=10.0,
        adicional_menor3=5.0,
        amenities=["wifi", "parrilla"],
        destacada=True,
        disponible=True,
        temporadas=[
            Temporada(
                tipo="fechas", position=0, nombre="Verano", multiplicador=1.5,
                fecha_inicio=date(2027, 1, 1), fecha_fin=date(2027, 1, 31),
            ),
            Temporada(
                tipo="diasSemana", position=1, nombre="Fin de semana", multiplicador=1.2,
                dias_semana="5,6",
            ),
        ],
    )
    db_session.add(cabana)
    db_session.commit()
    return cabana


@pytest.fixture
def sample_reservation(db_session: Session, sample_cabana: Cabana) -> Reservation:
    """A confirmed reservation, Mar 10-15 2027."""
    reservation = Reservation(
        cabana_id=sample_cabana.id,
        guest_name="Ana Pérez",
        guest_email="ana@example.com",
        check_in=date(2027, 3, 10),
        check_out=date(2027, 3, 15),
        nights=5,
        adultos=2,
        total_personas=2,
        precio_base=100.0,
        total=500.0,
        desglose_precios=[],
        status="confirmed",
        source="web",
    )
    db_session.add(reservation)
    db_session.commit()
    return reservation


@pytest.fixture
def event_bus():
    """Create a fresh event bus for each test."""
    return EventBus()


@pytest.fixture
def sample_ics() -> str:
    """Load sample iCal data."""
    return (FIXTURES_DIR / "sample.ics").read_text()
