"""Tests for database models."""

from datetime import date

import pytest
from sqlalchemy.orm import Session

from cabanabook.models.cabana import Cabana
from cabanabook.models.mail import MailMessage
from cabanabook.models.reservation import Reservation
from cabanabook.models.season import Temporada
from cabanabook.modules.availability.checker import blocking_intervals
from cabanabook.modules.pricing.season import DateRangeRule, WeekdayRule


def test_create_cabana(db_session: Session):
    cabana = Cabana(nombre="Refugio", precio_base=150.0, amenities=["pileta"])
    db_session.add(cabana)
    db_session.commit()

    loaded = db_session.query(Cabana).first()
    assert loaded.nombre == "Refugio"
    assert loaded.precio_base == 150.0
    assert loaded.amenities == ["pileta"]
    assert loaded.disponible is True
    assert loaded.destacada is False


def test_cabana_pricing_config(sample_cabana: Cabana):
    config = sample_cabana.pricing_config()
    assert config.base == 100.0
    assert config.adicional_adulto == 20.0
    assert isinstance(config.temporadas[0], DateRangeRule)
    assert config.temporadas[1] == WeekdayRule(
        nombre="Fin de semana", multiplicador=1.2, dias_semana=frozenset({5, 6}),
    )


def test_seasons_keep_position_order(db_session: Session):
    cabana = Cabana(
        nombre="Orden",
        precio_base=100.0,
        temporadas=[
            Temporada(tipo="diasSemana", position=1, nombre="Segunda", multiplicador=1.1, dias_semana="0"),
            Temporada(tipo="diasSemana", position=0, nombre="Primera", multiplicador=1.3, dias_semana="6"),
        ],
    )
    db_session.add(cabana)
    db_session.commit()
    db_session.expire_all()

    loaded = db_session.get(Cabana, cabana.id)
    assert [t.nombre for t in loaded.temporadas] == ["Primera", "Segunda"]


def test_temporada_round_trips_rules():
    rule = DateRangeRule(
        nombre="Invierno", multiplicador=1.4,
        fecha_inicio=date(2027, 7, 1), fecha_fin=date(2027, 7, 31),
    )
    assert Temporada.from_rule(rule, position=2).to_rule() == rule

    weekdays = WeekdayRule(nombre="Finde", multiplicador=1.2, dias_semana=frozenset({5, 6}))
    stored = Temporada.from_rule(weekdays)
    assert stored.dias_semana == "5,6"
    assert stored.to_rule() == weekdays


def test_temporada_unknown_type():
    with pytest.raises(ValueError):
        Temporada(tipo="luna", nombre="?", multiplicador=1.0).to_rule()


def test_reservation_relationship(db_session: Session, sample_reservation: Reservation):
    reservation = db_session.query(Reservation).first()
    assert reservation.cabana is not None
    assert reservation.cabana.nombre == "Cabaña del Bosque"
    assert reservation.nights == 5


def test_reservation_interval(sample_reservation: Reservation):
    interval = sample_reservation.interval()
    assert interval.check_in == date(2027, 3, 10)
    assert interval.check_out == date(2027, 3, 15)
    assert blocking_intervals([interval]) == [interval]


def test_deleting_cabana_removes_its_seasons(db_session: Session, sample_cabana: Cabana):
    db_session.delete(sample_cabana)
    db_session.commit()
    assert db_session.query(Temporada).count() == 0


def test_mail_message_defaults(db_session: Session, sample_reservation: Reservation):
    mail = MailMessage(
        reservation_id=sample_reservation.id, recipient="ana@example.com",
        subject="Hola", body="...",
    )
    db_session.add(mail)
    db_session.commit()

    assert mail.status == "queued"
    assert mail.channel == "email"
    assert sample_reservation.mails == [mail]


def test_date_season_without_dates_is_rejected():
    stored = Temporada(tipo="fechas", nombre="Incompleta", multiplicador=1.5, fecha_inicio=date(2027, 1, 1))
    with pytest.raises(ValueError):
        stored.to_rule()


def test_weekday_season_stored_as_dias_semana():
    rule = WeekdayRule(nombre="Finde", multiplicador=1.2, dias_semana=frozenset({6, 5}))
    stored = Temporada.from_rule(rule)
    assert stored.tipo == "diasSemana"
    assert Temporada(tipo="diasSemana", nombre="Finde", multiplicador=1.2, dias_semana="5,6").to_rule() == rule
