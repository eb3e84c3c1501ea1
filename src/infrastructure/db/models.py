# src/infrastructure/db/models.py

from datetime import date, datetime, time, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import (
    String,
    Integer,
    Numeric,
    Date,
    Time,
    DateTime,
    Enum,
    UniqueConstraint,
    CheckConstraint,
    ForeignKey,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.db.session import Base
from src.domain.state_machine import BookingStatus


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid4())


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utc_now,
        nullable=False,
    )


class Station(Base):
    __tablename__ = "stations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    station_name: Mapped[str] = mapped_column(String(100), nullable=False)
    station_code: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    city: Mapped[str] = mapped_column(String(100), nullable=False)


class Train(Base):
    """
    Train row. `available_seats` is the inventory ledger counter and is
    only changed through SeatRepository.
    """

    __tablename__ = "trains"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    train_name: Mapped[str] = mapped_column(String(100), nullable=False)
    train_number: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    source: Mapped[str] = mapped_column(String(100), nullable=False)
    destination: Mapped[str] = mapped_column(String(100), nullable=False)
    departure_time: Mapped[time] = mapped_column(Time, nullable=False)
    arrival_time: Mapped[time] = mapped_column(Time, nullable=False)
    duration: Mapped[str] = mapped_column(String(20), nullable=False)
    class_type: Mapped[str] = mapped_column(String(20), nullable=False)
    fare: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_seats: Mapped[int] = mapped_column(Integer, nullable=False)
    available_seats: Mapped[int] = mapped_column(Integer, nullable=False)

    route: Mapped[list["RouteStop"]] = relationship(
        order_by="RouteStop.stop_number",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("fare > 0", name="ck_train_fare_positive"),
        CheckConstraint("total_seats >= 0", name="ck_train_total_seats_nonnegative"),
        CheckConstraint("available_seats >= 0", name="ck_train_available_seats_nonnegative"),
        CheckConstraint("available_seats <= total_seats", name="ck_train_available_lte_total"),
    )


class RouteStop(Base):
    __tablename__ = "train_routes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    train_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("trains.id"),
        nullable=False,
    )
    station_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("stations.id"),
        nullable=False,
    )
    stop_number: Mapped[int] = mapped_column(Integer, nullable=False)
    arrival_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    departure_time: Mapped[time | None] = mapped_column(Time, nullable=True)

    station: Mapped[Station] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint("train_id", "stop_number", name="uq_train_route_stop"),
    )


class Booking(Base):
    """
    Booking table reflecting domain state.
    Domain controls transitions.
    DB stores current state safely.
    """

    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
    )
    train_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("trains.id"),
        nullable=False,
    )
    pnr_number: Mapped[str] = mapped_column(String(10), nullable=False)
    journey_date: Mapped[date] = mapped_column(Date, nullable=False)
    number_of_passengers: Mapped[int] = mapped_column(Integer, nullable=False)
    total_fare: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="booking_status"),
        nullable=False,
        default=BookingStatus.CONFIRMED,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utc_now,
        nullable=False,
    )

    passengers: Mapped[list["Passenger"]] = relationship(
        order_by="Passenger.position",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("pnr_number", name="uq_booking_pnr_number"),
        CheckConstraint(
            "number_of_passengers > 0",
            name="ck_booking_passengers_positive",
        ),
    )


class Passenger(Base):
    __tablename__ = "passengers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    booking_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("bookings.id"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    gender: Mapped[str] = mapped_column(String(10), nullable=False)
    seat_number: Mapped[str | None] = mapped_column(String(10), nullable=True)

    __table_args__ = (
        CheckConstraint("age >= 1 AND age <= 120", name="ck_passenger_age_range"),
    )
