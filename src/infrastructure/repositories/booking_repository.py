# src/infrastructure/repositories/booking_repository.py

from datetime import date
from decimal import Decimal
from typing import Sequence

from sqlalchemy.orm import Session
from sqlalchemy import select

from src.infrastructure.db.models import Booking, Passenger, Train
from src.domain.state_machine import BookingStateMachine, BookingStatus


class BookingRepository:
    """Reservation record store: bookings, their passengers, PNR lookup."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        booking_id: str,
        user_id: str,
        for_update: bool = False,
    ) -> tuple[Booking, Train] | None:
        """Ownership-scoped lookup; another user's booking is not visible."""

        stmt = (
            select(Booking, Train)
            .join(Train, Booking.train_id == Train.id)
            .where(Booking.id == booking_id)
            .where(Booking.user_id == user_id)
        )
        if for_update:
            stmt = stmt.with_for_update(of=Booking)

        row = self.db.execute(stmt).one_or_none()
        return tuple(row) if row else None

    def get_by_user(self, user_id: str) -> list[tuple[Booking, Train]]:
        stmt = (
            select(Booking, Train)
            .join(Train, Booking.train_id == Train.id)
            .where(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc())
        )
        return [tuple(row) for row in self.db.execute(stmt).all()]

    def get_by_pnr(self, pnr_number: str) -> tuple[Booking, Train] | None:
        stmt = (
            select(Booking, Train)
            .join(Train, Booking.train_id == Train.id)
            .where(Booking.pnr_number == pnr_number)
        )
        row = self.db.execute(stmt).one_or_none()
        return tuple(row) if row else None

    def create_booking(
        self,
        user_id: str,
        train_id: str,
        pnr_number: str,
        journey_date: date,
        passengers: Sequence[dict],
        total_fare: Decimal,
    ) -> Booking:

        booking = Booking(
            user_id=user_id,
            train_id=train_id,
            pnr_number=pnr_number,
            journey_date=journey_date,
            number_of_passengers=len(passengers),
            total_fare=total_fare,
            status=BookingStateMachine.INITIAL_STATUS,
        )
        self.db.add(booking)
        self.db.flush()

        for position, passenger in enumerate(passengers, start=1):
            self.db.add(
                Passenger(
                    booking_id=booking.id,
                    position=position,
                    name=passenger["name"],
                    age=passenger["age"],
                    gender=passenger["gender"],
                    seat_number=passenger.get("seat_number"),
                )
            )
        self.db.flush()
        return booking

    def update_status(
        self,
        booking: Booking,
        new_status: BookingStatus,
    ) -> None:

        booking.status = new_status
        self.db.flush()
