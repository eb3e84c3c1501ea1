import logging
import os
from datetime import date
from typing import Callable, Sequence

from sqlalchemy.orm import Session

from src.domain.exceptions import (
    AlreadyCancelledError,
    InsufficientInventoryError,
    NotFoundError,
    PastJourneyError,
    ValidationFailureError,
)
from src.domain.pnr import generate_pnr
from src.domain.state_machine import BookingStateMachine, BookingStatus
from src.infrastructure.db.models import Booking, Train
from src.infrastructure.db.session import run_atomic
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.seat_repository import SeatRepository
from src.infrastructure.repositories.train_repository import TrainRepository

logger = logging.getLogger(__name__)

MAX_PASSENGERS_PER_BOOKING = int(os.getenv("MAX_PASSENGERS_PER_BOOKING", "6"))
MIN_PASSENGER_AGE = 1
MAX_PASSENGER_AGE = 120


class BookingService:
    """Application service coordinating the booking workflow."""

    def __init__(
        self,
        db: Session,
        pnr_generator: Callable[[], str] = generate_pnr,
        today: Callable[[], date] = date.today,
    ):
        self.db = db
        self.pnr_generator = pnr_generator
        self.today = today
        self.booking_repository = BookingRepository(db)
        self.seat_repository = SeatRepository(db)
        self.train_repository = TrainRepository(db)

    def create_booking(
        self,
        user_id: str,
        train_id: str,
        journey_date: date,
        passengers: Sequence[dict],
    ) -> Booking:
        self._validate_request(train_id, journey_date, passengers)

        train = self.train_repository.get_by_id(train_id)
        if not train:
            raise NotFoundError("Train not found")

        seat_count = len(passengers)
        total_fare = train.fare * seat_count

        if train.available_seats < seat_count:
            raise InsufficientInventoryError(train.available_seats)

        pnr_number = self.pnr_generator()

        # reserve() re-reads the counter under a row lock, so a booking that
        # lost a race for the last seats is rejected inside the same unit.
        # The train row lock must be taken before the booking insert: the
        # insert's foreign key check holds a share lock on the same row.
        remaining, booking = run_atomic(
            self.db,
            [
                lambda: self.seat_repository.reserve(train_id, seat_count),
                lambda: self.booking_repository.create_booking(
                    user_id=user_id,
                    train_id=train_id,
                    pnr_number=pnr_number,
                    journey_date=journey_date,
                    passengers=passengers,
                    total_fare=total_fare,
                ),
            ],
        )

        logger.info(
            "Booking confirmed. booking_id=%s pnr=%s train_id=%s passengers=%s remaining_seats=%s",
            booking.id,
            pnr_number,
            train_id,
            seat_count,
            remaining,
        )
        return booking

    def cancel_booking(
        self,
        booking_id: str,
        user_id: str,
    ) -> Booking:
        row = self.booking_repository.get_by_id(
            booking_id,
            user_id,
            for_update=True,
        )
        if not row:
            raise NotFoundError("Booking not found")

        booking, _ = row

        if booking.status == BookingStatus.CANCELLED:
            raise AlreadyCancelledError()

        if booking.journey_date < self.today():
            raise PastJourneyError()

        train_id = booking.train_id
        seat_count = booking.number_of_passengers

        run_atomic(
            self.db,
            [
                lambda: self._transition(booking, BookingStatus.CANCELLED),
                lambda: self.seat_repository.release(train_id, seat_count),
            ],
        )

        logger.info(
            "Booking cancelled. booking_id=%s train_id=%s seats_released=%s",
            booking_id,
            train_id,
            seat_count,
        )
        return booking

    def list_bookings(self, user_id: str) -> list[tuple[Booking, Train]]:
        return self.booking_repository.get_by_user(user_id)

    def get_booking(
        self,
        booking_id: str,
        user_id: str,
    ) -> tuple[Booking, Train]:
        row = self.booking_repository.get_by_id(booking_id, user_id)
        if not row:
            raise NotFoundError("Booking not found")
        return row

    def get_pnr_status(self, pnr_number: str) -> tuple[Booking, Train]:
        row = self.booking_repository.get_by_pnr(pnr_number)
        if not row:
            raise NotFoundError("Invalid PNR number")
        return row

    def _transition(self, booking: Booking, to_status: BookingStatus) -> None:
        BookingStateMachine.validate_transition(booking.status, to_status)
        self.booking_repository.update_status(booking, to_status)

    @staticmethod
    def _validate_request(
        train_id: str,
        journey_date: date,
        passengers: Sequence[dict],
    ) -> None:
        if not train_id or not isinstance(journey_date, date) or not passengers:
            raise ValidationFailureError("Missing required booking information")

        if len(passengers) > MAX_PASSENGERS_PER_BOOKING:
            raise ValidationFailureError(
                f"A booking can include at most {MAX_PASSENGERS_PER_BOOKING} passengers"
            )

        for index, passenger in enumerate(passengers, start=1):
            if not str(passenger.get("name") or "").strip():
                raise ValidationFailureError(f"Passenger {index}: name is required")
            if not str(passenger.get("gender") or "").strip():
                raise ValidationFailureError(f"Passenger {index}: gender is required")

            age = passenger.get("age")
            if not isinstance(age, int) or not MIN_PASSENGER_AGE <= age <= MAX_PASSENGER_AGE:
                raise ValidationFailureError(
                    f"Passenger {index}: age must be between "
                    f"{MIN_PASSENGER_AGE} and {MAX_PASSENGER_AGE}"
                )
