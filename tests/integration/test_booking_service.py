import logging
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from src.application.booking_service import BookingService
from src.domain.exceptions import (
    AlreadyCancelledError,
    InsufficientInventoryError,
    NotFoundError,
    PastJourneyError,
    UnavailableError,
    ValidationFailureError,
)
from src.domain.state_machine import BookingStatus
from src.infrastructure.db.models import Booking, Train
from src.infrastructure.db.session import get_db_session
from src.infrastructure.repositories.booking_repository import BookingRepository
from helpers import make_passengers, tomorrow, yesterday


def _create(user_id, train_id, passengers, journey_date=None, **service_kwargs) -> dict:
    with get_db_session() as db:
        booking = BookingService(db, **service_kwargs).create_booking(
            user_id=user_id,
            train_id=train_id,
            journey_date=journey_date or tomorrow(),
            passengers=passengers,
        )
        return {
            "id": booking.id,
            "pnr_number": booking.pnr_number,
            "total_fare": booking.total_fare,
            "status": booking.status,
            "number_of_passengers": booking.number_of_passengers,
        }


def _cancel(booking_id, user_id, **service_kwargs) -> BookingStatus:
    with get_db_session() as db:
        booking = BookingService(db, **service_kwargs).cancel_booking(booking_id, user_id)
        return booking.status


def _confirmed_seats(train_id) -> int:
    with get_db_session() as db:
        stmt = (
            select(func.coalesce(func.sum(Booking.number_of_passengers), 0))
            .where(Booking.train_id == train_id)
            .where(Booking.status == BookingStatus.CONFIRMED)
        )
        return db.execute(stmt).scalar_one()


# ---------------------
# CREATE
# ---------------------

def test_create_booking_reserves_seats_and_returns_pnr(make_train, make_user, train_state):
    train_id = make_train(fare="300.00", total_seats=10)
    user_id = make_user()

    booking = _create(user_id, train_id, make_passengers(3))

    assert booking["total_fare"] == Decimal("900.00")
    assert booking["status"] is BookingStatus.CONFIRMED
    assert booking["number_of_passengers"] == 3
    assert len(booking["pnr_number"]) == 10
    assert booking["pnr_number"].isdigit()
    assert train_state(train_id)["available_seats"] == 7


def test_passengers_are_stored_in_order(make_train, make_user):
    train_id = make_train()
    user_id = make_user()
    passengers = make_passengers(2)
    passengers[1]["seat_number"] = "S4-22"

    booking = _create(user_id, train_id, passengers)

    with get_db_session() as db:
        stored, _ = BookingService(db).get_booking(booking["id"], user_id)
        assert [p.name for p in stored.passengers] == ["Passenger 1", "Passenger 2"]
        assert stored.passengers[1].seat_number == "S4-22"
        assert stored.number_of_passengers == len(stored.passengers)


def test_unknown_train_is_not_found(make_user):
    user_id = make_user()

    with pytest.raises(NotFoundError, match="Train not found"):
        _create(user_id, "no-such-train", make_passengers(1))


def test_insufficient_inventory_reports_remaining_seats(make_train, make_user, train_state, row_counts):
    train_id = make_train(total_seats=10, available_seats=1)
    user_id = make_user()

    with pytest.raises(InsufficientInventoryError) as excinfo:
        _create(user_id, train_id, make_passengers(2))

    assert excinfo.value.available_seats == 1
    assert str(excinfo.value) == "Only 1 seats available for this train"
    assert train_state(train_id)["available_seats"] == 1
    assert row_counts() == {"bookings": 0, "passengers": 0}


@pytest.mark.parametrize(
    "passengers",
    [
        [],
        make_passengers(7),
        [{"name": "A", "age": 0, "gender": "Male"}],
        [{"name": "A", "age": 121, "gender": "Male"}],
        [{"name": "  ", "age": 30, "gender": "Male"}],
        [{"name": "A", "age": 30, "gender": ""}],
    ],
)
def test_malformed_requests_fail_validation(make_train, make_user, row_counts, passengers):
    train_id = make_train()
    user_id = make_user()

    with pytest.raises(ValidationFailureError):
        _create(user_id, train_id, passengers)

    assert row_counts() == {"bookings": 0, "passengers": 0}


def test_six_passengers_is_the_maximum(make_train, make_user):
    train_id = make_train()
    user_id = make_user()

    booking = _create(user_id, train_id, make_passengers(6))

    assert booking["number_of_passengers"] == 6


def test_storage_failure_after_reserve_leaves_nothing_behind(
    make_train, make_user, train_state, row_counts, monkeypatch
):
    train_id = make_train(total_seats=5)
    user_id = make_user()

    def broken_create_booking(self, **kwargs):
        raise OperationalError("INSERT INTO bookings", {}, Exception("disk I/O error"))

    monkeypatch.setattr(BookingRepository, "create_booking", broken_create_booking)

    with pytest.raises(UnavailableError):
        _create(user_id, train_id, make_passengers(2))

    assert row_counts() == {"bookings": 0, "passengers": 0}
    assert train_state(train_id)["available_seats"] == 5


def test_pnr_collision_aborts_the_whole_unit(make_train, make_user, train_state, row_counts):
    train_id = make_train(total_seats=10)
    user_id = make_user()

    _create(user_id, train_id, make_passengers(2), pnr_generator=lambda: "1234567890")

    with pytest.raises(UnavailableError):
        _create(user_id, train_id, make_passengers(3), pnr_generator=lambda: "1234567890")

    assert train_state(train_id)["available_seats"] == 8
    assert row_counts() == {"bookings": 1, "passengers": 2}


def test_fare_change_does_not_touch_existing_bookings(make_train, make_user):
    train_id = make_train(fare="500.00")
    user_id = make_user()
    booking = _create(user_id, train_id, make_passengers(2))

    with get_db_session() as db:
        db.get(Train, train_id).fare = Decimal("750.00")

    with get_db_session() as db:
        stored, train = BookingService(db).get_pnr_status(booking["pnr_number"])
        assert stored.total_fare == Decimal("1000.00")
        assert train.fare == Decimal("750.00")


# ---------------------
# CANCEL
# ---------------------

def test_cancel_future_journey_restores_seats(make_train, make_user, train_state):
    train_id = make_train(total_seats=10)
    user_id = make_user()
    booking = _create(user_id, train_id, make_passengers(3), journey_date=tomorrow())

    status = _cancel(booking["id"], user_id)

    assert status is BookingStatus.CANCELLED
    assert train_state(train_id)["available_seats"] == 10


def test_cancel_past_journey_is_rejected(make_train, make_user, train_state):
    train_id = make_train(total_seats=10)
    user_id = make_user()
    booking = _create(user_id, train_id, make_passengers(2), journey_date=yesterday())

    with pytest.raises(PastJourneyError):
        _cancel(booking["id"], user_id)

    assert train_state(train_id)["available_seats"] == 8


def test_journey_today_can_still_be_cancelled(make_train, make_user):
    train_id = make_train()
    user_id = make_user()
    journey = date(2030, 5, 17)
    booking = _create(user_id, train_id, make_passengers(1), journey_date=journey)

    status = _cancel(booking["id"], user_id, today=lambda: journey)

    assert status is BookingStatus.CANCELLED


def test_cancelling_twice_does_not_double_release(make_train, make_user, train_state):
    train_id = make_train(total_seats=10)
    user_id = make_user()
    booking = _create(user_id, train_id, make_passengers(4))
    _cancel(booking["id"], user_id)

    with pytest.raises(AlreadyCancelledError):
        _cancel(booking["id"], user_id)

    assert train_state(train_id)["available_seats"] == 10


def test_cancel_by_another_user_is_not_found(make_train, make_user, train_state):
    train_id = make_train(total_seats=10)
    owner_id = make_user()
    stranger_id = make_user()
    booking = _create(owner_id, train_id, make_passengers(2))

    with pytest.raises(NotFoundError):
        _cancel(booking["id"], stranger_id)

    assert train_state(train_id)["available_seats"] == 8


def test_release_is_clamped_at_capacity(make_train, make_user, train_state, caplog):
    train_id = make_train(total_seats=10)
    user_id = make_user()
    booking = _create(user_id, train_id, make_passengers(3))

    # An administrative reset restored the counter behind the booking's back.
    with get_db_session() as db:
        db.get(Train, train_id).available_seats = 9

    with caplog.at_level(logging.WARNING):
        _cancel(booking["id"], user_id)

    assert train_state(train_id)["available_seats"] == 10
    assert "clamped at capacity" in caplog.text


# ---------------------
# QUERIES
# ---------------------

def test_list_bookings_most_recent_first(make_train, make_user):
    train_id = make_train()
    user_id = make_user()
    other_id = make_user()
    created = [_create(user_id, train_id, make_passengers(1))["id"] for _ in range(3)]
    _create(other_id, train_id, make_passengers(1))

    with get_db_session() as db:
        rows = BookingService(db).list_bookings(user_id)
        listed = [booking.id for booking, _ in rows]
        train_names = {train.train_name for _, train in rows}

    assert listed == list(reversed(created))
    assert train_names == {"Test Express 1"}


def test_booking_detail_is_scoped_to_owner_but_pnr_is_public(make_train, make_user):
    train_id = make_train()
    owner_id = make_user()
    stranger_id = make_user()
    booking = _create(owner_id, train_id, make_passengers(2))

    with get_db_session() as db:
        service = BookingService(db)

        with pytest.raises(NotFoundError):
            service.get_booking(booking["id"], stranger_id)

        found, _ = service.get_pnr_status(booking["pnr_number"])
        assert found.id == booking["id"]


def test_unknown_pnr_is_not_found():
    with get_db_session() as db:
        with pytest.raises(NotFoundError, match="Invalid PNR number"):
            BookingService(db).get_pnr_status("0000000000")


# ---------------------
# INVARIANTS
# ---------------------

def test_seats_are_conserved_across_creates_and_cancels(make_train, make_user, train_state):
    total = 10
    train_id = make_train(total_seats=total)
    user_id = make_user()

    def assert_conserved():
        available = train_state(train_id)["available_seats"]
        assert 0 <= available <= total
        assert available + _confirmed_seats(train_id) == total

    first = _create(user_id, train_id, make_passengers(3))
    assert_conserved()
    _create(user_id, train_id, make_passengers(2))
    assert_conserved()
    _cancel(first["id"], user_id)
    assert_conserved()
    third = _create(user_id, train_id, make_passengers(4))
    assert_conserved()

    with pytest.raises(InsufficientInventoryError):
        _create(user_id, train_id, make_passengers(6))
    assert_conserved()

    _create(user_id, train_id, make_passengers(4))
    assert train_state(train_id)["available_seats"] == 0
    assert_conserved()

    with pytest.raises(InsufficientInventoryError):
        _create(user_id, train_id, make_passengers(1))

    _cancel(third["id"], user_id)
    assert_conserved()
    with pytest.raises(AlreadyCancelledError):
        _cancel(third["id"], user_id)
    assert_conserved()
