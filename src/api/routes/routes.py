import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_identity, get_db
from src.application.auth_service import AuthService
from src.application.booking_service import BookingService
from src.api.schemas.schemas import (
    RegisterRequest,
    LoginRequest,
    UserResponse,
    AuthResponse,
    ProfileResponse,
    StationResponse,
    RouteStopResponse,
    TrainResponse,
    TrainDetailResponse,
    InventoryResponse,
    BookingRequest,
    BookingResponse,
    CancelBookingResponse,
    PassengerResponse,
    BookingSummaryResponse,
    BookingDetailResponse,
    PnrStatusResponse,
)
from src.domain.exceptions import (
    AlreadyCancelledError,
    DuplicateEmailError,
    InsufficientInventoryError,
    InvalidCredentialError,
    InvalidStateTransitionError,
    NotFoundError,
    PastJourneyError,
    ValidationFailureError,
)
from src.infrastructure.db.models import Booking, Train, User
from src.infrastructure.repositories.station_repository import StationRepository
from src.infrastructure.repositories.train_repository import TrainRepository
from src.infrastructure.security.tokens import Identity


router = APIRouter()
logger = logging.getLogger(__name__)


def _user_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, name=user.name, email=user.email)


def _train_response(train: Train) -> TrainResponse:
    return TrainResponse(
        id=train.id,
        train_name=train.train_name,
        train_number=train.train_number,
        source=train.source,
        destination=train.destination,
        departure_time=train.departure_time,
        arrival_time=train.arrival_time,
        duration=train.duration,
        class_type=train.class_type,
        fare=float(train.fare),
        available_seats=train.available_seats,
    )


def _inventory_stats(train: Train) -> InventoryResponse:
    return InventoryResponse(
        train_id=train.id,
        total_seats=train.total_seats,
        available_seats=train.available_seats,
        booked_seats=train.total_seats - train.available_seats,
    )


def _train_fields(train: Train) -> dict:
    return {
        "train_name": train.train_name,
        "train_number": train.train_number,
        "source": train.source,
        "destination": train.destination,
        "departure_time": train.departure_time,
        "arrival_time": train.arrival_time,
        "duration": train.duration,
    }


def _booking_summary(booking: Booking, train: Train) -> BookingSummaryResponse:
    return BookingSummaryResponse(
        booking_id=booking.id,
        pnr_number=booking.pnr_number,
        journey_date=booking.journey_date,
        number_of_passengers=booking.number_of_passengers,
        total_fare=float(booking.total_fare),
        status=booking.status.value,
        booking_date=booking.created_at,
        **_train_fields(train),
    )


# -----------------------------
# Health
# -----------------------------
@router.get("/health")
def health():
    return {"message": "Railway booking service is running"}


# -----------------------------
# Auth
# -----------------------------
@router.post(
    "/api/auth/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    service = AuthService(db)

    try:
        user, token = service.register(
            name=request.name,
            email=request.email,
            password=request.password,
            contact_number=request.contact_number,
        )
    except (DuplicateEmailError, ValidationFailureError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    return AuthResponse(token=token, user=_user_response(user))


@router.post("/api/auth/login", response_model=AuthResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    service = AuthService(db)

    try:
        user, token = service.login(email=request.email, password=request.password)
    except InvalidCredentialError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    return AuthResponse(token=token, user=_user_response(user))


@router.get("/api/auth/profile", response_model=ProfileResponse)
def profile(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    try:
        user = AuthService(db).get_profile(identity["user_id"])
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc

    return ProfileResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        contact_number=user.contact_number,
        created_at=user.created_at,
    )


# -----------------------------
# Trains
# -----------------------------
@router.get("/api/trains", response_model=list[TrainResponse])
def list_trains(db: Session = Depends(get_db)):
    return [_train_response(train) for train in TrainRepository(db).list_all()]


@router.get("/api/trains/search", response_model=list[TrainResponse])
def search_trains(
    source: str | None = None,
    destination: str | None = None,
    class_type: str | None = None,
    db: Session = Depends(get_db),
):
    if not source or not destination:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Source and destination are required",
        )

    trains = TrainRepository(db).search(
        source=source,
        destination=destination,
        class_type=class_type,
    )
    return [_train_response(train) for train in trains]


@router.get("/api/trains/{train_id}", response_model=TrainDetailResponse)
def get_train(train_id: str, db: Session = Depends(get_db)):
    train = TrainRepository(db).get_by_id(train_id)
    if not train:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Train not found",
        )

    return TrainDetailResponse(
        **_train_response(train).model_dump(),
        route=[
            RouteStopResponse(
                stop_number=stop.stop_number,
                station_name=stop.station.station_name,
                station_code=stop.station.station_code,
                city=stop.station.city,
                arrival_time=stop.arrival_time,
                departure_time=stop.departure_time,
            )
            for stop in train.route
        ],
    )


@router.get("/api/trains/{train_id}/inventory", response_model=InventoryResponse)
def get_train_inventory(train_id: str, db: Session = Depends(get_db)):
    train = TrainRepository(db).get_by_id(train_id)
    if not train:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Train not found",
        )
    return _inventory_stats(train)


# -----------------------------
# Stations
# -----------------------------
@router.get("/api/stations", response_model=list[StationResponse])
def list_stations(db: Session = Depends(get_db)):
    return [
        StationResponse(
            id=station.id,
            station_name=station.station_name,
            station_code=station.station_code,
            city=station.city,
        )
        for station in StationRepository(db).list_all()
    ]


@router.get("/api/stations/search", response_model=list[StationResponse])
def search_stations(query: str | None = None, db: Session = Depends(get_db)):
    if not query:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Search query is required",
        )

    return [
        StationResponse(
            id=station.id,
            station_name=station.station_name,
            station_code=station.station_code,
            city=station.city,
        )
        for station in StationRepository(db).search(query)
    ]


# -----------------------------
# Bookings
# -----------------------------
@router.post(
    "/api/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_booking(
    request: BookingRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    service = BookingService(db)

    try:
        booking = service.create_booking(
            user_id=identity["user_id"],
            train_id=request.train_id,
            journey_date=request.journey_date,
            passengers=[passenger.model_dump() for passenger in request.passengers],
        )
    except (ValidationFailureError, InsufficientInventoryError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc

    return BookingResponse(
        booking_id=booking.id,
        pnr_number=booking.pnr_number,
        total_fare=float(booking.total_fare),
        journey_date=booking.journey_date,
        status=booking.status.value,
        passenger_count=booking.number_of_passengers,
    )


@router.get("/api/bookings", response_model=list[BookingSummaryResponse])
def list_my_bookings(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    rows = BookingService(db).list_bookings(identity["user_id"])
    return [_booking_summary(booking, train) for booking, train in rows]


@router.get("/api/bookings/pnr/{pnr_number}", response_model=PnrStatusResponse)
def pnr_status(pnr_number: str, db: Session = Depends(get_db)):
    try:
        booking, train = BookingService(db).get_pnr_status(pnr_number)
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc

    return PnrStatusResponse(
        pnr_number=booking.pnr_number,
        journey_date=booking.journey_date,
        status=booking.status.value,
        number_of_passengers=booking.number_of_passengers,
        **_train_fields(train),
    )


@router.get("/api/bookings/{booking_id}", response_model=BookingDetailResponse)
def get_booking(
    booking_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    try:
        booking, train = BookingService(db).get_booking(booking_id, identity["user_id"])
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc

    return BookingDetailResponse(
        **_booking_summary(booking, train).model_dump(),
        passengers=[
            PassengerResponse(
                id=passenger.id,
                name=passenger.name,
                age=passenger.age,
                gender=passenger.gender,
                seat_number=passenger.seat_number,
            )
            for passenger in booking.passengers
        ],
    )


@router.put("/api/bookings/{booking_id}/cancel", response_model=CancelBookingResponse)
def cancel_booking(
    booking_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    service = BookingService(db)

    try:
        booking = service.cancel_booking(booking_id, identity["user_id"])
    except (AlreadyCancelledError, PastJourneyError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except NotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except InvalidStateTransitionError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc

    return CancelBookingResponse(
        booking_id=booking.id,
        status=booking.status.value,
        message="Booking cancelled successfully",
    )
