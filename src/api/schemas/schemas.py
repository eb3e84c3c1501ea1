from datetime import date, datetime, time

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.infrastructure.security.passwords import MAX_PASSWORD_BYTES


# -----------------------------
# Auth
# -----------------------------
class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    contact_number: str | None = Field(default=None, max_length=20)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: str
    name: str
    email: str


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


class ProfileResponse(BaseModel):
    id: str
    name: str
    email: str
    contact_number: str | None = None
    created_at: datetime


# -----------------------------
# Catalogue
# -----------------------------
class StationResponse(BaseModel):
    id: str
    station_name: str
    station_code: str
    city: str


class RouteStopResponse(BaseModel):
    stop_number: int
    station_name: str
    station_code: str
    city: str
    arrival_time: time | None = None
    departure_time: time | None = None


class TrainResponse(BaseModel):
    id: str
    train_name: str
    train_number: str
    source: str
    destination: str
    departure_time: time
    arrival_time: time
    duration: str
    class_type: str
    fare: float
    available_seats: int


class TrainDetailResponse(TrainResponse):
    route: list[RouteStopResponse]


class InventoryResponse(BaseModel):
    train_id: str
    total_seats: int
    available_seats: int
    booked_seats: int


# -----------------------------
# Bookings
# -----------------------------
class PassengerRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    age: int = Field(ge=1, le=120)
    gender: str = Field(min_length=1, max_length=10)
    seat_number: str | None = Field(default=None, max_length=10)


class BookingRequest(BaseModel):
    train_id: str
    journey_date: date
    passengers: list[PassengerRequest] = Field(min_length=1)


class BookingResponse(BaseModel):
    booking_id: str
    pnr_number: str
    total_fare: float
    journey_date: date
    status: str
    passenger_count: int


class CancelBookingResponse(BaseModel):
    booking_id: str
    status: str
    message: str


class PassengerResponse(BaseModel):
    id: str
    name: str
    age: int
    gender: str
    seat_number: str | None = None


class BookingSummaryResponse(BaseModel):
    booking_id: str
    pnr_number: str
    journey_date: date
    number_of_passengers: int
    total_fare: float
    status: str
    booking_date: datetime
    train_name: str
    train_number: str
    source: str
    destination: str
    departure_time: time
    arrival_time: time
    duration: str


class BookingDetailResponse(BookingSummaryResponse):
    passengers: list[PassengerResponse]


class PnrStatusResponse(BaseModel):
    pnr_number: str
    journey_date: date
    status: str
    number_of_passengers: int
    train_name: str
    train_number: str
    source: str
    destination: str
    departure_time: time
    arrival_time: time
    duration: str
