class RailwayBookingError(Exception):
    """
    Base exception for all domain-level errors
    inside the railway booking service.
    """


class ValidationFailureError(RailwayBookingError):
    """Raised when required fields are missing or malformed."""


class NotFoundError(RailwayBookingError):
    """Raised when a train, booking or user does not exist for the caller."""


class InsufficientInventoryError(RailwayBookingError):
    """
    Raised when a train has fewer available seats than requested.
    """

    def __init__(self, available_seats: int):
        self.available_seats = available_seats
        super().__init__(
            f"Only {available_seats} seats available for this train"
        )


class AlreadyCancelledError(RailwayBookingError):
    """Raised when cancelling a booking that is already cancelled."""

    def __init__(self, message: str = "Booking is already cancelled"):
        super().__init__(message)


class PastJourneyError(RailwayBookingError):
    """Raised when cancelling a booking whose journey date has passed."""

    def __init__(self, message: str = "Cannot cancel past journeys"):
        super().__init__(message)


class InvalidStateTransitionError(RailwayBookingError):
    """
    Raised when an illegal booking state transition is attempted.
    """

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state

        message = (
            f"Illegal state transition attempted: "
            f"{from_state} -> {to_state}"
        )
        super().__init__(message)


class DuplicateEmailError(RailwayBookingError):
    """Raised when registering an email that already has an account."""

    def __init__(self, message: str = "User already exists"):
        super().__init__(message)


class InvalidCredentialError(RailwayBookingError):
    """Raised for missing, malformed or unverifiable credentials."""


class ExpiredCredentialError(RailwayBookingError):
    """Raised when a bearer token is past its expiry."""

    def __init__(self, message: str = "Token expired. Please login again."):
        super().__init__(message)


class UnavailableError(RailwayBookingError):
    """
    Raised when the storage layer fails. The message is safe to show
    to callers and carries no internal detail.
    """

    def __init__(self, message: str = "Service temporarily unavailable. Please try again."):
        super().__init__(message)
