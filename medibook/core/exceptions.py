from fastapi import HTTPException, status


class BookingError(HTTPException):
    """Base class for errors raised by the booking services.

    Each subclass fixes the HTTP status it maps to, so the routers never
    translate errors themselves.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request"

    def __init__(self, detail: str = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
        )

    @property
    def message(self) -> str:
        return self.detail


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class ConflictError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "This time slot is already booked"


class ForbiddenError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not authorized to access this appointment"


class InvalidTransitionError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid status transition"


class ValidationError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request data"
