from fastapi import status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(ServiceError):
    """Malformed input: non-positive amount, missing field, rejection without reason."""

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> None:
        super().__init__(message, status_code)


class Forbidden(ServiceError):
    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class NotFound(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class InvalidTransition(ServiceError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class DependencyFailure(ServiceError):
    """Store unreachable or returned an unexpected shape."""

    def __init__(self, message: str = "Payment store is unavailable, please retry") -> None:
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)
