# restaurant/exceptions.py

from rest_framework import status


class ServiceError(Exception):
    """
    Base class for table registry and booking failures.
    Carries a human-readable message and the HTTP status it maps to.
    """

    default_message = "Request failed"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message=None, status_code=None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class TableNotFound(ServiceError):
    default_message = "Table does not exist"
    status_code = status.HTTP_400_BAD_REQUEST


class DuplicateId(ServiceError):
    default_message = "Table with this id already exists"
    status_code = status.HTTP_409_CONFLICT


class StoreUnavailable(ServiceError):
    default_message = "Reservation store is temporarily unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
