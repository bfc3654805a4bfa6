"""
Service-level errors. Each one knows the HTTP status it maps to, main.py turns
them into JSON responses.
"""
from fastapi import status


class ServiceError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class DuplicateKey(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidReference(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reference):
        super().__init__(f"Menu item with ID {reference} not found")
        self.reference = reference


class InvalidStatus(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class InternalError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
