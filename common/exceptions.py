"""
common.exceptions
~~~~~~~~~~~~~~~~~
Application error taxonomy.

Every error carries an HTTP-style ``status_code`` and a machine-readable
``code`` so that a presentation layer can map it to a response without
knowing the concrete class:

=====================  ======  ==================================
Class                  Status  Raised when
=====================  ======  ==================================
``DuplicateNameError``  409    Two default entries would share a name.
``FormatError``         400    A value does not match its format.
``StorageFailure``      500    The store or audit adapter failed.
=====================  ======  ==================================
"""
from __future__ import annotations

from http import HTTPStatus


class AppError(Exception):
    """Base application error.  Subclass to define domain-specific errors."""

    status_code: int = HTTPStatus.BAD_REQUEST
    default_code: str = "error"
    default_detail: str = "An error occurred."

    def __init__(self, detail: str | None = None, code: str | None = None) -> None:
        self.detail = detail or self.default_detail
        self.code = code or self.default_code
        super().__init__(self.detail)

    def __str__(self) -> str:
        return self.detail


class ConflictError(AppError):
    status_code = HTTPStatus.CONFLICT
    default_code = "conflict"
    default_detail = "A resource conflict occurred."


class ValidationError(AppError):
    status_code = HTTPStatus.BAD_REQUEST
    default_code = "validation_error"
    default_detail = "Validation failed."


class TechnicalError(AppError):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    default_code = "internal_error"
    default_detail = "An internal error occurred."


# ---------------------------------------------------------------------------
# Metadata errors
# ---------------------------------------------------------------------------

class DuplicateNameError(ConflictError):
    """A default metadata entry with the same case-insensitive name exists."""

    default_code = "duplicate_metadata_name"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"A metadata named '{name}' already exists.")


class FormatError(ValidationError):
    """A metadata value does not satisfy the grammar of its declared format."""

    default_code = "invalid_metadata_format"

    def __init__(self, format: str, value: str) -> None:  # noqa: A002
        self.format = format
        self.value = value
        super().__init__(
            f"Value '{value}' is not valid for metadata format {format}."
        )


class StorageFailure(TechnicalError):
    """
    Wraps any store- or audit-adapter failure.

    ``operation`` is a human-readable summary such as
    ``"delete metadata 'support-email'"``; the original exception is kept as
    ``__cause__``.
    """

    default_code = "storage_failure"

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"An error occurred while trying to {operation}.")
