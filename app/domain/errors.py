"""
Payment schedule error taxonomy.

Validation errors are raised before any write and carry enough detail for the
caller to fix the request. Storage errors wrap whatever the persistence layer
raised and are never retried.
"""


class PaymentScheduleError(Exception):
    """Base class for all payment schedule failures."""


class PaymentValidationError(PaymentScheduleError, ValueError):
    """Request rejected before touching storage."""


class InvalidRangeError(PaymentValidationError):
    """Session start date is after its end date."""


class InvalidStatusError(PaymentValidationError):
    pass


class OutOfRangeError(PaymentValidationError):
    """Month lies outside the session's calendar."""


class InvalidSubjectTypeError(PaymentValidationError):
    pass


class InvalidAmountError(PaymentValidationError):
    pass


class InvalidFilterError(PaymentValidationError):
    """Unknown status filter or sort mode."""


class NotFoundError(PaymentScheduleError, LookupError):
    """Referenced session or subject does not exist."""


class StorageError(PaymentScheduleError):
    """Opaque failure of the persistence layer."""
