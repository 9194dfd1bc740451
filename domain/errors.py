"""
Domain Errors

Exceptions raised by services and caught by pages, where they are shown
to the user as a notification and the current operation is aborted.
"""


class PricingAdminError(Exception):
    """Base class for all user-visible errors."""


class ValidationError(PricingAdminError):
    """Input rejected before anything was written."""


class NotFoundError(PricingAdminError):
    """A referenced record does not exist."""


class StorageError(PricingAdminError):
    """Object storage upload or delete failed."""


class CsvImportError(PricingAdminError):
    """The CSV could not be read at all (no header line)."""
