"""Exception hierarchy for mageapi.

All exceptions inherit from :class:`MageApiError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`mageapi.exit_codes`.
The top-level error handler in :func:`mageapi.app.main` catches
``MageApiError`` and exits with the appropriate code.

HTTP-level failures are *not* exceptions: the client returns them as an
:class:`~mageapi.models.ApiResult` with ``error=True``.

Subclass hierarchy::

    MageApiError (exit 1)
    +-- ConfigError         (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- SigningError        (exit 3)
"""

from mageapi.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SIGNING_FAILURE,
)


class MageApiError(Exception):
    """Base exception for all mageapi errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(MageApiError):
    """Raised for configuration problems (unusable cache directory, missing profiles, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class InvalidUsageError(MageApiError):
    """Raised for invalid arguments such as an unsupported HTTP method."""

    exit_code = EXIT_INVALID_USAGE


class SigningError(MageApiError):
    """Raised when a request cannot be signed (e.g. a query parameter shadows an OAuth field)."""

    exit_code = EXIT_SIGNING_FAILURE
