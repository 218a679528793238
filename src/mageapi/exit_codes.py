"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~mageapi.exceptions.MageApiError` subclass, or by the
``call`` command when the API answers with an error result.

Example::

    $ mageapi call GET /V1/products/unknown-sku
    $ echo $?
    5   # EXIT_REQUEST_FAILED -- the API returned a non-200 status
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including configuration problems)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (e.g. an unknown HTTP method)."""

EXIT_SIGNING_FAILURE = 3
"""The request could not be signed."""

EXIT_REQUEST_FAILED = 5
"""The API call completed with an error result (transport failure or non-200 status)."""

EXIT_INTERRUPTED = 130
"""The user pressed Ctrl-C (128 + SIGINT)."""
