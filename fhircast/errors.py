"""Exception taxonomy for the FHIRcast client.

Only construction-time and payload-building problems are raised.  Faults on
a live connection arrive through its ``disconnect`` / ``error``
notifications, and raw transport errors propagate unwrapped.
"""

from __future__ import annotations


class FhircastError(Exception):
    """Base class for all errors raised by this package."""


class FhircastValidationError(FhircastError, ValueError):
    """Raised when a subscription request or event payload is invalid.

    Carries the first violation found; checks never aggregate.
    """


class ConnectionConstructionError(FhircastValidationError):
    """Raised when a connection is built from a pending or invalid request.

    Always raised before any transport exists.
    """
