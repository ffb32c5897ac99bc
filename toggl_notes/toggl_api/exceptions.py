# toggl_notes/toggl_api/exceptions.py
# Description: Typed failures raised by the Toggl Track API client
#
# Imports
from typing import Optional
#
########################################################################################################################
#
# Classes:

class TogglAPIError(Exception):
    """Base class for every failure coming out of the Toggl API client."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TogglAuthError(TogglAPIError):
    """Missing or rejected API token (HTTP 401/403)."""
    pass


class TogglNotFoundError(TogglAPIError):
    """The addressed resource does not exist (HTTP 404)."""
    pass


class TogglValidationError(TogglAPIError):
    """The service rejected the request body (HTTP 400/422).

    The message carries the response text verbatim.
    """
    pass


class TogglTransportError(TogglAPIError):
    """Network failure or timeout before a response was received."""
    pass


class TogglInvalidResponseError(TogglAPIError):
    """A 2xx response whose body is not JSON or does not fit the expected record."""
    pass

#
# End of exceptions.py
########################################################################################################################
