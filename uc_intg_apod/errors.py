"""
Errors raised by the APOD widget core.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

from typing import Optional


class APODError(Exception):
    """Base class for APOD errors."""


class InvalidDateError(APODError, ValueError):
    """Date string is not of the form YYYY-MM-DD."""

    def __init__(self, string: str):
        self.string = string
        super().__init__(f"Invalid date: {string!r}")


class InvalidPayloadError(APODError, ValueError):
    """Payload is not a decodable APOD object."""


class APODRequestError(APODError):
    """APOD service answered with an error or did not answer at all."""

    def __init__(self, url: str, status: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status = status
        self.reason = reason
        if status is not None:
            message = f"HTTP {status} from {url}"
        else:
            message = f"Request to {url} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
