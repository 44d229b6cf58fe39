"""Custom exception hierarchy for the Chalk application.

This module defines the base exception class and specific error types
used throughout the application for error handling.
"""


class ChalkError(Exception): ...


class InternalError(ChalkError):
    """Error caused by failure in app logic."""


class ConfigError(ChalkError):
    """Error caused by invalid user configuration."""


class AuthenticationError(ChalkError):
    """Error caused by failure to establish a portal session."""


class FetchError(ChalkError):
    """Error caused by a non-successful portal API response."""

    def __init__(self, status: int, url: str):
        super().__init__(f"API request failed with status {status}")
        self.status = status
        self.url = url
