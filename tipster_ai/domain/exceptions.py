"""
Domain exceptions for the tipster system.
"""

from typing import Optional


class TipsterException(Exception):
    """Base exception for tipster errors."""
    pass


class ServiceException(TipsterException):
    """
    Error calling the text generation service.

    Raised for network failures, timeouts and error responses that are
    not a throttling signal. Never retried.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        msg = message
        if status_code:
            msg += f" (status: {status_code})"
        super().__init__(msg)


class ThrottledException(ServiceException):
    """
    The generation service rejected the call for rate or quota reasons.

    Callers catch this before ServiceException to show a
    "try again later" message instead of a generic failure.
    """

    def __init__(self, message: str = "Generation quota exhausted", status_code: Optional[int] = 429):
        super().__init__(message, status_code)


class ModelNotFoundException(ServiceException):
    """The requested model does not exist or is not supported."""

    def __init__(self, model: str, status_code: Optional[int] = 404):
        self.model = model
        super().__init__(f"Model not found or unsupported: {model}", status_code)


class MalformedResponseException(ServiceException):
    """The service answered, but no text payload could be found in the envelope."""

    def __init__(self, message: str = "Unrecognized response envelope"):
        super().__init__(message)


class LookupMissException(TipsterException):
    """No finished fixture matched a stored prediction."""

    def __init__(self, prediction_key: str, reason: str = "no finished fixture found"):
        self.prediction_key = prediction_key
        self.reason = reason
        super().__init__(f"{prediction_key}: {reason}")


class PersistenceException(TipsterException):
    """A write to the prediction store failed."""
    pass
