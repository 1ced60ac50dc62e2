"""
Exception hierarchy for random key generation.

Errors raised by the record store collaborator are deliberately absent:
they propagate to the caller unchanged.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class RandomKeyError(Exception):
    """Base class for all errors raised by this package."""
    code: str = "random_key_error"
    message: str
    details: Optional[Dict[str, Any]]

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message or self.__class__.__name__)
        if code is not None:
            self.code = code
        self.message = message or self.__class__.__name__
        self.details = details or None


class ConfigError(RandomKeyError):
    """Digit count out of range for the storage class, or BIGINT on a 32-bit host."""
    code = "config_error"


class ExhaustedRetriesError(RandomKeyError):
    """Retry ceiling reached without finding a free key."""
    code = "exhausted_retries"

    @property
    def attempts(self) -> Optional[int]:
        return (self.details or {}).get("attempts")


class GenerationCancelledError(RandomKeyError):
    """The cancellation signal was set before a free key was found."""
    code = "generation_cancelled"
