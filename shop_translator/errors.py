"""Exception types raised by the translation pipeline."""
from typing import Optional


class TranslatorError(Exception):
    """Base class for all translator errors."""


class ConfigurationError(TranslatorError):
    """Raised when required configuration (e.g. the API key) is missing."""


class NotFoundError(TranslatorError):
    """Raised when a source entity, snippet set or language does not exist."""


class TransportError(TranslatorError):
    """Raised when the provider cannot be reached or the request times out."""


class ProviderError(TranslatorError):
    """Raised when the provider answers with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TranslationParseError(TranslatorError):
    """
    Raised when no recovery tier could extract any key/value pair from a
    model response.

    The raw, sanitized and repaired text are kept on the exception so they can
    be logged for troubleshooting.
    """

    def __init__(self, message: str, raw_text: str, sanitized_text: str = '', repaired_text: str = ''):
        super().__init__(message)
        self.raw_text = raw_text
        self.sanitized_text = sanitized_text
        self.repaired_text = repaired_text
        self.head = raw_text[:100]
        self.tail = raw_text[-100:]
