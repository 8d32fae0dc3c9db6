"""
Custom exceptions for I2Localizer.
"""

class I2LocalizerError(Exception):
    """Base exception for I2Localizer."""
    pass

class ParseError(I2LocalizerError):
    """Raised when a dump or translation file cannot be parsed at all."""
    pass

class ConfigError(I2LocalizerError):
    """Raised when configuration-related errors occur."""
    pass

class TranslationError(I2LocalizerError):
    """Raised when translation-related errors occur."""
    pass

class TranslationServiceError(TranslationError):
    """Generic failure reported by the remote translation service."""

    def __init__(self, message: str, status: int = None):
        super().__init__(message)
        self.status = status

class RateLimitError(TranslationServiceError):
    """The translation service rejected the request with HTTP 429."""
    pass

class QuotaExceededError(TranslationServiceError):
    """The translation service requires payment or credits (HTTP 402)."""
    pass

class WorkerError(I2LocalizerError):
    """Raised when the processing worker is misused."""
    pass
