"""Exception types for News Haiku Feed."""


class HaikuFeedError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(HaikuFeedError):
    """Raised at startup when required configuration is missing or invalid."""


class TranslationError(HaikuFeedError):
    """Raised when a translation request cannot be fulfilled."""
