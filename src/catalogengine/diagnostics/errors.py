"""catalogengine exception hierarchy with structured diagnostics.

All exceptions may carry a Diagnostic object for rich error information.

Python 3.11+. Zero external dependencies.
"""

from .codes import Diagnostic


class CatalogEngineError(Exception):
    """Base exception for all catalogengine errors.

    Attributes:
        diagnostic: Structured diagnostic information (optional)
    """

    def __init__(self, message: str | Diagnostic) -> None:
        """Initialize CatalogEngineError.

        Args:
            message: Error message string OR Diagnostic object
        """
        if isinstance(message, Diagnostic):
            self.diagnostic: Diagnostic | None = message
            super().__init__(message.format_error())
        else:
            self.diagnostic = None
            super().__init__(message)


class CatalogLoadError(CatalogEngineError):
    """Persisted catalog exists but could not be read or parsed.

    A missing catalog file is not an error: it loads as an empty catalog.
    """


class CatalogSaveError(CatalogEngineError):
    """Persisted catalog could not be written."""


class SharedCatalogError(CatalogEngineError):
    """Extractors sharing a catalog location disagree on its setup.

    Example: two extractors with different source locales pointing at the
    same catalog directory.
    """


class URLPatternError(CatalogEngineError):
    """A literal link has no matching route pattern.

    Fatal for the transform of the offending file: it indicates a
    configuration or usage bug rather than a transient condition.

    Attributes:
        url: The literal link that failed to match
        file: The source file containing the link
    """

    def __init__(self, message: str | Diagnostic, *, url: str = "", file: str = "") -> None:
        """Initialize URLPatternError.

        Args:
            message: Error message string OR Diagnostic object
            url: The literal link that failed to match
            file: The source file containing the link
        """
        super().__init__(message)
        self.url = url
        self.file = file


class TranslationError(CatalogEngineError):
    """Machine translation provider failed or returned an unusable response.

    Raised by translator adapters; the translation queue logs it and abandons
    the batch for the current run.
    """


class MarkupParseError(CatalogEngineError):
    """Markup could not be read into the generic node shape.

    Attributes:
        position: Character offset where reading failed
    """

    def __init__(self, message: str | Diagnostic, *, position: int = -1) -> None:
        """Initialize MarkupParseError.

        Args:
            message: Error message string OR Diagnostic object
            position: Character offset where reading failed
        """
        super().__init__(message)
        self.position = position


class ConfigError(CatalogEngineError, ValueError):
    """Configuration file or values are invalid.

    Also a ValueError, so callers validating settings can catch either.
    """
