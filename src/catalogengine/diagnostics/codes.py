"""Diagnostic codes and data structures.

Defines error codes and structured diagnostic messages.
Python 3.11+. Zero external dependencies.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal

__all__ = [
    "Diagnostic",
    "DiagnosticCode",
]


class DiagnosticCode(Enum):
    """Error codes with unique identifiers.

    Organized by category:
        1000-1999: Catalog errors (load, save, sharing)
        2000-2999: Extraction errors (url matching, markup reading)
        3000-3999: Translation errors (provider failures, mismatches)
        4000-4999: Configuration errors
    """

    # Catalog errors (1000-1999)
    CATALOG_LOAD_FAILED = 1001
    CATALOG_SAVE_FAILED = 1002
    SHARED_SOURCE_LOCALE_MISMATCH = 1003
    CATALOG_NOT_LOADED = 1004

    # Extraction errors (2000-2999)
    URL_NO_MATCHING_PATTERN = 2001
    MARKUP_PARSE_FAILED = 2003
    MAX_DEPTH_EXCEEDED = 2004

    # Translation errors (3000-3999)
    PROVIDER_FAILED = 3001
    PROVIDER_RESPONSE_INVALID = 3002
    TRANSLATION_MISMATCH = 3003
    RETRIES_EXHAUSTED = 3004

    # Configuration errors (4000-4999)
    CONFIG_INVALID = 4001


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """Structured diagnostic message.

    Attributes:
        code: Unique error code
        message: Human-readable error description
        hint: Suggestion for fixing the error
        file: Source or catalog file the diagnostic refers to
        severity: Error severity level
    """

    code: DiagnosticCode
    message: str
    hint: str | None = None
    file: str | None = None
    severity: Literal["error", "warning"] = "error"

    def __str__(self) -> str:
        """Return human-readable error description."""
        return self.message

    def format_error(self) -> str:
        """Format diagnostic in a compiler-like layout.

        Example output:
            error[URL_NO_MATCHING_PATTERN]: No url pattern matches '/about'
              --> src/routes/+page.svelte
              = help: Add the route to the url patterns of the extractor

        Returns:
            Formatted error message
        """
        lines = [f"{self.severity}[{self.code.name}]: {self.message}"]
        if self.file:
            lines.append(f"  --> {self.file}")
        if self.hint:
            lines.append(f"  = help: {self.hint}")
        return "\n".join(lines)
