"""Diagnostic system for catalogengine errors.

Provides structured error diagnostics with codes and hints.

Python 3.11+. Zero external dependencies.
"""

from .codes import Diagnostic, DiagnosticCode
from .errors import (
    CatalogEngineError,
    CatalogLoadError,
    CatalogSaveError,
    ConfigError,
    MarkupParseError,
    SharedCatalogError,
    TranslationError,
    URLPatternError,
)

__all__ = [
    "CatalogEngineError",
    "CatalogLoadError",
    "CatalogSaveError",
    "ConfigError",
    "Diagnostic",
    "DiagnosticCode",
    "MarkupParseError",
    "SharedCatalogError",
    "TranslationError",
    "URLPatternError",
]
