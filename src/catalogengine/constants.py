"""Shared constants for catalogengine.

Centralized configuration constants used across extraction, catalog and
translation packages. Placing constants here avoids circular imports and
provides a single source of truth.

Constants are grouped by domain:
- Extraction: comment directives, heuristic sample markers
- Catalog: file naming, reference encoding, url flags
- Translation: batching and retry defaults
- Hot reload: debouncing and full-reload thresholds

Python 3.11+. Zero external dependencies.
"""

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Extraction
    "DIRECTIVE_PREFIX",
    "DIRECTIVE_IGNORE",
    "DIRECTIVE_INCLUDE",
    "DIRECTIVE_IGNORE_FILE",
    "DIRECTIVE_CONTEXT",
    "HEURISTIC_PLACEHOLDER",
    "MAX_DEPTH",
    # Catalog
    "CATALOG_EXTENSION",
    "URL_CATALOG_SUFFIX",
    "URL_ADAPTER_FLAG_PREFIX",
    "URL_PATTERN_CONTEXT_PREFIX",
    "REF_SEPARATOR",
    "DEFAULT_LOCALES_DIR",
    "DEFAULT_PLURAL_EXPR",
    "DEFAULT_NPLURALS",
    # Translation
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_PARALLEL",
    "MAX_TRANSLATION_ATTEMPTS",
    # Hot reload
    "SELF_WRITE_DEBOUNCE_SECONDS",
    "HMR_FULL_RELOAD_THRESHOLD",
    # Runtime output
    "CATALOG_VAR_NAME",
    "PLURAL_FUNC_NAME",
]

# ============================================================================
# EXTRACTION
# ============================================================================

# Comment directives steer extraction for the next sibling only,
# except the ignore-file directive which aborts the whole file.
DIRECTIVE_PREFIX: str = "@i18n-"
DIRECTIVE_IGNORE: str = "@i18n-ignore"
DIRECTIVE_INCLUDE: str = "@i18n-include"
DIRECTIVE_IGNORE_FILE: str = "@i18n-ignore-file"
DIRECTIVE_CONTEXT: str = "@i18n-context:"

# Stands in for every non-text child when building a heuristic sample string.
HEURISTIC_PLACEHOLDER: str = "#"

# Recursion bound for walkers and the placeholder compiler.
MAX_DEPTH: int = 100

# ============================================================================
# CATALOG
# ============================================================================

CATALOG_EXTENSION: str = ".po"

# With separate url storage, url-pattern items go to "<locale>.url.po".
URL_CATALOG_SUFFIX: str = ".url"

# PO flag marking an item as a url pattern owned by an extractor: "url:<key>"
URL_ADAPTER_FLAG_PREFIX: str = "url:"

URL_PATTERN_CONTEXT_PREFIX: str = "original: "

# Joins placeholder descriptions of one occurrence inside a PO auto comment.
REF_SEPARATOR: str = "; "

DEFAULT_LOCALES_DIR: str = "src/locales"

DEFAULT_PLURAL_EXPR: str = "(n != 1)"
DEFAULT_NPLURALS: int = 2

# ============================================================================
# TRANSLATION
# ============================================================================

DEFAULT_BATCH_SIZE: int = 50
DEFAULT_PARALLEL: int = 4

# A batch is submitted at most this many times; the remainder is abandoned.
MAX_TRANSLATION_ATTEMPTS: int = 3

# ============================================================================
# HOT RELOAD
# ============================================================================

# Catalog file events this soon after our own save are not external edits.
SELF_WRITE_DEBOUNCE_SECONDS: float = 1.0

# Patches touching more slots than this are sent as a full reload instead.
HMR_FULL_RELOAD_THRESHOLD: int = 200

# ============================================================================
# RUNTIME OUTPUT
# ============================================================================

CATALOG_VAR_NAME: str = "c"
PLURAL_FUNC_NAME: str = "p"
