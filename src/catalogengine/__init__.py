"""catalogengine - Message extraction and catalog compilation for web UIs.

Finds translatable text in markup and script sources, rewrites the sources
to look the text up at runtime, keeps gettext PO catalogs in sync with the
sources, backfills missing translations through a pluggable machine
translation provider, and compiles catalogs into compact runtime arrays.

Public API:
    CatalogStore - One extractor's catalog: transform, compile, save, hot reload
    Config / CatalogConfig / ExtractorConfig / TranslatorConfig - Configuration
    load_config - Read configuration from TOML
    transform - Extract and rewrite a single markup file
    compile_translation / compile_plural - Catalog text to runtime form
    JSONTextTranslator - Translator over a text completion callable

Exceptions:
    CatalogEngineError - Base exception class
    CatalogLoadError / CatalogSaveError - Catalog persistence failures
    SharedCatalogError - Incompatible extractors sharing a catalog
    ConfigError - Invalid configuration file or values
    MarkupParseError / URLPatternError - Extraction failures
    TranslationError - Unusable provider responses

Submodules:
    catalogengine.core - Messages, heuristics, slot indices
    catalogengine.extraction - Markup parsing, mixed content fusion, rewriting
    catalogengine.catalog - Catalog items, PO storage, url routes, sharing
    catalogengine.compiler - Placeholder compiler and compiled artifacts
    catalogengine.translation - Batching and retry engine for machine translation
"""

from .catalog import POFileStorage, SharedCatalogRegistry, URLRoutes
from .compiler import compile_plural, compile_translation
from .config import CatalogConfig, Config, ExtractorConfig, TranslatorConfig, load_config
from .core import IndexTracker, Message, default_heuristic
from .diagnostics import (
    CatalogEngineError,
    CatalogLoadError,
    CatalogSaveError,
    ConfigError,
    MarkupParseError,
    SharedCatalogError,
    TranslationError,
    URLPatternError,
)
from .enums import Mode
from .extraction import transform
from .store import CatalogStore, LocaleStatus
from .translation import JSONTextTranslator, Translator

# Version information - Auto-populated from package metadata
try:
    from importlib.metadata import PackageNotFoundError
    from importlib.metadata import version as _get_version
except ImportError as e:
    raise RuntimeError("importlib.metadata unavailable - Python version too old? " + str(e)) from e

try:
    __version__ = _get_version("catalogengine")
except PackageNotFoundError:
    # Development mode: package not installed yet
    __version__ = "0.0.0+dev"

__all__ = [
    "CatalogConfig",
    "CatalogEngineError",
    "CatalogLoadError",
    "CatalogSaveError",
    "CatalogStore",
    "Config",
    "ConfigError",
    "ExtractorConfig",
    "IndexTracker",
    "JSONTextTranslator",
    "LocaleStatus",
    "MarkupParseError",
    "Message",
    "Mode",
    "POFileStorage",
    "SharedCatalogError",
    "SharedCatalogRegistry",
    "TranslationError",
    "Translator",
    "TranslatorConfig",
    "URLPatternError",
    "URLRoutes",
    "__version__",
    "compile_plural",
    "compile_translation",
    "default_heuristic",
    "load_config",
    "transform",
]
