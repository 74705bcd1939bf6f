"""Configuration of catalogs, extractors and machine translation.

All configuration objects are frozen dataclasses validated on creation;
invalid values raise ValueError. load_config() reads them from TOML, either
a ``[tool.catalogengine]`` table in pyproject.toml or the top level of a
dedicated file:

    [tool.catalogengine]
    locales = ["en", "fr", "fr-CH"]
    source_locale = "en"
    directory = "src/locales"

    [tool.catalogengine.fallback]
    fr-CH = ["fr"]

    [tool.catalogengine.translator]
    batch_size = 50
    locale_groups = [["fr", "fr-CH"]]

    [[tool.catalogengine.extractors]]
    key = "main"
    files = ["src/**/*.html"]
    url_patterns = ["/", "/items/:id"]
    localize_urls = true

Callables (heuristics, load ID generators) and runtime identifiers can only be set
from Python. load_config() reports invalid files as ConfigError, a ValueError
carrying a CONFIG_INVALID diagnostic.

Python 3.11+.
"""

from __future__ import annotations

import re
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path, PurePosixPath
from typing import Any

import pathspec

from catalogengine.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_LOCALES_DIR,
    DEFAULT_PARALLEL,
    MAX_TRANSLATION_ATTEMPTS,
)
from catalogengine.core.heuristic import HeuristicFunc
from catalogengine.diagnostics import ConfigError, Diagnostic, DiagnosticCode
from catalogengine.enums import Mode
from catalogengine.extraction.runtime import RuntimeVars
from catalogengine.locale_utils import validate_locale

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Sections
    "CatalogConfig",
    "ExtractorConfig",
    "TranslatorConfig",
    "Config",
    # Loading
    "load_config",
    "default_load_id",
]

_TOOL_TABLE = "catalogengine"

_PYTHON_ONLY = frozenset({"generate_load_id", "heuristic", "runtime"})

_LOAD_ID_SEP_RE = re.compile(r"[^A-Za-z0-9]+")


def default_load_id(filename: str) -> str:
    """Load ID derived from a file path, extension dropped.

    Example:
        >>> default_load_id("src/routes/about/page.html")
        'src_routes_about_page'
    """
    path = PurePosixPath(filename.replace("\\", "/"))
    return _LOAD_ID_SEP_RE.sub("_", str(path.with_suffix(""))).strip("_") or "main"


@dataclass(frozen=True, slots=True)
class CatalogConfig:
    """Locales and persistence of a catalog.

    Attributes:
        locales: All locales, source locale included
        source_locale: Locale the source texts are written in
        fallback: Explicit fallback chains by locale, before the automatic
            base-language and source-locale fallbacks
        directory: Directory of the catalog files
        separate_urls: Store url pattern items in their own files
    """

    locales: tuple[str, ...] = ("en",)
    source_locale: str = "en"
    fallback: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    directory: str = DEFAULT_LOCALES_DIR
    separate_urls: bool = True

    def __post_init__(self) -> None:
        """Validate locales and fallbacks.

        Raises:
            ValueError: If a locale is unknown, duplicated or not configured
        """
        if not self.locales:
            msg = "At least one locale is required"
            raise ValueError(msg)
        if len(set(self.locales)) != len(self.locales):
            msg = f"Duplicate locales in {self.locales!r}"
            raise ValueError(msg)
        for locale in self.locales:
            validate_locale(locale)
        if self.source_locale not in self.locales:
            msg = f"Source locale {self.source_locale!r} is not one of {self.locales!r}"
            raise ValueError(msg)
        for locale, chain in self.fallback.items():
            unknown = [loc for loc in (locale, *chain) if loc not in self.locales]
            if unknown:
                msg = f"Fallback for {locale!r} names unconfigured locales: {unknown!r}"
                raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class ExtractorConfig:
    """One extractor: which files it handles and how.

    Attributes:
        key: Unique name of the extractor
        files: Glob patterns (gitignore syntax) of handled files
        ignore: Glob patterns excluded from files
        granular_load: Compile one array per load ID instead of one per catalog
        generate_load_id: Maps a file to its load ID when granular
        url_patterns: Route patterns whose links are translated
        localize_urls: Prefix compiled links with the locale
        heuristic: Extraction heuristic; None uses the default predicate
        mode: Operating mode
        runtime: Identifiers emitted into transformed code
    """

    key: str = "main"
    files: tuple[str, ...] = ("src/**/*.html",)
    ignore: tuple[str, ...] = ()
    granular_load: bool = False
    generate_load_id: Callable[[str], str] = default_load_id
    url_patterns: tuple[str, ...] = ()
    localize_urls: bool = False
    heuristic: HeuristicFunc | None = None
    mode: Mode = Mode.DEV
    runtime: RuntimeVars = field(default_factory=RuntimeVars)
    _files_spec: pathspec.PathSpec = field(init=False, repr=False, compare=False)
    _ignore_spec: pathspec.PathSpec = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Compile file globs.

        Raises:
            ValueError: If the key is empty or no file pattern is given
        """
        if not self.key:
            msg = "Extractor key cannot be empty"
            raise ValueError(msg)
        if not self.files:
            msg = f"Extractor {self.key!r} handles no files"
            raise ValueError(msg)
        object.__setattr__(self, "_files_spec", pathspec.GitIgnoreSpec.from_lines(self.files))
        object.__setattr__(self, "_ignore_spec", pathspec.GitIgnoreSpec.from_lines(self.ignore))

    def matches(self, filename: str) -> bool:
        """True if the extractor handles a file (path relative to the project root)."""
        path = filename.replace("\\", "/")
        return self._files_spec.match_file(path) and not self._ignore_spec.match_file(path)


@dataclass(frozen=True, slots=True)
class TranslatorConfig:
    """Machine translation batching.

    Attributes:
        batch_size: Maximum items per provider call
        parallel: Maximum concurrent provider calls per locale group
        max_attempts: Maximum submissions of a batch
        locale_groups: Locales translated together in one request
    """

    batch_size: int = DEFAULT_BATCH_SIZE
    parallel: int = DEFAULT_PARALLEL
    max_attempts: int = MAX_TRANSLATION_ATTEMPTS
    locale_groups: tuple[tuple[str, ...], ...] = ()

    def __post_init__(self) -> None:
        """Validate limits and groups.

        Raises:
            ValueError: If a limit is not positive or a locale is in two groups
        """
        for name in ("batch_size", "parallel", "max_attempts"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 1:
                msg = f"{name} must be a positive integer, got {value!r}"
                raise ValueError(msg)
        grouped = [locale for group in self.locale_groups for locale in group]
        if len(set(grouped)) != len(grouped):
            msg = f"A locale appears in more than one group: {self.locale_groups!r}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class Config:
    """Complete configuration."""

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    extractors: tuple[ExtractorConfig, ...] = (ExtractorConfig(),)
    translator: TranslatorConfig = field(default_factory=TranslatorConfig)

    def __post_init__(self) -> None:
        keys = [extractor.key for extractor in self.extractors]
        if len(set(keys)) != len(keys):
            msg = f"Duplicate extractor keys: {keys!r}"
            raise ValueError(msg)


def _section(cls: type, table: Mapping[str, Any], where: str, **converted: Any) -> Any:
    allowed = {f.name for f in fields(cls) if f.init and f.name not in _PYTHON_ONLY}
    unknown = set(table) - allowed
    if unknown:
        msg = f"Unknown keys in {where}: {sorted(unknown)!r}"
        raise ValueError(msg)
    values = {name: tuple(value) if isinstance(value, list) else value for name, value in table.items()}
    values.update(converted)
    return cls(**values)


def load_config(path: str | Path) -> Config:
    """Read configuration from a TOML file.

    A file named pyproject.toml is read from its ``[tool.catalogengine]``
    table; any other file from its top level.

    Raises:
        OSError: If the file cannot be read
        ConfigError: If the TOML is invalid or a value fails validation
    """
    path = Path(path)
    with path.open("rb") as f:
        try:
            document = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise _config_error(f"Invalid TOML: {e}", path) from e
    try:
        return _build_config(document, path)
    except ValueError as e:
        raise _config_error(str(e), path) from e


def _config_error(message: str, path: Path) -> ConfigError:
    return ConfigError(
        Diagnostic(
            code=DiagnosticCode.CONFIG_INVALID,
            message=message,
            hint="See the [tool.catalogengine] keys documented in catalogengine.config",
            file=str(path),
        )
    )


def _build_config(document: dict[str, Any], path: Path) -> Config:
    table: dict[str, Any] = document
    if path.name == "pyproject.toml":
        table = document.get("tool", {}).get(_TOOL_TABLE, {})
    table = dict(table)
    translator_table = table.pop("translator", {})
    extractor_tables = table.pop("extractors", [{}])
    fallback = {locale: tuple(chain) for locale, chain in table.pop("fallback", {}).items()}
    catalog = _section(CatalogConfig, table, path.name, fallback=fallback)
    translator = _section(
        TranslatorConfig,
        translator_table,
        f"{path.name} translator",
        locale_groups=tuple(tuple(group) for group in translator_table.get("locale_groups", ())),
    )
    extractors = tuple(
        _section(
            ExtractorConfig,
            extractor,
            f"{path.name} extractor {extractor.get('key', i)!r}",
            **({"mode": Mode(extractor["mode"])} if "mode" in extractor else {}),
        )
        for i, extractor in enumerate(extractor_tables)
    )
    return Config(catalog=catalog, extractors=extractors, translator=translator)
