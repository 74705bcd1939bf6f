"""Route patterns as translatable url items.

A route pattern such as ``/items/:id`` is stored in the catalog with its
parameters replaced by positional placeholders (``/items/{0}``), so it is
translated like any other message (``/elementos/{0}``). Links found in url
attributes are matched against the patterns; each link compiles to the
translated pattern filled with the link's own parameter values, optionally
localized (``/es/elementos/42``).

Pattern syntax:
    :name     one path segment
    *name     one or more path segments
    \\:       literal colon (likewise for ``*`` and ``\\``)

The URL manifest summarizes every pattern with its localized forms, one per
locale, for runtime routing; URLMatcher resolves a request path back to the
source pattern and the locale it was written in.

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

from catalogengine.compiler.placeholders import compile_translation
from catalogengine.constants import URL_PATTERN_CONTEXT_PREFIX
from catalogengine.core.heuristic import HeuristicDetails, has_letter
from catalogengine.core.message import Message
from catalogengine.enums import MessageKind, Scope

from .item import Catalog

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Patterns
    "URLPattern",
    "URLRoutes",
    # Localization
    "URLLocalizer",
    "localize_default",
    # Runtime matching
    "URLManifest",
    "URLMatch",
    "URLMatcher",
]

logger = logging.getLogger(__name__)

URLLocalizer = Callable[[str, str], str]
"""Localize a translated path for a locale: (path, locale) -> path."""

URLManifest = list[tuple[str, list[str]]]
"""(source pattern, [localized pattern per locale]) for every route."""

_PARAM_NAME_RE = re.compile(r"[A-Za-z_$][\w$]*")
_SPECIAL = frozenset(":*\\")


def localize_default(path: str, locale: str) -> str:
    """Prefix a path with the locale, dropping a trailing slash.

    Example:
        >>> localize_default("/about", "fr")
        '/fr/about'
        >>> localize_default("/", "fr")
        '/fr'
    """
    localized = f"/{locale}{path}"
    return localized[:-1] if localized.endswith("/") else localized


@dataclass(frozen=True, slots=True)
class _Param:
    name: str
    splat: bool

    def __str__(self) -> str:
        return f"{'*' if self.splat else ':'}{self.name}"


_Token = str | _Param


def _escape(text: str) -> str:
    return "".join(f"\\{char}" if char in _SPECIAL else char for char in text)


@dataclass(frozen=True, slots=True)
class URLPattern:
    """Parsed route pattern.

    Example:
        >>> pattern = URLPattern.parse("/items/:id")
        >>> pattern.match("/items/42")
        {'id': '42'}
        >>> pattern.to_translate()
        '/items/{0}'
    """

    source: str
    tokens: tuple[_Token, ...]
    _regex: re.Pattern[str] = field(repr=False, compare=False)

    @classmethod
    def parse(cls, source: str) -> URLPattern:
        """Parse pattern text.

        Raises:
            ValueError: If a ``:`` or ``*`` is not followed by a parameter
                name, or a name is used twice
        """
        tokens: list[_Token] = []
        text: list[str] = []
        i = 0
        while i < len(source):
            char = source[i]
            if char == "\\" and i + 1 < len(source):
                text.append(source[i + 1])
                i += 2
                continue
            if char in ":*":
                name = _PARAM_NAME_RE.match(source, i + 1)
                if name is None:
                    msg = f"Missing parameter name at offset {i} in url pattern {source!r}"
                    raise ValueError(msg)
                if text:
                    tokens.append("".join(text))
                    text = []
                tokens.append(_Param(name.group(), splat=char == "*"))
                i = name.end()
                continue
            text.append(char)
            i += 1
        if text:
            tokens.append("".join(text))
        names = [token.name for token in tokens if isinstance(token, _Param)]
        if len(set(names)) != len(names):
            msg = f"Duplicate parameter name in url pattern {source!r}"
            raise ValueError(msg)
        regex = "".join(
            re.escape(token)
            if isinstance(token, str)
            else f"(?P<{cls._group(token.name)}>{'.+' if token.splat else '[^/]+'})"
            for token in tokens
        )
        return cls(source, tuple(tokens), re.compile(rf"{regex}/?"))

    @staticmethod
    def _group(name: str) -> str:
        return name.replace("$", "_S_")

    @property
    def params(self) -> tuple[_Param, ...]:
        return tuple(token for token in self.tokens if isinstance(token, _Param))

    def match(self, path: str) -> dict[str, str] | None:
        """Parameter values of a path, or None when it does not match."""
        found = self._regex.fullmatch(path)
        if found is None:
            return None
        return {param.name: found.group(self._group(param.name)) for param in self.params}

    def fill(self, params: Mapping[str, str]) -> str:
        """Render the pattern with parameter values substituted.

        Raises:
            KeyError: If a parameter has no value
        """
        return "".join(token if isinstance(token, str) else params[token.name] for token in self.tokens)

    def to_translate(self) -> str:
        """Pattern text with parameters as positional placeholders."""
        return self.fill({param.name: f"{{{i}}}" for i, param in enumerate(self.params)})

    def from_translate(self, translated: str) -> URLPattern:
        """Parse a translated pattern, mapping ``{i}`` back to parameter i.

        Placeholders beyond the pattern's parameters and markup tags are
        dropped.

        Example:
            >>> URLPattern.parse("/items/:id").from_translate("/elementos/{0}").source
            '/elementos/:id'
        """
        params = self.params
        parts: list[str] = []
        compiled = compile_translation(translated, translated)
        for part in [compiled] if isinstance(compiled, str) else compiled:
            if isinstance(part, str):
                parts.append(_escape(part))
            elif isinstance(part, int) and part < len(params):
                parts.append(str(params[part]))
            else:
                logger.debug("Dropping %r from translated url pattern %r", part, translated)
        return URLPattern.parse("".join(parts))


@dataclass(frozen=True, slots=True)
class URLMatch:
    """Result of resolving a request path.

    Attributes:
        path: The path rewritten to the source pattern, None if unmatched
        locale: Locale whose localized pattern matched, None for the source form
        params: Parameter values taken from the path
        alt_patterns: Localized pattern by locale, for language switchers
    """

    path: str | None = None
    locale: str | None = None
    params: dict[str, str] = field(default_factory=dict)
    alt_patterns: dict[str, str] = field(default_factory=dict)


class URLMatcher:
    """Resolve request paths against a URL manifest.

    Localized patterns are tried first for every route, then the source
    patterns themselves.

    Example:
        >>> matcher = URLMatcher([("/about", ["/en/about", "/fr/a-propos"])], ["en", "fr"])
        >>> found = matcher("/fr/a-propos")
        >>> found.path, found.locale
        ('/about', 'fr')
    """

    def __init__(self, manifest: URLManifest, locales: Sequence[str]) -> None:
        self._routes: list[tuple[URLPattern, list[tuple[str, URLPattern]], dict[str, str]]] = []
        for source, localized in manifest:
            pairs = list(zip(locales, localized, strict=False))
            self._routes.append(
                (
                    URLPattern.parse(source),
                    [(locale, URLPattern.parse(loc_pattern)) for locale, loc_pattern in pairs],
                    dict(pairs),
                )
            )

    def __call__(self, path: str) -> URLMatch:
        for pattern, localized, alternatives in self._routes:
            for locale, loc_pattern in localized:
                params = loc_pattern.match(path)
                if params is not None:
                    return URLMatch(pattern.fill(params), locale, params, alternatives)
        for pattern, _, alternatives in self._routes:
            params = pattern.match(path)
            if params is not None:
                return URLMatch(pattern.fill(params), None, params, alternatives)
        return URLMatch()


class URLRoutes:
    """Route patterns of one extractor and their catalog items.

    Args:
        patterns: Route patterns in source form
        localize: Localizer for compiled links; True selects localize_default,
            None or False leaves links unlocalized
        adapter_key: Key of the owning extractor, recorded on pattern items

    Raises:
        ValueError: If a pattern cannot be parsed
    """

    def __init__(
        self,
        patterns: Sequence[str] = (),
        localize: URLLocalizer | bool | None = None,
        adapter_key: str = "",
    ) -> None:
        self.patterns = tuple(URLPattern.parse(pattern) for pattern in patterns)
        if localize is True:
            self.localize: URLLocalizer | None = localize_default
        elif callable(localize):
            self.localize = localize
        else:
            self.localize = None
        self.adapter_key = adapter_key
        self.pattern_keys: dict[str, str] = {
            pattern.source: message.key for pattern, message in zip(self.patterns, self.pattern_messages(), strict=True)
        }

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def pattern_messages(self) -> list[Message]:
        """Catalog messages for the patterns, in pattern order.

        The context records the source pattern only when it differs from
        the text to translate.
        """
        messages = []
        for pattern in self.patterns:
            text = pattern.to_translate()
            context = f"{URL_PATTERN_CONTEXT_PREFIX}{pattern.source}" if text != pattern.source else None
            messages.append(
                Message(
                    id=[text],
                    context=context,
                    kind=MessageKind.URL,
                    details=HeuristicDetails(scope=Scope.ATTRIBUTE),
                )
            )
        return messages

    @staticmethod
    def needs_translation(text: str) -> bool:
        """Patterns without letters (``/``, ``/{0}``) translate to themselves."""
        return has_letter(text)

    def find(self, link: str) -> URLPattern | None:
        """First pattern matching a link."""
        for pattern in self.patterns:
            if pattern.match(link) is not None:
                return pattern
        return None

    def match(self, link: str) -> str | None:
        """Source form of the first pattern matching a link."""
        pattern = self.find(link)
        return None if pattern is None else pattern.source

    def pattern_key(self, link: str) -> str | None:
        """Catalog key of the pattern item a link belongs to."""
        pattern = self.match(link)
        return None if pattern is None else self.pattern_keys[pattern]

    def _translated_pattern(self, pattern: URLPattern, locale: str, catalog: Catalog) -> URLPattern:
        item = catalog.get(self.pattern_keys[pattern.source])
        if item is None:
            return pattern
        translation = item.translations.get(locale)
        translated = translation.text[0] if translation and translation.text and translation.text[0] else item.id[0]
        return pattern.from_translate(translated)

    def match_to_compile(self, link: str, locale: str, catalog: Catalog) -> str:
        """Text to compile for a link in a locale.

        Example: ``/items/42`` with pattern ``/items/:id`` translated to
        ``/elementos/{0}`` gives ``/es/elementos/42`` under the default
        localizer.
        """
        result = link
        pattern = self.find(link)
        if pattern is not None:
            params = pattern.match(link) or {}
            result = self._translated_pattern(pattern, locale, catalog).fill(params)
        if self.localize is not None:
            result = self.localize(result or link, locale)
        return result

    def build_manifest(self, catalog: Catalog, locales: Sequence[str]) -> URLManifest:
        """Localized form of every pattern for every locale."""
        manifest: URLManifest = []
        for pattern in self.patterns:
            localized = []
            for locale in locales:
                translated = self._translated_pattern(pattern, locale, catalog).source
                localized.append(self.localize(translated, locale) if self.localize else translated)
            manifest.append((pattern.source, localized))
        return manifest
