"""Enumerations for catalogengine type-safe constants.

Uses StrEnum (Python 3.11+) for automatic string conversion.
StrEnum members are strings themselves, eliminating boilerplate __str__ methods.

Python 3.11+.
"""

from enum import StrEnum


class MessageKind(StrEnum):
    """Kind of an extracted message.

    StrEnum provides automatic string conversion: str(MessageKind.URL) == "url"
    """

    MESSAGE = "message"
    """Ordinary translatable text."""

    URL = "url"
    """Literal link matched against a route pattern; compiled differently."""


class Scope(StrEnum):
    """Where in the source a text was found."""

    MARKUP = "markup"
    """Text content between tags."""

    ATTRIBUTE = "attribute"
    """Attribute value of an element."""

    SCRIPT = "script"
    """String literal inside an expression or script block."""


class DeclarationType(StrEnum):
    """Type of the top level declaration enclosing a script text."""

    VARIABLE = "variable"
    FUNCTION = "function"
    CLASS = "class"
    EXPRESSION = "expression"


class HeuristicVerdict(StrEnum):
    """Decision returned by a heuristic.

    A heuristic may also return a plain bool (True is EXTRACT, False is SKIP)
    or None to defer to the default predicate.
    """

    EXTRACT = "extract"
    """Extract; a compound group with directive comments is still split."""

    SKIP = "skip"
    """Leave the text untouched."""

    FORCE = "force"
    """Extract, fusing compound groups even when directive comments are present."""


class Mode(StrEnum):
    """Operating mode of an extractor."""

    DEV = "dev"
    """Development server: saves eagerly, compiles HMR hooks."""

    BUILD = "build"
    """Production build: catalogs updated in memory and compiled, never saved."""

    CLI = "cli"
    """Batch extraction: saving is deferred to the caller."""


__all__ = [
    "DeclarationType",
    "HeuristicVerdict",
    "MessageKind",
    "Mode",
    "Scope",
]
