"""Extraction heuristics.

A heuristic decides whether a text found in source code is meant for humans
and should be extracted. User heuristics take precedence; returning None
defers to the default predicate.

Default behavior:
    - Text without any letter is never extracted
    - Text inside style, path, code and pre elements is ignored
    - The method attribute of form elements is ignored
    - Markup text is extracted
    - Attribute and script text must start with a letter that is not a
      lower-case ASCII letter ("Save" yes, "save" no, "Ärger" yes)
    - Script text in top level expressions (outside functions) is ignored
    - Arguments of console.* and fetch are ignored

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from catalogengine.enums import DeclarationType, HeuristicVerdict, Scope

__all__ = [
    "HeuristicDetails",
    "HeuristicFunc",
    "default_heuristic",
    "default_heuristic_func_only",
    "has_letter",
    "resolve_verdict",
]

IGNORE_ELEMENTS: frozenset[str] = frozenset({"style", "path", "code", "pre"})
IGNORE_ATTRIBUTES: frozenset[tuple[str, str]] = frozenset({("form", "method")})
IGNORE_CALLS: frozenset[str] = frozenset({"fetch"})
IGNORE_CALL_PREFIXES: tuple[str, ...] = ("console.",)


@dataclass(frozen=True, slots=True)
class HeuristicDetails:
    """Structural details about where a text was found.

    Attributes:
        scope: Markup, attribute or script
        element: Name of the enclosing element, if any
        attribute: Attribute name for attribute scope
        file: Source file being transformed
        declaring: Type of the top level declaration (script scope)
        func_name: Name of the enclosing function, "" for anonymous, None at top level
        top_level_call: Name of the call at the top level
        call: Name of the nearest call (for arguments)
    """

    scope: Scope
    element: str | None = None
    attribute: str | None = None
    file: str = ""
    declaring: DeclarationType | None = None
    func_name: str | None = None
    top_level_call: str | None = None
    call: str | None = None


HeuristicFunc = Callable[[str, HeuristicDetails], "bool | HeuristicVerdict | None"]
"""Signature of pluggable heuristics: (sample text, details) -> decision or None."""


def has_letter(text: str) -> bool:
    """True if the text contains at least one alphabetic character."""
    return any(char.isalpha() for char in text)


def default_heuristic(text: str, details: HeuristicDetails) -> bool:
    """Decide whether a text should be extracted, without user input.

    Example:
        >>> default_heuristic("Save", HeuristicDetails(scope=Scope.ATTRIBUTE))
        True
        >>> default_heuristic("save", HeuristicDetails(scope=Scope.ATTRIBUTE))
        False
        >>> default_heuristic("42", HeuristicDetails(scope=Scope.MARKUP))
        False
    """
    if not has_letter(text):
        return False
    if details.element is not None and details.element in IGNORE_ELEMENTS:
        return False
    if details.scope is Scope.ATTRIBUTE and (details.element, details.attribute) in IGNORE_ATTRIBUTES:
        return False
    if details.scope is Scope.MARKUP:
        return True
    first = text[0]
    if not first.isalpha() or "a" <= first <= "z":
        return False
    if details.scope is not Scope.SCRIPT:
        return True
    if details.declaring is DeclarationType.EXPRESSION and not details.func_name:
        return False
    call = details.call or ""
    return call not in IGNORE_CALLS and not call.startswith(IGNORE_CALL_PREFIXES)


def default_heuristic_func_only(text: str, details: HeuristicDetails) -> bool:
    """Default heuristic that also ignores script text outside functions."""
    if not default_heuristic(text, details):
        return False
    return details.scope is not Scope.SCRIPT or details.func_name is not None


def resolve_verdict(
    text: str,
    details: HeuristicDetails,
    heuristic: HeuristicFunc | None,
    fallback: HeuristicFunc = default_heuristic,
) -> HeuristicVerdict:
    """Run a user heuristic and fall back to the default when it defers.

    Bool results map to EXTRACT/SKIP. Empty text is always skipped.
    """
    if not text:
        return HeuristicVerdict.SKIP
    decision = heuristic(text, details) if heuristic is not None else None
    if decision is None:
        decision = fallback(text, details)
    if isinstance(decision, HeuristicVerdict):
        return decision
    return HeuristicVerdict.EXTRACT if decision else HeuristicVerdict.SKIP
