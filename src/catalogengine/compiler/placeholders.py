"""Placeholder compiler: translated message text to CompiledElement.

Message texts carry positional markers produced by mixed-content extraction:

    {n}        interpolated value number n
    <n>...</n> content wrapped by taggable child number n
    <n/>       self-closing (childless) child number n

compile_translation() turns such a text into the nested structure consumed
by the rendering runtime:

    "Foo <0>bar {0}<0/></0>"  ->  ["Foo ", [0, "bar ", 0, [0]]]

Tags are matched by their own number, not by nesting depth, and numbering is
scoped to the enclosing compound group, so a <0> may directly contain a <0/>
referring to a different occurrence of child 0. Malformed or unbalanced
markers are kept as literal text: compilation never raises.

structurally_equivalent() compares placeholders and tags per nesting level
as a multiset: literal text and the order of siblings are ignored, so a
translation may reorder "<0>a</0> <1>b</1>" into "<1>b</1> <0>a</0>".
Nesting is not ignored: moving a marker into or out of a tag changes the
shape.

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeAlias, Union

__all__ = [
    "CompiledElement",
    "compile_plural",
    "compile_translation",
    "structural_shape",
    "structurally_equivalent",
]

CompositePayload: TypeAlias = Union[int, str, "list[CompositePayload]"]
"""Fragment of a compiled message: text, interpolation index or nested tag."""

CompiledElement: TypeAlias = Union[str, list[CompositePayload]]
"""Runtime-ready form of one catalog entry (plurals: a list of forms)."""

_MARKER_RE = re.compile(r"\{(?P<arg>\d+)\}|<(?P<close>/?)(?P<tag>\d+)(?P<selfclose>/?)>")

_TEXT = "text"
_ARG = "arg"
_OPEN = "open"
_CLOSE = "close"
_SELFCLOSE = "selfclose"


@dataclass(slots=True)
class _Token:
    kind: str
    raw: str
    number: int = -1
    matched: bool = False


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    for match in _MARKER_RE.finditer(text):
        if match.start() > pos:
            tokens.append(_Token(_TEXT, text[pos : match.start()]))
        raw = match.group(0)
        if match.group("arg") is not None:
            tokens.append(_Token(_ARG, raw, int(match.group("arg"))))
        elif match.group("close") and match.group("selfclose"):
            # "</0/>" is not a marker
            tokens.append(_Token(_TEXT, raw))
        elif match.group("close"):
            tokens.append(_Token(_CLOSE, raw, int(match.group("tag"))))
        elif match.group("selfclose"):
            tokens.append(_Token(_SELFCLOSE, raw, int(match.group("tag"))))
        else:
            tokens.append(_Token(_OPEN, raw, int(match.group("tag"))))
        pos = match.end()
    if pos < len(text):
        tokens.append(_Token(_TEXT, text[pos:]))
    return tokens


def _pair_tags(tokens: list[_Token]) -> None:
    """Mark open/close tokens that form balanced pairs.

    A closer pairs with the nearest still-open tag of the same number; tags
    opened after that one and never closed stay unmatched. Unmatched tokens
    are rendered as literal text.
    """
    stack: list[_Token] = []
    for token in tokens:
        if token.kind == _OPEN:
            stack.append(token)
        elif token.kind == _CLOSE:
            for depth in range(len(stack) - 1, -1, -1):
                if stack[depth].number == token.number:
                    stack[depth].matched = True
                    token.matched = True
                    del stack[depth:]
                    break


def _append_text(target: list[CompositePayload], text: str) -> None:
    if target and isinstance(target[-1], str):
        target[-1] += text
    else:
        target.append(text)


def _build(tokens: list[_Token]) -> list[CompositePayload]:
    root: list[CompositePayload] = []
    stack: list[list[CompositePayload]] = [root]
    for token in tokens:
        current = stack[-1]
        if token.kind == _ARG:
            current.append(token.number)
        elif token.kind == _SELFCLOSE:
            current.append([token.number])
        elif token.kind == _OPEN and token.matched:
            nested: list[CompositePayload] = [token.number]
            current.append(nested)
            stack.append(nested)
        elif token.kind == _CLOSE and token.matched:
            stack.pop()
        else:
            _append_text(current, token.raw)
    return root


def compile_translation(text: str | None, fallback: CompiledElement) -> CompiledElement:
    """Compile one translated text into its runtime form.

    Args:
        text: Translated message text; empty when not translated
        fallback: Value returned unchanged when text is empty, normally the
            compiled source-locale value

    Returns:
        A plain string when the text has no markers, otherwise a list of
        text fragments, interpolation indices and nested tag lists

    Example:
        >>> compile_translation("Hello", "")
        'Hello'
        >>> compile_translation("Foo <0>bar</0>", "")
        ['Foo ', [0, 'bar']]
        >>> compile_translation("", ["x"])
        ['x']
    """
    if not text:
        return fallback
    if "{" not in text and "<" not in text:
        return text
    tokens = _tokenize(text)
    _pair_tags(tokens)
    compiled = _build(tokens)
    if len(compiled) == 1 and isinstance(compiled[0], str):
        return compiled[0]
    return compiled


def compile_plural(forms: Sequence[str], fallback: CompiledElement) -> CompiledElement:
    """Compile every plural form independently.

    When all forms are blank, the whole plural falls back (normally to the
    source locale's compiled forms). A single blank form falls back to the
    form at the same position of the fallback, if any.
    """
    if not "".join(forms).strip():
        return fallback
    compiled: list[CompositePayload] = []
    for i, form in enumerate(forms):
        form_fallback: CompiledElement = ""
        if isinstance(fallback, list) and i < len(fallback):
            candidate = fallback[i]
            if not isinstance(candidate, int):
                form_fallback = candidate
        compiled.append(compile_translation(form, form_fallback))
    return compiled


def structural_shape(compiled: CompiledElement) -> tuple[object, ...]:
    """Reduce a compiled element to its placeholder and tag structure.

    Literal text is dropped. Placeholders and tags are compared per nesting
    level irrespective of order, so a translation may move them around.
    """
    if isinstance(compiled, str):
        return ()
    parts: list[tuple[object, ...]] = []
    for fragment in compiled:
        if isinstance(fragment, str):
            continue
        if isinstance(fragment, int):
            parts.append((_ARG, fragment))
        else:
            parts.append((_OPEN, fragment[0], structural_shape(fragment[1:])))
    return tuple(sorted(parts, key=repr))


def structurally_equivalent(first: CompiledElement, second: CompiledElement) -> bool:
    """True if two compiled elements carry the same placeholders and tags.

    Example:
        >>> structurally_equivalent(
        ...     compile_translation("Hi <0>{0}</0>", ""),
        ...     compile_translation("Salut <0>{0}</0>", ""),
        ... )
        True
        >>> structurally_equivalent(
        ...     compile_translation("Hi {0}", ""),
        ...     compile_translation("Salut", ""),
        ... )
        False
    """
    return structural_shape(first) == structural_shape(second)
