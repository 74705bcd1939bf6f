"""Generic source node shape consumed by the mixed-content extractor.

Framework walkers reduce their concrete syntax trees to these node kinds.
Each node carries the source range it covers (half-open, in characters of
the original content), which is what splicing operates on.

    Text        raw text between markup
    Comment     markup comment; may carry extraction directives
    Expression  interpolation such as ``{user.name}``; ``range`` includes the
                braces and ``literals`` lists string literals inside it
    Container   element or component with attributes and child nodes
    Other       anything the extractor does not understand; skipped

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TypeAlias, Union

__all__ = [
    "Attribute",
    "Comment",
    "Container",
    "Expression",
    "Node",
    "Other",
    "SourceRange",
    "StringLiteral",
    "Text",
    "iter_comments",
]


@dataclass(frozen=True, slots=True)
class SourceRange:
    """Half-open character range [start, end) in the original content."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            msg = f"Invalid source range: [{self.start}, {self.end})"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class Text:
    value: str
    range: SourceRange


@dataclass(frozen=True, slots=True)
class Comment:
    data: str
    range: SourceRange


@dataclass(frozen=True, slots=True)
class StringLiteral:
    """Quoted string inside an expression; range includes the quotes."""

    value: str
    range: SourceRange


@dataclass(frozen=True, slots=True)
class Expression:
    source: str
    range: SourceRange
    literals: tuple[StringLiteral, ...] = ()

    @property
    def inner(self) -> SourceRange:
        """Range of the expression without its delimiting braces."""
        return SourceRange(self.range.start + 1, self.range.end - 1)


@dataclass(frozen=True, slots=True)
class Attribute:
    """Element attribute.

    Static attributes (``title="Hi"``) carry ``value`` and ``value_range``
    (including quotes). Dynamic ones (``title={x}``) carry ``expression``.
    Boolean attributes carry neither.
    """

    name: str
    range: SourceRange
    value: str | None = None
    value_range: SourceRange | None = None
    expression: Expression | None = None


@dataclass(frozen=True, slots=True)
class Container:
    name: str
    range: SourceRange
    attributes: tuple[Attribute, ...] = ()
    children: tuple[Node, ...] = ()
    can_have_children: bool = True


@dataclass(frozen=True, slots=True)
class Other:
    kind: str
    range: SourceRange


Node: TypeAlias = Union[Text, Comment, Expression, Container, Other]


def iter_comments(nodes: tuple[Node, ...] | list[Node]) -> Iterator[Comment]:
    """Yield every comment in a node forest, depth first."""
    for node in nodes:
        if isinstance(node, Comment):
            yield node
        elif isinstance(node, Container):
            yield from iter_comments(node.children)
