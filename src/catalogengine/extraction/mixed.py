"""Mixed-content extraction: fusing sibling text, markup and interpolations.

Given the ordered children of an element, the extractor decides whether
they form one translatable sentence or must be handled one by one:

    <p>Hello and <b>welcome</b> to <i>the app</i>!</p>

becomes the single message

    Hello and <0>welcome</0> to <1>the app</1>!

with the two child elements recorded as nested ranges, while

    <ul><li>One</li><li>Two</li></ul>

yields the separate messages "One" and "Two".

Decision rules:
    - A group is compound when it has both non-blank text and a non-text child
    - A compound group is fused when the heuristic passes on its sample string
      and no directive comment is among the siblings (FORCE ignores the comments)
    - Inside an already fused region every group is fused, so a compound
      message is never split again
    - Otherwise every child is visited on its own, with directive comments
      applying to the next sibling only

Fusion splices the source through the walker's SourceEditor: text ranges are
removed, interpolated expressions are moved behind the last sibling so the
runtime call can take them as trailing arguments, and the walker's
wrap_nested callback renders groups with nested elements. Groups without
nested elements get a plain runtime call, ``t(index, [args])``, even in
markup scope when they carry interpolations.

Tag and placeholder numbers restart at 0 for every fused group.

Python 3.11+.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace

from catalogengine.constants import HEURISTIC_PLACEHOLDER
from catalogengine.core.heuristic import (
    HeuristicDetails,
    HeuristicFunc,
    default_heuristic,
    resolve_verdict,
)
from catalogengine.core.index import IndexTracker
from catalogengine.core.message import Message, normalize_message_text
from catalogengine.enums import HeuristicVerdict, Scope

from .directives import CommentDirectives, is_directive
from .editor import SourceEditor
from .nodes import Comment, Container, Expression, Node, Other, Text
from .runtime import RuntimeVars

__all__ = [
    "ExtractedGroup",
    "ExtractionContext",
    "MixedContentExtractor",
    "NestedRange",
    "VisitFunc",
    "WrapNestedFunc",
    "split_whitespace",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NestedRange:
    """Source span of a child element inside a fused message.

    Attributes:
        start: Start offset of the child in the original content
        end: End offset of the child in the original content
        needs_context: The child renders a nested fragment of the message
    """

    start: int
    end: int
    needs_context: bool


@dataclass(frozen=True, slots=True)
class ExtractionContext:
    """Traversal state handed down the recursion.

    Attributes:
        details: Heuristic details for the current position (scope, element, file)
        directives: Comment directives in effect
        in_compound: The caller is inside an already fused message
    """

    details: HeuristicDetails
    directives: CommentDirectives = field(default_factory=CommentDirectives)
    in_compound: bool = False

    @property
    def scope(self) -> Scope:
        return self.details.scope


@dataclass(slots=True)
class ExtractedGroup:
    """Result of extracting one sibling group.

    Attributes:
        messages: All messages found, in source order
        fused: The compound message, when the group was fused
        nested_ranges: Child elements of the fused message
        has_exprs: The fused message has interpolation placeholders
        ignore_file: An ignore-file directive was met; the file must be skipped
    """

    messages: list[Message] = field(default_factory=list)
    fused: Message | None = None
    nested_ranges: list[NestedRange] = field(default_factory=list)
    has_exprs: bool = False
    ignore_file: bool = False


VisitFunc = Callable[[Node, ExtractionContext], list[Message]]
"""Re-enter the walker for one node: (node, context) -> messages."""

WrapNestedFunc = Callable[[Message, bool, Sequence[NestedRange], int, ExtractionContext], None]
"""Render a fused message with nested elements:
(message, has_exprs, nested_ranges, last_child_end, context)."""


def split_whitespace(text: str) -> tuple[int, str, int]:
    """Split text into (leading whitespace length, content, trailing whitespace length).

    Example:
        >>> split_whitespace("  Hello world ")
        (2, 'Hello world', 1)
    """
    stripped_start = text.lstrip()
    content = stripped_start.rstrip()
    return len(text) - len(stripped_start), content, len(stripped_start) - len(content)


class MixedContentExtractor:
    """Extract messages from sibling groups and splice in runtime calls.

    Args:
        editor: Editor over the file being transformed
        index: Slot tracker used for the emitted runtime calls
        runtime: Runtime identifiers to emit
        visit: Walker entry point for a single child node
        visit_expression: Walker entry point for interpolated expressions
        wrap_nested: Renders fused messages that have nested elements
        heuristic: User heuristic; None defers to the default predicate
        fallback: Default predicate used when the heuristic defers
    """

    def __init__(
        self,
        editor: SourceEditor,
        index: IndexTracker,
        runtime: RuntimeVars,
        visit: VisitFunc,
        visit_expression: VisitFunc,
        wrap_nested: WrapNestedFunc,
        heuristic: HeuristicFunc | None = None,
        fallback: HeuristicFunc = default_heuristic,
    ) -> None:
        self.editor = editor
        self.index = index
        self.runtime = runtime
        self.visit = visit
        self.visit_expression = visit_expression
        self.wrap_nested = wrap_nested
        self.heuristic = heuristic
        self.fallback = fallback

    def check(self, text: str, context: ExtractionContext) -> HeuristicVerdict:
        """Decide on a text, honoring include/ignore directives."""
        if not text:
            return HeuristicVerdict.SKIP
        if context.directives.force_include is not None:
            return HeuristicVerdict.EXTRACT if context.directives.force_include else HeuristicVerdict.SKIP
        return resolve_verdict(text, context.details, self.heuristic, self.fallback)

    def extract(self, siblings: Sequence[Node], context: ExtractionContext) -> ExtractedGroup:
        """Extract messages from an ordered sibling group."""
        group = ExtractedGroup()
        if not siblings:
            return group
        sample: list[str] = []
        has_text = has_non_text = has_directives = False
        for child in siblings:
            match child:
                case Text(value=value):
                    content = value.strip()
                    if content:
                        has_text = True
                        sample.append(content)
                case Comment(data=data):
                    has_directives = has_directives or is_directive(data)
                case Expression() | Container():
                    has_non_text = True
                    sample.append(HEURISTIC_PLACEHOLDER)
                case Other():
                    pass
        compound = has_text and has_non_text
        fuse = context.in_compound
        if not fuse and compound:
            verdict = self.check(" ".join(sample), context)
            fuse = verdict is HeuristicVerdict.FORCE or (verdict is HeuristicVerdict.EXTRACT and not has_directives)
        if fuse:
            self._fuse(siblings, context, compound, has_text, group)
        elif context.scope is Scope.MARKUP:
            self._visit_separately(siblings, context, group)
        return group

    def _visit_separately(self, siblings: Sequence[Node], context: ExtractionContext, group: ExtractedGroup) -> None:
        pending: CommentDirectives | None = None
        for child in siblings:
            if isinstance(child, Comment):
                if is_directive(child.data):
                    pending = (pending or context.directives).apply(child.data)
                    if pending.ignore_file:
                        group.ignore_file = True
                        return
                continue
            if isinstance(child, Text) and not child.value.strip():
                continue
            child_context = context if pending is None else replace(context, directives=pending)
            pending = None
            if child_context.directives.force_include is False:
                logger.debug("Ignoring %s by directive in %s", type(child).__name__, context.details.file)
                continue
            group.messages.extend(self.visit(child, child_context))

    def _fuse(
        self,
        siblings: Sequence[Node],
        context: ExtractionContext,
        compound: bool,
        has_text: bool,
        group: ExtractedGroup,
    ) -> None:
        text = ""
        i_arg = 0
        i_tag = 0
        last_end = siblings[-1].range.end
        has_text_descendants = False
        placeholders: list[tuple[int, str]] = []
        for child in siblings:
            match child:
                case Comment():
                    continue
                case Text(value=value, range=rng):
                    start_ws, content, end_ws = split_whitespace(value)
                    if start_ws and not text.endswith(" "):
                        text += " "
                    if not content:
                        continue
                    text += normalize_message_text(content)
                    if end_ws:
                        text += " "
                    self.editor.remove(rng.start, rng.end)
                case Expression(range=rng):
                    group.messages.extend(self.visit_expression(child, context))
                    if not compound:
                        continue
                    text += f"{{{i_arg}}}"
                    placeholders.append((i_arg, child.source))
                    if i_arg > 0:
                        self.editor.overwrite(rng.start, rng.start + 1, ", ")
                        move_start = rng.start
                    else:
                        self.editor.remove(rng.start, rng.start + 1)
                        move_start = rng.start + 1
                    self.editor.move(move_start, rng.end - 1, last_end)
                    self.editor.remove(rng.end - 1, rng.end)
                    i_arg += 1
                case Container(range=rng, can_have_children=can_have_children):
                    child_messages = self.visit(child, replace(context, in_compound=can_have_children))
                    inner = ""
                    for message in child_messages:
                        if can_have_children and message.scope is context.scope:
                            inner += message.id[0]
                        else:
                            group.messages.append(message)
                    group.nested_ranges.append(NestedRange(rng.start, rng.end, bool(inner)))
                    if inner:
                        has_text_descendants = True
                        text += f"<{i_tag}>{inner}</{i_tag}>"
                    else:
                        text += f"<{i_tag}/>"
                    i_tag += 1
                case _:
                    logger.debug(
                        "Skipping unsupported node %s at %d in %s",
                        type(child).__name__,
                        child.range.start,
                        context.details.file,
                    )
        text = text.strip()
        if not text or not (has_text or has_text_descendants):
            return
        message = Message(
            id=[text],
            context=context.directives.context,
            placeholders=placeholders,
            details=context.details,
        )
        group.messages.append(message)
        group.fused = message
        group.has_exprs = i_arg > 0
        if group.nested_ranges:
            self.wrap_nested(message, i_arg > 0, group.nested_ranges, last_end, context)
            return
        begin = "{"
        end = ")}"
        if context.in_compound:
            begin += f"{self.runtime.translate_context}({self.runtime.nest_context}"
        else:
            begin += f"{self.runtime.translate}({self.index.get(message.key)}"
        if i_arg > 0:
            begin += ", ["
            end = "]" + end
        self.editor.append_left(last_end, begin)
        self.editor.append_right(last_end, end)
