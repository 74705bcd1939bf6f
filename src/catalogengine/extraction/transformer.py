"""Markup transformer: walk generic nodes, extract messages, splice runtime calls.

MarkupTransformer is the reference walker over the node shape produced by
parse_markup(). It routes every node kind through one match statement,
hands sibling groups to MixedContentExtractor and renders the runtime
syntax for extracted messages:

    <p>Hello</p>            ->  <p>{_i18n_.t(0)}</p>
    <img alt="Logo">        ->  <img alt={_i18n_.t(1)}>
    {ok ? "Yes" : "No"}     ->  {ok ? _i18n_.t(2) : _i18n_.t(3)}
    <p>Hi <b>you</b></p>    ->  <p><I18nTrans tags={[_i18n_ctx_ => <b>{_i18n_.tx(_i18n_ctx_)}</b>]}
                                     ctx={_i18n_.cx(4)} /></p>

Links in url attributes (href) are url messages: they must match a
configured route pattern, otherwise the transform fails with URLPatternError.

Output is produced lazily: TransformResult.output(header) returns the
spliced code only when at least one message was found, so files with
nothing to translate are never rewritten.

Python 3.11+.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace

from catalogengine.constants import DIRECTIVE_IGNORE_FILE
from catalogengine.core.heuristic import HeuristicDetails, HeuristicFunc
from catalogengine.core.index import IndexTracker
from catalogengine.core.message import Message
from catalogengine.diagnostics import Diagnostic, DiagnosticCode, URLPatternError
from catalogengine.enums import HeuristicVerdict, MessageKind, Scope

from .editor import SourceEditor
from .markup import parse_markup
from .mixed import ExtractionContext, MixedContentExtractor, NestedRange, split_whitespace
from .nodes import (
    Attribute,
    Comment,
    Container,
    Expression,
    Node,
    Other,
    SourceRange,
    Text,
    iter_comments,
)
from .runtime import RuntimeVars

__all__ = [
    "URL_ATTRIBUTES",
    "MarkupTransformer",
    "TransformResult",
    "URLMatcher",
    "enclosing_call",
    "transform",
]

logger = logging.getLogger(__name__)

URL_ATTRIBUTES: frozenset[str] = frozenset({"href"})

URLMatcher = Callable[[str], "str | None"]
"""Return the route pattern matching a literal link, or None."""

_CALL_NAME_RE = re.compile(r"([A-Za-z_$][\w$.]*)\s*$")


def enclosing_call(prefix: str) -> str | None:
    """Name of the innermost call still open at the end of prefix.

    Example:
        >>> enclosing_call("console.log(1, ")
        'console.log'
        >>> enclosing_call("f(a) + ") is None
        True
    """
    depth = 0
    for i in range(len(prefix) - 1, -1, -1):
        char = prefix[i]
        if char == ")":
            depth += 1
        elif char == "(":
            if depth == 0:
                match = _CALL_NAME_RE.search(prefix[:i])
                return match.group(1) if match else None
            depth -= 1
    return None


@dataclass(frozen=True, slots=True)
class TransformResult:
    """Messages found in a file plus a lazy renderer for the spliced code."""

    messages: list[Message]
    editor: SourceEditor | None = field(default=None, repr=False)

    def output(self, header: str) -> str | None:
        """Spliced code with header prepended, or None when nothing was extracted."""
        if not self.messages or self.editor is None:
            return None
        return f"{header}\n{self.editor.to_string()}"


class MarkupTransformer:
    """Extract and rewrite one markup file.

    Args:
        content: File content
        filename: File path, reported to heuristics and in errors
        index: Slot tracker of the catalog (or load ID) the file belongs to
        runtime: Runtime identifiers to emit
        heuristic: User heuristic; None uses the default predicate
        url_matcher: Route pattern matcher; None disables url extraction
        url_attributes: Attribute names holding links
    """

    def __init__(
        self,
        content: str,
        filename: str,
        index: IndexTracker,
        runtime: RuntimeVars | None = None,
        heuristic: HeuristicFunc | None = None,
        url_matcher: URLMatcher | None = None,
        url_attributes: frozenset[str] = URL_ATTRIBUTES,
    ) -> None:
        self.content = content
        self.filename = filename
        self.index = index
        self.runtime = runtime or RuntimeVars()
        self.url_matcher = url_matcher
        self.url_attributes = url_attributes
        self.editor = SourceEditor(content)
        self.extractor = MixedContentExtractor(
            editor=self.editor,
            index=index,
            runtime=self.runtime,
            visit=self.visit,
            visit_expression=self.visit_expression,
            wrap_nested=self.wrap_nested,
            heuristic=heuristic,
        )

    def transform(self) -> TransformResult:
        """Extract messages and prepare the spliced output.

        Raises:
            MarkupParseError: If the content cannot be read
            URLPatternError: If a link matches no route pattern
        """
        nodes = parse_markup(self.content)
        if any(comment.data == DIRECTIVE_IGNORE_FILE for comment in iter_comments(nodes)):
            logger.debug("Skipping %s: ignore-file directive", self.filename)
            return TransformResult([])
        context = ExtractionContext(details=HeuristicDetails(scope=Scope.MARKUP, file=self.filename))
        group = self.extractor.extract(nodes, context)
        if group.ignore_file:
            return TransformResult([])
        logger.debug("%d messages from %s", len(group.messages), self.filename)
        return TransformResult(group.messages, self.editor)

    def visit(self, node: Node, context: ExtractionContext) -> list[Message]:
        """Visit a single node."""
        match node:
            case Text():
                return self.visit_text(node, context)
            case Expression():
                return self.visit_expression(node, context)
            case Container():
                return self.visit_container(node, context)
            case Comment():
                return []
            case Other(kind=kind, range=rng):
                logger.debug("Skipping %s node at %d in %s", kind, rng.start, self.filename)
                return []
        return []

    def visit_text(self, node: Text, context: ExtractionContext) -> list[Message]:
        start_ws, content, end_ws = split_whitespace(node.value)
        if self.extractor.check(content, context) is HeuristicVerdict.SKIP:
            return []
        message = Message(id=[content], context=context.directives.context, details=context.details)
        self.editor.overwrite(
            node.range.start + start_ws,
            node.range.end - end_ws,
            f"{{{self.runtime.translate}({self.index.get(message.key)})}}",
        )
        return [message]

    def visit_expression(self, node: Expression, context: ExtractionContext) -> list[Message]:
        messages: list[Message] = []
        inner_start = node.range.start + 1
        for literal in node.literals:
            details = replace(
                context.details,
                scope=Scope.SCRIPT,
                call=enclosing_call(self.content[inner_start : literal.range.start]),
            )
            literal_context = replace(context, details=details)
            if self.extractor.check(literal.value, literal_context) is HeuristicVerdict.SKIP:
                continue
            message = Message(id=[literal.value], context=context.directives.context, details=details)
            self.editor.overwrite(
                literal.range.start,
                literal.range.end,
                f"{self.runtime.translate}({self.index.get(message.key)})",
            )
            messages.append(message)
        return messages

    def visit_container(self, node: Container, context: ExtractionContext) -> list[Message]:
        details = replace(context.details, scope=Scope.MARKUP, element=node.name, attribute=None)
        element_context = replace(context, details=details)
        messages: list[Message] = []
        for attribute in node.attributes:
            messages.extend(self.visit_attribute(attribute, element_context))
        messages.extend(self.extractor.extract(node.children, element_context).messages)
        return messages

    def visit_attribute(self, attribute: Attribute, context: ExtractionContext) -> list[Message]:
        details = replace(context.details, scope=Scope.ATTRIBUTE, attribute=attribute.name)
        attribute_context = replace(context, details=details, in_compound=False)
        if attribute.expression is not None:
            return self.visit_expression(attribute.expression, attribute_context)
        if attribute.value is None or attribute.value_range is None:
            return []
        if attribute.name in self.url_attributes and self.url_matcher is not None:
            return self.visit_url(attribute.value, attribute.value_range, self.url_matcher, attribute_context)
        value = attribute.value.strip()
        if self.extractor.check(value, attribute_context) is HeuristicVerdict.SKIP:
            return []
        message = Message(id=[value], context=context.directives.context, details=details)
        self.editor.overwrite(
            attribute.value_range.start,
            attribute.value_range.end,
            f"{{{self.runtime.translate}({self.index.get(message.key)})}}",
        )
        return [message]

    def visit_url(
        self,
        value: str,
        value_range: SourceRange,
        url_matcher: URLMatcher,
        context: ExtractionContext,
    ) -> list[Message]:
        link = value.strip()
        # only local absolute paths are routes
        if not link.startswith("/") or link.startswith("//"):
            return []
        if url_matcher(link) is None:
            diagnostic = Diagnostic(
                code=DiagnosticCode.URL_NO_MATCHING_PATTERN,
                message=f"No url pattern matches {link!r}",
                hint="Add a matching route to the url patterns of the extractor",
                file=self.filename,
            )
            raise URLPatternError(diagnostic, url=link, file=self.filename)
        message = Message(id=[link], kind=MessageKind.URL, details=context.details, link=link)
        self.editor.overwrite(
            value_range.start,
            value_range.end,
            f"{{{self.runtime.translate}({self.index.get(message.key)})}}",
        )
        return [message]

    def wrap_nested(
        self,
        message: Message,
        has_exprs: bool,
        nested_ranges: Sequence[NestedRange],
        last_child_end: int,
        context: ExtractionContext,
    ) -> None:
        """Render a fused message with nested elements as a runtime component."""
        for i, nested in enumerate(nested_ranges):
            prefix = f"<{self.runtime.component} tags={{[" if i == 0 else ", "
            param = self.runtime.nest_context if nested.needs_context else "()"
            self.editor.append_right(nested.start, f"{prefix}{param} => ")
        begin = "]} ctx="
        if context.in_compound:
            begin += f"{{{self.runtime.nest_context}}} nest"
        else:
            begin += f"{{{self.runtime.context}({self.index.get(message.key)})}}"
        end = " />"
        if has_exprs:
            begin += " args={["
            end = "]}" + end
        self.editor.append_left(last_child_end, begin)
        self.editor.append_right(last_child_end, end)


def transform(
    content: str,
    filename: str,
    index: IndexTracker,
    runtime: RuntimeVars | None = None,
    url_matcher: URLMatcher | None = None,
    heuristic: HeuristicFunc | None = None,
) -> TransformResult:
    """Extract messages from markup content and prepare its rewritten form.

    Example:
        >>> result = transform("<p>Hello</p>", "page.html", IndexTracker())
        >>> [m.id for m in result.messages]
        [['Hello']]
        >>> print(result.output("// header"))
        // header
        <p>{_i18n_.t(0)}</p>
    """
    return MarkupTransformer(content, filename, index, runtime, heuristic, url_matcher).transform()
