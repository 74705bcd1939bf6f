"""Minimal HTML/JSX-like markup reader producing the generic node shape.

Supported syntax:
    <tag attr="value" flag other={expr}>children</tag>
    <Component prop='v' />      self-closing, childless
    <br>                        void elements never have children
    {expression}                brace matched, string literals recorded
    {/* comment */}             JSX-style comment
    <!-- comment -->            HTML comment
    <script>...</script>        raw content, reported as an Other node
    <style>...</style>          raw content, reported as a Text child

This is a reference reader for exercising the extractor end to end, not a
complete HTML or JSX parser: there is no entity decoding, and markup nested
inside expressions is not descended into.

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

from catalogengine.constants import MAX_DEPTH
from catalogengine.diagnostics import Diagnostic, DiagnosticCode, MarkupParseError

from .nodes import (
    Attribute,
    Comment,
    Container,
    Expression,
    Node,
    Other,
    SourceRange,
    StringLiteral,
    Text,
)

__all__ = ["VOID_ELEMENTS", "parse_markup"]

VOID_ELEMENTS: frozenset[str] = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}
)

_RAW_TEXT_ELEMENTS: frozenset[str] = frozenset({"script", "style"})

_NAME_STOP = frozenset(" \t\r\n/>=")

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0"}


class _MarkupReader:
    """Recursive descent reader over one markup document."""

    __slots__ = ("depth", "pos", "source")

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0
        self.depth = 0

    def error(self, message: str, code: DiagnosticCode = DiagnosticCode.MARKUP_PARSE_FAILED) -> MarkupParseError:
        line = self.source.count("\n", 0, self.pos) + 1
        diagnostic = Diagnostic(code=code, message=f"{message} (line {line}, offset {self.pos})")
        return MarkupParseError(diagnostic, position=self.pos)

    def peek(self, text: str) -> bool:
        return self.source.startswith(text, self.pos)

    def at_tag_start(self) -> bool:
        if not self.peek("<") or self.pos + 1 >= len(self.source):
            return False
        following = self.source[self.pos + 1]
        return following.isalpha() or following in "/!"

    def read_nodes(self, closing: str | None = None) -> list[Node]:
        nodes: list[Node] = []
        while self.pos < len(self.source):
            if self.peek("</"):
                if closing is None:
                    raise self.error("Unexpected closing tag")
                return nodes
            if self.peek("<!--"):
                nodes.append(self.read_html_comment())
            elif self.peek("<!"):
                nodes.append(self.read_declaration())
            elif self.at_tag_start():
                nodes.append(self.read_element())
            elif self.peek("{"):
                nodes.append(self.read_expression_or_comment())
            else:
                nodes.append(self.read_text())
        if closing is not None:
            raise self.error(f"Unclosed element <{closing}>")
        return nodes

    def read_text(self) -> Text:
        start = self.pos
        self.pos += 1
        while self.pos < len(self.source) and not (self.peek("{") or self.at_tag_start()):
            self.pos += 1
        return Text(self.source[start : self.pos], SourceRange(start, self.pos))

    def read_html_comment(self) -> Comment:
        start = self.pos
        end = self.source.find("-->", start + 4)
        if end < 0:
            raise self.error("Unterminated comment")
        self.pos = end + 3
        return Comment(self.source[start + 4 : end].strip(), SourceRange(start, self.pos))

    def read_declaration(self) -> Other:
        start = self.pos
        end = self.source.find(">", start)
        if end < 0:
            raise self.error("Unterminated declaration")
        self.pos = end + 1
        return Other("declaration", SourceRange(start, self.pos))

    def read_expression_or_comment(self) -> Expression | Comment:
        expression = self.read_expression()
        inner = expression.source.strip()
        if inner.startswith("/*") and inner.endswith("*/"):
            return Comment(inner[2:-2].strip(), expression.range)
        return expression

    def read_expression(self) -> Expression:
        start = self.pos
        self.pos += 1
        literals: list[StringLiteral] = []
        depth = 1
        while self.pos < len(self.source):
            char = self.source[self.pos]
            if char in "'\"":
                literals.append(self.read_string(char))
                continue
            if char == "`":
                self.skip_template()
                continue
            if self.peek("//"):
                newline = self.source.find("\n", self.pos)
                self.pos = len(self.source) if newline < 0 else newline
                continue
            if self.peek("/*"):
                close = self.source.find("*/", self.pos + 2)
                if close < 0:
                    raise self.error("Unterminated comment in expression")
                self.pos = close + 2
                continue
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    self.pos += 1
                    return Expression(
                        self.source[start + 1 : self.pos - 1],
                        SourceRange(start, self.pos),
                        tuple(literals),
                    )
            self.pos += 1
        raise self.error("Unterminated expression")

    def read_string(self, quote: str) -> StringLiteral:
        start = self.pos
        self.pos += 1
        chars: list[str] = []
        while self.pos < len(self.source):
            char = self.source[self.pos]
            if char == "\\" and self.pos + 1 < len(self.source):
                escaped = self.source[self.pos + 1]
                chars.append(_ESCAPES.get(escaped, escaped))
                self.pos += 2
                continue
            if char == quote:
                self.pos += 1
                return StringLiteral("".join(chars), SourceRange(start, self.pos))
            if char == "\n":
                break
            chars.append(char)
            self.pos += 1
        raise self.error("Unterminated string literal")

    def skip_template(self) -> None:
        self.pos += 1
        while self.pos < len(self.source):
            if self.peek("\\"):
                self.pos += 2
                continue
            if self.peek("`"):
                self.pos += 1
                return
            if self.peek("${"):
                self.pos += 1
                self.read_expression()
                continue
            self.pos += 1
        raise self.error("Unterminated template literal")

    def read_name(self) -> str:
        start = self.pos
        while self.pos < len(self.source) and self.source[self.pos] not in _NAME_STOP:
            self.pos += 1
        if start == self.pos:
            raise self.error("Expected a name")
        return self.source[start : self.pos]

    def skip_space(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos].isspace():
            self.pos += 1

    def read_attribute(self) -> Attribute:
        start = self.pos
        name = self.read_name()
        self.skip_space()
        if not self.peek("="):
            return Attribute(name, SourceRange(start, self.pos))
        self.pos += 1
        self.skip_space()
        if self.peek("{"):
            expression = self.read_expression()
            return Attribute(name, SourceRange(start, self.pos), expression=expression)
        if self.peek('"') or self.peek("'"):
            quote = self.source[self.pos]
            value_start = self.pos
            close = self.source.find(quote, value_start + 1)
            if close < 0:
                raise self.error(f"Unterminated value of attribute {name}")
            self.pos = close + 1
            return Attribute(
                name,
                SourceRange(start, self.pos),
                value=self.source[value_start + 1 : close],
                value_range=SourceRange(value_start, self.pos),
            )
        value_start = self.pos
        while self.pos < len(self.source) and not (self.source[self.pos].isspace() or self.peek(">") or self.peek("/>")):
            self.pos += 1
        return Attribute(
            name,
            SourceRange(start, self.pos),
            value=self.source[value_start : self.pos],
            value_range=SourceRange(value_start, self.pos),
        )

    def read_element(self) -> Container | Other:
        start = self.pos
        self.pos += 1
        name = self.read_name()
        attributes: list[Attribute] = []
        while True:
            self.skip_space()
            if self.pos >= len(self.source):
                raise self.error(f"Unterminated tag <{name}>")
            if self.peek("/>"):
                self.pos += 2
                return Container(name, SourceRange(start, self.pos), tuple(attributes), can_have_children=False)
            if self.peek(">"):
                self.pos += 1
                break
            attributes.append(self.read_attribute())
        if name.lower() in VOID_ELEMENTS:
            return Container(name, SourceRange(start, self.pos), tuple(attributes), can_have_children=False)
        if name.lower() in _RAW_TEXT_ELEMENTS:
            return self.read_raw_element(name, start, tuple(attributes))
        self.depth += 1
        if self.depth > MAX_DEPTH:
            raise self.error(f"Nesting deeper than {MAX_DEPTH} elements", DiagnosticCode.MAX_DEPTH_EXCEEDED)
        children = self.read_nodes(closing=name)
        self.depth -= 1
        self.expect_closing(name)
        return Container(name, SourceRange(start, self.pos), tuple(attributes), tuple(children))

    def read_raw_element(self, name: str, start: int, attributes: tuple[Attribute, ...]) -> Container | Other:
        closing = f"</{name}"
        end = self.source.lower().find(closing.lower(), self.pos)
        if end < 0:
            raise self.error(f"Unclosed element <{name}>")
        content_start = self.pos
        self.pos = end
        self.expect_closing(name)
        if name.lower() == "script":
            return Other("script", SourceRange(start, self.pos))
        text = Text(self.source[content_start:end], SourceRange(content_start, end))
        return Container(name, SourceRange(start, self.pos), attributes, (text,) if text.value else ())

    def expect_closing(self, name: str) -> None:
        self.pos += 2
        closing_name = self.read_name()
        if closing_name != name:
            raise self.error(f"Expected </{name}>, found </{closing_name}>")
        self.skip_space()
        if not self.peek(">"):
            raise self.error(f"Expected '>' to close </{name}>")
        self.pos += 1


def parse_markup(source: str) -> list[Node]:
    """Read markup into a list of top level nodes.

    Raises:
        MarkupParseError: On unbalanced tags, unterminated constructs or
            nesting deeper than MAX_DEPTH

    Example:
        >>> [type(node).__name__ for node in parse_markup("<p>Hi {name}</p>")]
        ['Container']
    """
    return _MarkupReader(source).read_nodes()
