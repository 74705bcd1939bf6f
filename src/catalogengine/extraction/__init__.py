"""Message extraction from source files.

Components:
    MixedContentExtractor - Fuses sibling text, markup and interpolations into messages
    SourceEditor - Splices edits into source text by original positions
    parse_markup - Reads HTML/JSX-like markup into generic nodes
    MarkupTransformer / transform - Extracts a markup file and rewrites it

Python 3.11+. Zero external dependencies.
"""

from .directives import CommentDirectives, is_directive
from .editor import SourceEditor
from .markup import parse_markup
from .mixed import (
    ExtractedGroup,
    ExtractionContext,
    MixedContentExtractor,
    NestedRange,
    split_whitespace,
)
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
from .runtime import RuntimeVars
from .transformer import MarkupTransformer, TransformResult, URLMatcher, transform

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Nodes
    "Attribute",
    "Comment",
    "Container",
    "Expression",
    "Node",
    "Other",
    "SourceRange",
    "StringLiteral",
    "Text",
    # Extraction
    "CommentDirectives",
    "ExtractedGroup",
    "ExtractionContext",
    "MixedContentExtractor",
    "NestedRange",
    "is_directive",
    "split_whitespace",
    # Transformation
    "MarkupTransformer",
    "RuntimeVars",
    "SourceEditor",
    "TransformResult",
    "URLMatcher",
    "parse_markup",
    "transform",
]
