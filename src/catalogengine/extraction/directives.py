"""Comment directives controlling extraction of the next sibling.

    <!-- @i18n-ignore -->         skip the next node
    <!-- @i18n-include -->        extract the next node regardless of heuristics
    <!-- @i18n-context: menu -->  set the message context for the next node
    <!-- @i18n-ignore-file -->    skip the whole file

Directives are immutable; applying a comment yields a new state derived from
the current one, so the caller restores scope simply by keeping the old value.

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from catalogengine.constants import (
    DIRECTIVE_CONTEXT,
    DIRECTIVE_IGNORE,
    DIRECTIVE_IGNORE_FILE,
    DIRECTIVE_INCLUDE,
    DIRECTIVE_PREFIX,
)

__all__ = ["CommentDirectives", "is_directive"]


def is_directive(data: str) -> bool:
    """True if a comment body carries an extraction directive."""
    return data.strip().startswith(DIRECTIVE_PREFIX)


@dataclass(frozen=True, slots=True)
class CommentDirectives:
    """Directive state in effect for a node.

    Attributes:
        force_include: True forces extraction, False skips, None defers to heuristics
        context: Message context applied to extracted messages
        ignore_file: The file must not be extracted at all
    """

    force_include: bool | None = None
    context: str | None = None
    ignore_file: bool = False

    def apply(self, data: str) -> CommentDirectives:
        """Return the state after a comment with the given body.

        Example:
            >>> CommentDirectives().apply("@i18n-context: menu").context
            'menu'
            >>> CommentDirectives().apply("@i18n-ignore").force_include
            False
        """
        data = data.strip()
        if data == DIRECTIVE_IGNORE_FILE:
            return replace(self, ignore_file=True)
        if data == DIRECTIVE_IGNORE:
            return replace(self, force_include=False)
        if data == DIRECTIVE_INCLUDE:
            return replace(self, force_include=True)
        if data.startswith(DIRECTIVE_CONTEXT):
            return replace(self, context=data[len(DIRECTIVE_CONTEXT) :].strip() or None)
        return self
