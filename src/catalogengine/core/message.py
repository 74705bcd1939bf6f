"""Message model and deterministic key derivation.

A Message is the ephemeral unit produced by extraction. Its key is the sole
join point between extraction, catalog storage and compiled-array indexing,
so key derivation must stay pure and independent of extraction order.

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from catalogengine.enums import MessageKind, Scope

from .heuristic import HeuristicDetails

__all__ = [
    "Message",
    "message_key",
    "normalize_message_text",
]


def normalize_message_text(text: str) -> str:
    """Trim every line of a message text, keeping the line structure."""
    return "\n".join(line.strip() for line in text.split("\n"))


def message_key(msgid: Sequence[str], context: str | None = None) -> str:
    """Derive the catalog key of a message.

    The key joins at most the first two id entries (singular and plural) and
    the context with newlines. Two messages with the same id prefix and
    context always share a key.

    Example:
        >>> message_key(["Hello"])
        'Hello\\n'
        >>> message_key(["One item", "{0} items"], "cart")
        'One item\\n{0} items\\ncart'
    """
    return "\n".join(msgid[:2]) + "\n" + (context or "")


@dataclass(slots=True)
class Message:
    """Extracted unit of translatable text.

    Attributes:
        id: One entry for a plain message, two for plural forms
        context: Disambiguation tag; distinct contexts are distinct entries
        kind: Ordinary message or url (route pattern link)
        placeholders: (position, source expression) for every ``{n}``
        details: Structural details the heuristic saw for this text
        link: For url messages, the literal link as written in the source
    """

    id: list[str]
    context: str | None = None
    kind: MessageKind = MessageKind.MESSAGE
    placeholders: list[tuple[int, str]] = field(default_factory=list)
    details: HeuristicDetails = field(default_factory=lambda: HeuristicDetails(scope=Scope.MARKUP))
    link: str | None = None

    def __post_init__(self) -> None:
        self.id = [normalize_message_text(part) for part in self.id if part is not None]
        if not self.context:
            self.context = None

    @classmethod
    def of(
        cls,
        text: str | Iterable[str],
        details: HeuristicDetails,
        context: str | None = None,
    ) -> Message:
        """Build a message from a single text or a list of plural forms."""
        msgid = [text] if isinstance(text, str) else list(text)
        return cls(id=msgid, context=context, details=details)

    @property
    def plural(self) -> bool:
        """True for messages carrying a plural form."""
        return len(self.id) > 1

    @property
    def scope(self) -> Scope:
        """Scope the text was found in."""
        return self.details.scope

    @property
    def key(self) -> str:
        """Catalog key of this message."""
        return message_key(self.id, self.context)

    def describe_placeholders(self) -> list[str]:
        """Human-readable descriptions stored next to catalog references.

        Whitespace inside source expressions is collapsed so descriptions stay
        on one line in the persisted catalog.
        """
        return [
            f"placeholder {{{position}}}: {' '.join(expr.split())}"
            for position, expr in self.placeholders
        ]
