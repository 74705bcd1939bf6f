"""Range-based source editing over an immutable original string.

SourceEditor records edits against positions of the ORIGINAL content, so
callers can keep using the ranges reported by the walker no matter how many
edits came before. The content is kept as a linked list of chunks, each
covering an original range and holding its (possibly replaced) text plus
strings inserted before (intro) and after (outro) it.

Insertion side matters at shared boundaries:

    append_left(i, s)    attach to the chunk ending at i (stays with the left side)
    append_right(i, s)   attach to the chunk starting at i (stays with the right side)
    prepend_right(i, s)  like append_right, but in front of earlier insertions

So when the range ending at i is moved elsewhere, text appended left of i
moves with it while text appended right of i stays put.

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass

__all__ = ["SourceEditor"]


@dataclass(slots=True, eq=False)
class _Chunk:
    start: int
    end: int
    content: str
    intro: str = ""
    outro: str = ""
    edited: bool = False
    previous: _Chunk | None = None
    next: _Chunk | None = None

    def render(self) -> str:
        return self.intro + self.content + self.outro


class SourceEditor:
    """Splice edits into a source string by original positions.

    Example:
        >>> editor = SourceEditor("Hi {name}!")
        >>> editor.remove(0, 4)
        >>> editor.remove(8, 9)
        >>> editor.move(4, 8, 10)
        >>> editor.append_left(10, "t(0, [")
        >>> editor.append_right(10, "])")
        >>> editor.to_string()
        '!t(0, [name])'
    """

    __slots__ = ("_by_end", "_by_start", "_first", "_intro", "_last", "_outro", "_starts", "original")

    def __init__(self, original: str) -> None:
        self.original = original
        chunk = _Chunk(0, len(original), original)
        self._first: _Chunk = chunk
        self._last: _Chunk = chunk
        self._by_start: dict[int, _Chunk] = {0: chunk}
        self._by_end: dict[int, _Chunk] = {len(original): chunk}
        self._starts: list[int] = [0]
        self._intro = ""
        self._outro = ""

    def _check_index(self, index: int) -> None:
        if not 0 <= index <= len(self.original):
            msg = f"Index {index} out of range for content of length {len(self.original)}"
            raise IndexError(msg)

    def _split(self, index: int) -> None:
        """Ensure a chunk boundary exists at index."""
        if index in self._by_start or index in self._by_end:
            return
        chunk = self._by_start[self._starts[bisect.bisect_right(self._starts, index) - 1]]
        if chunk.edited and chunk.content:
            msg = f"Cannot split edited range [{chunk.start}, {chunk.end}) at {index}"
            raise ValueError(msg)
        offset = index - chunk.start
        right = _Chunk(
            index,
            chunk.end,
            "" if chunk.edited else chunk.content[offset:],
            outro=chunk.outro,
            edited=chunk.edited,
            previous=chunk,
            next=chunk.next,
        )
        if chunk.next is not None:
            chunk.next.previous = right
        else:
            self._last = right
        chunk.content = "" if chunk.edited else chunk.content[:offset]
        chunk.end = index
        chunk.outro = ""
        chunk.next = right
        self._by_end[index] = chunk
        self._by_start[index] = right
        self._by_end[right.end] = right
        bisect.insort(self._starts, index)

    def _chunks_in(self, start: int, end: int) -> list[_Chunk]:
        chunks = []
        pos = start
        while pos < end:
            chunk = self._by_start[pos]
            chunks.append(chunk)
            pos = chunk.end
        return chunks

    def _prepare_range(self, start: int, end: int) -> None:
        self._check_index(start)
        self._check_index(end)
        if end < start:
            msg = f"Invalid range [{start}, {end})"
            raise ValueError(msg)
        self._split(start)
        self._split(end)

    def remove(self, start: int, end: int) -> None:
        """Delete original text in [start, end), including insertions attached to it."""
        self._prepare_range(start, end)
        for chunk in self._chunks_in(start, end):
            chunk.intro = ""
            chunk.outro = ""
            chunk.content = ""
            chunk.edited = True

    def overwrite(self, start: int, end: int, content: str) -> None:
        """Replace original text in [start, end), keeping insertions at its edges."""
        if start == end:
            msg = "Cannot overwrite an empty range; use append_left or append_right"
            raise ValueError(msg)
        self._prepare_range(start, end)
        chunks = self._chunks_in(start, end)
        first, rest = chunks[0], chunks[1:]
        for chunk in rest:
            chunk.intro = ""
            chunk.outro = ""
            chunk.content = ""
            chunk.edited = True
        first.content = content
        first.edited = True

    def move(self, start: int, end: int, index: int) -> None:
        """Move original text in [start, end) so it appears right before index."""
        self._prepare_range(start, end)
        self._check_index(index)
        if start < index < end:
            msg = f"Cannot move range [{start}, {end}) inside itself"
            raise ValueError(msg)
        if start == end:
            return
        self._split(index)
        first = self._by_start[start]
        last = self._by_end[end]
        new_right = self._by_start.get(index)
        if new_right is None and last is self._last:
            return
        old_left, old_right = first.previous, last.next
        new_left = new_right.previous if new_right is not None else self._last
        # unlink
        if old_left is not None:
            old_left.next = old_right
        else:
            self._first = old_right  # type: ignore[assignment]
        if old_right is not None:
            old_right.previous = old_left
        else:
            self._last = old_left  # type: ignore[assignment]
        if new_left is last:
            new_left = old_left
        # relink
        first.previous = new_left
        last.next = new_right
        if new_left is not None:
            new_left.next = first
        else:
            self._first = first
        if new_right is not None:
            new_right.previous = last
        else:
            self._last = last

    def append_left(self, index: int, content: str) -> None:
        """Insert content at index, attached to the text on its left."""
        self._check_index(index)
        self._split(index)
        chunk = self._by_end.get(index)
        if chunk is None or index == 0:
            self._intro += content
        else:
            chunk.outro += content

    def append_right(self, index: int, content: str) -> None:
        """Insert content at index, attached to the text on its right."""
        self._check_index(index)
        self._split(index)
        chunk = self._by_start.get(index)
        if chunk is None or index == len(self.original):
            self._outro += content
        else:
            chunk.intro += content

    def prepend_right(self, index: int, content: str) -> None:
        """Like append_right, placed before earlier right-side insertions."""
        self._check_index(index)
        self._split(index)
        chunk = self._by_start.get(index)
        if chunk is None or index == len(self.original):
            self._outro = content + self._outro
        else:
            chunk.intro = content + chunk.intro

    def to_string(self) -> str:
        """Render the edited content."""
        parts = [self._intro]
        chunk: _Chunk | None = self._first
        while chunk is not None:
            parts.append(chunk.render())
            chunk = chunk.next
        parts.append(self._outro)
        return "".join(parts)

    def __str__(self) -> str:
        return self.to_string()
