"""Core message model shared by extraction, catalog and translation layers.

Python 3.11+. Zero external dependencies.
"""

from .heuristic import (
    HeuristicDetails,
    HeuristicFunc,
    default_heuristic,
    default_heuristic_func_only,
    resolve_verdict,
)
from .index import IndexTracker
from .message import Message, message_key, normalize_message_text

__all__ = [
    "HeuristicDetails",
    "HeuristicFunc",
    "IndexTracker",
    "Message",
    "default_heuristic",
    "default_heuristic_func_only",
    "message_key",
    "normalize_message_text",
    "resolve_verdict",
]
