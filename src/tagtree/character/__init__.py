"""Character layer for tagtree.

Turns stored bytes into document text (``DocumentLoader``) and exposes the
forward-only cursor the tree builder reads from (``Scanner``).
"""

from .loader import BOMDetector, DocumentLoader, LoadedDocument
from .scanner import Scanner

__all__ = [
    "BOMDetector",
    "DocumentLoader",
    "LoadedDocument",
    "Scanner",
]
