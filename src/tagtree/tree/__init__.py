"""Tree building engine for tagtree.

This module builds immutable node trees from markup text and renders finished
trees back to text.

Key Components:
    TreeBuilder: Sibling loop, node dispatch, tag and text parsing
    Node: Immutable element or text node
    Document: Root sibling sequence with statistics
    ParseResult: Document or error plus diagnostics and metrics
    TreeRenderer: Canonical markup, indented markup, JSON and outline output
"""

from .builder import ParseResult, TreeBuilder, build_tree
from .nodes import Document, ElementData, Node, TextData
from .render import OutputFormat, TreeRenderer, to_markup, to_pretty

__all__ = [
    "ParseResult",
    "TreeBuilder",
    "build_tree",
    "Document",
    "ElementData",
    "Node",
    "TextData",
    "OutputFormat",
    "TreeRenderer",
    "to_markup",
    "to_pretty",
]
