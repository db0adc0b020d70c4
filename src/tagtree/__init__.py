"""tagtree: restricted markup to element/text trees.

Parses a small markup dialect (nested ``<name>...</name>`` elements and
literal text, with no attributes, comments or entities) into immutable trees
and renders trees back to markup.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file()
- Level 2: Configured parser - TagTreeParser class
- Level 3: Building blocks - Scanner, TreeBuilder, TreeRenderer
"""

__version__ = "0.1.0"
__author__ = "tagtree developers"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Advanced configuration
from .api import TagTreeParser, parse, parse_bytes, parse_file, parse_string

# Level 3: Building blocks
from .character import Scanner

# Configuration classes for advanced usage
from .shared.config import ParserConfig

# Errors raised by the building blocks and carried by results
from .shared.errors import (
    IoFailure,
    MalformedClosingTag,
    MalformedTag,
    NestingTooDeep,
    ParseError,
    StrayClosingTag,
    TagMismatch,
    TagTreeError,
    UnexpectedEndOfInput,
)

# Core result objects for all API levels
from .tree import (
    Document,
    Node,
    OutputFormat,
    ParseResult,
    TreeBuilder,
    TreeRenderer,
    build_tree,
    to_markup,
    to_pretty,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions (progressive disclosure entry point)
    "parse",
    "parse_bytes",
    "parse_string",
    "parse_file",

    # Level 2: Advanced parser class
    "TagTreeParser",

    # Level 3: Building blocks
    "Scanner",
    "TreeBuilder",
    "TreeRenderer",
    "OutputFormat",
    "build_tree",
    "to_markup",
    "to_pretty",

    # Result objects and data structures
    "ParseResult",
    "Document",
    "Node",

    # Configuration classes for advanced usage
    "ParserConfig",

    # Errors
    "TagTreeError",
    "ParseError",
    "UnexpectedEndOfInput",
    "MalformedTag",
    "MalformedClosingTag",
    "StrayClosingTag",
    "TagMismatch",
    "NestingTooDeep",
    "IoFailure",
]
