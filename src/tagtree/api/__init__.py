"""Public parsing API for tagtree.

Simple functions for one-off parsing, ``TagTreeParser`` for reuse with a
fixed configuration, and adapters that exchange trees with other document
libraries.
"""

from .adapters import (
    AdapterType,
    ConversionResult,
    IntegrationAdapter,
    get_adapter,
    list_available_adapters,
    register_adapter,
)
from .parser import (
    TagTreeParser,
    parse,
    parse_bytes,
    parse_file,
    parse_string,
)

__all__ = [
    "AdapterType",
    "ConversionResult",
    "IntegrationAdapter",
    "get_adapter",
    "list_available_adapters",
    "register_adapter",
    "TagTreeParser",
    "parse",
    "parse_bytes",
    "parse_file",
    "parse_string",
]
