"""Shared utilities for tagtree.

This module provides configuration objects, structured logging, diagnostic
types and the exception hierarchy used across all processing layers.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    GlobalConfig,
    LoaderConfig,
    OutputConfig,
    ParserConfig,
    TreeConfig,
)
from .errors import (
    IoFailure,
    MalformedClosingTag,
    MalformedTag,
    NestingTooDeep,
    ParseError,
    StrayClosingTag,
    TagMismatch,
    TagTreeError,
    TextPosition,
    UnexpectedEndOfInput,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "GlobalConfig",
    "LoaderConfig",
    "OutputConfig",
    "ParserConfig",
    "TreeConfig",
    "IoFailure",
    "MalformedClosingTag",
    "MalformedTag",
    "NestingTooDeep",
    "ParseError",
    "StrayClosingTag",
    "TagMismatch",
    "TagTreeError",
    "TextPosition",
    "UnexpectedEndOfInput",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
]
