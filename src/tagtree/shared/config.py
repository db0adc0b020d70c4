"""Configuration classes for tagtree.

This module provides configuration objects for the loader, the tree builder
and the renderer, plus an immutable aggregate ``ParserConfig`` with presets
and JSON round-tripping.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

VALID_LOGGING_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_OUTPUT_FORMATS = ["markup", "pretty", "json", "outline"]
COMPONENT_FIELDS = ["loader", "tree", "output", "global_"]

# Default nesting limit; None in TreeConfig disables it
DEFAULT_MAX_DEPTH = 1000


@dataclass
class LoaderConfig:
    """Configuration for reading documents from storage."""

    encoding: Optional[str] = None  # None means BOM detection, then UTF-8
    detect_bom: bool = True
    max_input_size_bytes: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate loader configuration."""
        if self.encoding is not None and not self.encoding:
            raise ValueError("encoding must be a non-empty string or None")
        if self.max_input_size_bytes is not None and self.max_input_size_bytes <= 0:
            raise ValueError("max_input_size_bytes must be > 0 or None")


@dataclass
class TreeConfig:
    """Configuration for tree building."""

    max_depth: Optional[int] = DEFAULT_MAX_DEPTH
    strict_root: bool = True  # Stray "</x>" at the root is an error
    elide_empty_text: bool = False

    def __post_init__(self) -> None:
        """Validate tree configuration."""
        if self.max_depth is not None and self.max_depth <= 0:
            raise ValueError("max_depth must be > 0 or None")


@dataclass
class OutputConfig:
    """Configuration for rendering trees."""

    default_format: str = "markup"
    indent: str = "  "
    json_indent: Optional[int] = 2

    def __post_init__(self) -> None:
        """Validate output configuration."""
        if self.default_format not in VALID_OUTPUT_FORMATS:
            raise ValueError(f"default_format must be one of {VALID_OUTPUT_FORMATS}")
        if self.indent.strip():
            raise ValueError("indent must contain only whitespace")
        if self.json_indent is not None and self.json_indent < 0:
            raise ValueError("json_indent must be >= 0 or None")


@dataclass
class GlobalConfig:
    """Global settings that apply across all components."""

    logging_level: str = "WARNING"
    enable_correlation_tracking: bool = True

    def __post_init__(self) -> None:
        """Validate global configuration."""
        if self.logging_level not in VALID_LOGGING_LEVELS:
            raise ValueError(f"logging_level must be one of {VALID_LOGGING_LEVELS}")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ParserConfig:
    """Complete configuration for every tagtree component.

    Instances are immutable; use ``override`` to derive a changed copy.
    """

    loader: LoaderConfig = field(default_factory=LoaderConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Re-validate every component configuration."""
        try:
            self.loader.__post_init__()
            self.tree.__post_init__()
            self.output.__post_init__()
            self.global_.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Fields to override; component fields use the
                ``component__field`` notation

        Returns:
            New ParserConfig instance with overrides applied

        Example:
            >>> config = ParserConfig()
            >>> deeper = config.override(tree__max_depth=5000)
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                # "global___x" is global_ + x
                component = next(
                    (c for c in COMPONENT_FIELDS if key.startswith(c + "__")), None
                )
                if component is None:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {key.split('__', 1)[0]}",
                        field_name=key,
                        suggestions=COMPONENT_FIELDS,
                    )
                field_name = key[len(component) + 2:]
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        for key, value in nested_overrides.items():
            if key in COMPONENT_FIELDS and isinstance(value, dict):
                try:
                    new_fields[key] = replace(getattr(self, key), **value)
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            else:
                new_fields[key] = value

        try:
            return replace(self, **new_fields)
        except TypeError as e:
            raise ConfigValidationError(str(e), suggestions=COMPONENT_FIELDS) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            if isinstance(obj, Enum):
                return obj.name
            return obj

        result = _dataclass_to_dict(self)
        if not isinstance(result, dict):
            raise ConfigValidationError("Configuration serialization failed")
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos in configuration files surface
        instead of being silently ignored.
        """
        component_types = {
            "loader": LoaderConfig,
            "tree": TreeConfig,
            "output": OutputConfig,
            "global_": GlobalConfig,
        }

        field_values: Dict[str, Any] = {}
        for key, value in data.items():
            if key in component_types:
                if not isinstance(value, dict):
                    raise ConfigValidationError(
                        f"Section '{key}' must be an object", field_name=key
                    )
                try:
                    field_values[key] = component_types[key](**value)
                except TypeError as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
                except ValueError as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            elif key in ("name", "description"):
                field_values[key] = value
            else:
                raise ConfigValidationError(
                    f"Unknown configuration key: {key}",
                    field_name=key,
                    suggestions=COMPONENT_FIELDS + ["name", "description"],
                )

        return cls(**field_values)

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def strict(cls) -> "ParserConfig":
        """Default behaviour: every malformed construct is an error."""
        return cls(name="strict", description="Reject any malformed input")

    @classmethod
    def lenient(cls) -> "ParserConfig":
        """Stop quietly at a stray root closing tag and drop empty text."""
        return cls(
            tree=TreeConfig(
                max_depth=None,
                strict_root=False,
                elide_empty_text=True,
            ),
            name="lenient",
            description="Ignore trailing input after a stray closing tag",
        )

    @classmethod
    def untrusted(cls) -> "ParserConfig":
        """Tight limits for documents from unknown sources."""
        return cls(
            loader=LoaderConfig(max_input_size_bytes=10 * 1024 * 1024),
            tree=TreeConfig(max_depth=256, strict_root=True),
            name="untrusted",
            description="Bounded input size and nesting depth",
        )

    @classmethod
    def from_preset(cls, preset: str) -> "ParserConfig":
        """Look up a preset by name."""
        presets = {
            "strict": cls.strict,
            "lenient": cls.lenient,
            "untrusted": cls.untrusted,
        }
        try:
            return presets[preset]()
        except KeyError:
            raise ConfigValidationError(
                f"Unknown preset: {preset}", suggestions=sorted(presets)
            ) from None
