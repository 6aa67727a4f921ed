"""Configuration classes for encoding-tolerant XML loading.

This module provides configuration objects for the resolver, the file
layer and global behavior, with validation on construction and dict/JSON
round-tripping.
"""

import json
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Optional

COMPONENT_FIELDS = ("resolver", "io", "global_")


@dataclass
class ResolverConfig:
    """Configuration for the charset candidate chain."""

    enable_entity_repair: bool = True
    try_utf8_probe: bool = True
    try_locale_fallback: bool = True
    allow_unknown_fallback: bool = True
    warn_on_substitution: bool = True
    max_input_size_bytes: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate resolver configuration."""
        if self.max_input_size_bytes is not None and self.max_input_size_bytes <= 0:
            raise ValueError("max_input_size_bytes must be > 0 or None")


@dataclass
class IOConfig:
    """Configuration for reading and writing documents."""

    read_chunk_size: int = 4096
    flush_on_save: bool = True

    def __post_init__(self) -> None:
        """Validate I/O configuration."""
        if self.read_chunk_size <= 0:
            raise ValueError("read_chunk_size must be > 0")


@dataclass
class GlobalConfig:
    """Global configuration settings that apply across all components."""

    logging_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    enable_correlation_tracking: bool = True

    def __post_init__(self) -> None:
        """Validate global configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.logging_level not in valid_levels:
            raise ValueError(f"logging_level must be one of {valid_levels}")


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
class DocumentConfig:
    """Immutable configuration for documents and the resolver they use.

    Thread-safe due to frozen dataclass implementation; use ``override`` to
    derive a modified copy.
    """

    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    io: IOConfig = field(default_factory=IOConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            self.resolver.__post_init__()
            self.io.__post_init__()
            self.global_.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        if not (self.resolver.allow_unknown_fallback
                or self.resolver.try_utf8_probe
                or self.resolver.try_locale_fallback):
            # Only the suggested and detected charsets would remain.
            raise ConfigValidationError(
                "At least one fallback candidate must be enabled",
                field_name="resolver",
                suggestions=["Enable resolver.try_utf8_probe",
                             "Use DocumentConfig.strict()"]
            )

    def override(self, **kwargs: Any) -> "DocumentConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Field overrides; nested fields use ``component__field``

        Returns:
            New DocumentConfig instance with overrides applied

        Example:
            >>> config = DocumentConfig()
            >>> config.override(resolver__try_locale_fallback=False).resolver.try_locale_fallback
            False
        """
        nested_overrides: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in COMPONENT_FIELDS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        new_fields: Dict[str, Any] = {}
        for component, values in nested_overrides.items():
            try:
                new_fields[component] = replace(getattr(self, component), **values)
            except (TypeError, ValueError) as e:
                raise ConfigValidationError(str(e), field_name=component) from e
        new_fields.update(top_level)

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {f.name: _dataclass_to_dict(getattr(obj, f.name)) for f in fields(obj)}
            if isinstance(obj, Enum):
                return obj.name
            if isinstance(obj, (list, tuple)):
                return [_dataclass_to_dict(item) for item in obj]
            return obj

        result = _dataclass_to_dict(self)
        if not isinstance(result, dict):
            raise ConfigValidationError("Configuration serialization failed")
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos do not silently fall back to
        defaults.
        """
        component_types = {
            "resolver": ResolverConfig,
            "io": IOConfig,
            "global_": GlobalConfig,
        }
        values: Dict[str, Any] = {}
        for key, value in data.items():
            if key in component_types:
                component_cls = component_types[key]
                known = {f.name for f in fields(component_cls)}
                unknown = set(value) - known
                if unknown:
                    raise ConfigValidationError(
                        f"Unknown {key} fields: {sorted(unknown)}", field_name=key
                    )
                try:
                    values[key] = component_cls(**value)
                except ValueError as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            elif key in ("name", "description"):
                values[key] = value
            else:
                raise ConfigValidationError(f"Unknown configuration key: {key}", field_name=key)
        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "DocumentConfig":
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))

    # Preset factory methods
    @classmethod
    def default(cls) -> "DocumentConfig":
        """Full candidate chain with entity repair."""
        return cls(name="default")

    @classmethod
    def strict(cls) -> "DocumentConfig":
        """Only trust charsets that are suggested, declared or proven UTF-8."""
        return cls(
            resolver=ResolverConfig(
                try_locale_fallback=False,
                allow_unknown_fallback=False,
            ),
            name="strict",
            description="No locale guess and no unconverted last resort",
        )

    @classmethod
    def lenient(cls) -> "DocumentConfig":
        """Full candidate chain with substitution warnings silenced."""
        return cls(
            resolver=ResolverConfig(warn_on_substitution=False),
            global_=GlobalConfig(logging_level="ERROR"),
            name="lenient",
            description="Best effort loading without substitution warnings",
        )
