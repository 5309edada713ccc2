"""
Settings for the pagination engine.

Values come from keyword arguments, then environment variables, then a
``.env`` file, then the declared default. Environment names are the
upper-cased field names (``PAGINATION_DEFAULT_PAGE_SIZE``).
"""

from __future__ import annotations

import os
from abc import ABC
from pathlib import Path
from typing import Any, Dict, Optional, Type, Union, get_type_hints


class FieldInfo:
    """Default and description of a settings field."""

    def __init__(self, default: Any = None, description: str = "") -> None:
        self.default = default
        self.description = description


def Field(default: Any = None, *, description: str = "") -> Any:
    """Create a field descriptor for settings."""
    return FieldInfo(default=default, description=description)


class SettingsConfigDict:
    """Configuration for settings loading."""

    def __init__(
        self, env_file: Optional[str] = None, env_file_encoding: str = "utf-8"
    ) -> None:
        self.env_file = env_file
        self.env_file_encoding = env_file_encoding


class BaseSettings(ABC):
    """Base class for settings that loads from environment variables."""

    model_config: SettingsConfigDict = SettingsConfigDict()

    def __init__(self, **kwargs: Any) -> None:
        env_vars: Dict[str, str] = {}
        if self.model_config.env_file:
            env_vars = self._load_env_file(self.model_config.env_file)

        for field_name, field_type in get_type_hints(self.__class__).items():
            if field_name.startswith("_") or field_name == "model_config":
                continue

            field_info = getattr(self.__class__, field_name, None)
            default_value = (
                field_info.default if isinstance(field_info, FieldInfo) else field_info
            )

            env_name = field_name.upper()
            if field_name in kwargs:
                value = kwargs[field_name]
            elif env_name in os.environ:
                value = os.environ[env_name]
            else:
                value = env_vars.get(env_name, default_value)

            if value is not None:
                value = self._convert_value(value, field_type)
            setattr(self, field_name, value)

    def _load_env_file(self, env_file_path: str) -> Dict[str, str]:
        """Load KEY=VALUE pairs from a .env file, ignoring comments."""
        env_vars: Dict[str, str] = {}
        env_path = Path(env_file_path)
        if not env_path.exists():
            return env_vars

        with open(env_path, "r", encoding=self.model_config.env_file_encoding) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    env_vars[key.strip()] = value.strip().strip("\"'")
        return env_vars

    def _convert_value(self, value: Any, target_type: Type) -> Any:
        """Convert a string value to the target type."""
        if not isinstance(value, str):
            return value

        if target_type is bool:
            return value.lower() in ("true", "1", "yes", "on")
        if target_type is int:
            return int(value)

        # Optional[X]: convert to X
        if getattr(target_type, "__origin__", None) is Union:
            inner = [arg for arg in target_type.__args__ if arg is not type(None)]
            if inner:
                return self._convert_value(value, inner[0])

        return value


class PagerSettings(BaseSettings):
    """Settings for cursor-based pagination."""

    model_config = SettingsConfigDict(env_file=".env")

    pagination_default_page_size: int = Field(
        default=25,
        description="Page size used when neither first nor last is given",
    )

    # No clamp unless configured
    pagination_max_page_size: Optional[int] = Field(
        default=None,
        description="Maximum allowed page size for pagination",
    )

    pagination_cursor_field: str = Field(
        default="createdAt",
        description="Default cursor and sort field",
    )

    pagination_cursor_type: str = Field(
        default="Date",
        description="Default cursor type; types other than Date pass through",
    )

    pagination_soft_delete_field: str = Field(
        default="deletedAt",
        description="Field marking a document as soft-deleted",
    )

    pagination_with_deleted_key: str = Field(
        default="withDeleted",
        description="Filter control key that includes soft-deleted documents",
    )

    pagination_strict_operators: bool = Field(
        default=False,
        description="Raise on unknown filter operators instead of dropping them",
    )

    pagination_escape_patterns: bool = Field(
        default=False,
        description="Escape regex metacharacters in pattern filter values",
    )

    pagination_secret_key: Optional[str] = Field(
        default=None,
        description="Secret key for cursor signing; cursors are unsigned if unset",
    )

    pagination_tz_aware: bool = Field(
        default=False,
        description="Decode date cursors to aware datetimes, like the client tz_aware",
    )

    pagination_allow_disk_use: bool = Field(
        default=True,
        description="Allow the aggregation engine to spill to disk",
    )


_settings: Optional[PagerSettings] = None


def get_settings() -> PagerSettings:
    """Get the global settings instance, creating it if necessary."""
    global _settings
    if _settings is None:
        _settings = PagerSettings()
    return _settings
