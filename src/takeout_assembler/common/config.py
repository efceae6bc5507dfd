"""Configuration loader with multi-source support."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Generic, Mapping, Optional, Type, TypeVar

import platformdirs
import toml
from pydantic import BaseModel, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)

# TAKEOUT_ASSEMBLER_TAKEOUT__KEEP_JSON_LESS -> takeout.keep_json_less
ENV_NESTING_SEPARATOR = "__"


class ConfigLoader(Generic[T]):
    """Loads configuration from layered sources.

    Priority, lowest first:

    1. defaults file (explicit path, ``./config/defaults.toml`` or
       ``~/.config/<app>/defaults.toml``)
    2. system file (``/etc/<app>/config.toml`` or ``%PROGRAMDATA%``)
    3. user file in the platformdirs user config directory
    4. environment variables ``<APP>_<SECTION>__<KEY>``
    """

    def __init__(self, app_name: str, config_class: Type[T]) -> None:
        self.app_name = app_name
        self.config_class = config_class
        self.env_prefix = f"{app_name.upper().replace('-', '_')}_"
        self._config: Optional[T] = None

    def load(
        self,
        defaults_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> T:
        """Load and validate configuration from all sources.

        Args:
            defaults_path: Optional explicit defaults file
            environ: Environment mapping, ``os.environ`` when omitted

        Returns:
            Validated configuration object

        Raises:
            ConfigurationError: If a file cannot be parsed or validation fails
        """
        config_dict = self._load_defaults(defaults_path)

        for layer in (self._load_system_config(), self._load_user_config()):
            if layer:
                config_dict = self._deep_merge(config_dict, layer)

        config_dict = self._apply_env_overrides(
            config_dict, os.environ if environ is None else environ
        )

        try:
            self._config = self.config_class(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid configuration", app=self.app_name, errors=e.errors()
            ) from e

        return self._config

    def _read_toml(self, path: Path) -> Dict[str, Any]:
        logger.debug(f"Loading config file: {{'path': {str(path)!r}}}")
        try:
            return toml.load(path)
        except (toml.TomlDecodeError, OSError) as e:
            raise ConfigurationError(
                "Failed to read config file", path=str(path), error=str(e)
            ) from e

    def _load_defaults(self, defaults_path: Optional[Path] = None) -> Dict[str, Any]:
        """Load the defaults layer."""
        if defaults_path is not None:
            if not defaults_path.exists():
                raise ConfigurationError("Config file not found", path=str(defaults_path))
            return self._read_toml(defaults_path)

        possible_paths = [
            Path.cwd() / "config" / "defaults.toml",
            Path.home() / ".config" / self.app_name / "defaults.toml",
        ]
        for path in possible_paths:
            if path.exists():
                return self._read_toml(path)

        return {}

    def _load_system_config(self) -> Optional[Dict[str, Any]]:
        """Load system-wide configuration."""
        if os.name == "nt":
            system_path = (
                Path(os.environ.get("PROGRAMDATA", "C:\\ProgramData"))
                / self.app_name
                / "config.toml"
            )
        else:
            system_path = Path(f"/etc/{self.app_name}/config.toml")

        if system_path.exists():
            return self._read_toml(system_path)
        return None

    def _load_user_config(self) -> Optional[Dict[str, Any]]:
        """Load user-specific configuration."""
        user_config_dir = platformdirs.user_config_dir(appname=self.app_name, appauthor=False)
        user_config_path = Path(user_config_dir) / "config.toml"

        if user_config_path.exists():
            return self._read_toml(user_config_path)

        logger.debug(f"User config not found: {{'path': {str(user_config_path)!r}}}")
        return None

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, ``override`` wins."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(
        self, config: Dict[str, Any], environ: Mapping[str, str]
    ) -> Dict[str, Any]:
        """Override config values with prefixed environment variables."""
        for env_key, env_value in environ.items():
            if not env_key.startswith(self.env_prefix):
                continue

            key_path = env_key[len(self.env_prefix):].lower().split(ENV_NESTING_SEPARATOR)
            if not all(key_path):
                logger.warning(f"Ignoring malformed config variable: {{'name': {env_key!r}}}")
                continue

            current = config
            for part in key_path[:-1]:
                current = current.setdefault(part, {})
                if not isinstance(current, dict):
                    raise ConfigurationError(
                        "Environment override targets a scalar value", name=env_key
                    )

            current[key_path[-1]] = self._convert_env_value(env_value)

        return config

    def _convert_env_value(self, value: str) -> Any:
        """Convert an environment string to bool, number, list or string."""
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "on"):
            return True
        if lowered in ("false", "no", "off"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if "," in value:
            return [v.strip() for v in value.split(",") if v.strip()]

        return value

    @property
    def config(self) -> T:
        """Get loaded configuration, loading it on first access."""
        if self._config is None:
            self._config = self.load()
        return self._config
