"""
Relay configuration management.

Handles loading configuration from YAML files and resolving the
service-account secret from the environment.

Configuration Priority (highest to lowest):
    1. Explicit path passed to get_config()/create_app()
    2. User config: ~/.config/STTRelay/config.yaml
    3. Container default: /app/config.yaml
    4. Packaged default: stt_relay/config.yaml
    5. Fallback: ./config.yaml (current directory)
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from stt_relay.core.credentials import CLOUD_PLATFORM_SCOPE
from stt_relay.core.speech_client import DEFAULT_SPEECH_API_URL, RecognitionConfig

DEFAULT_CREDENTIALS_ENV = "SHEETS_SERVICE_KEY_JSON"
DEFAULT_ICON_URL = "https://jacklehamster.github.io/stt-worker/icon.png"


def get_user_config_dir() -> Path:
    """
    Get the user configuration directory.

    Returns:
        $XDG_CONFIG_HOME/STTRelay/ when set, else ~/.config/STTRelay/
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "STTRelay"
    return Path.home() / ".config" / "STTRelay"


class RelayConfig:
    """
    Relay configuration manager.

    Loads configuration from YAML file. The service-account secret is never
    cached here; it is resolved on every call to get_service_credentials().
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config: Dict[str, Any] = {}
        self._config_path = config_path
        self._loaded_from: Optional[Path] = None
        self._load_config()

    def _find_config_candidates(self) -> list[Path]:
        """Return readable config file candidates in priority order."""
        if self._config_path:
            if self._config_path.exists():
                try:
                    with self._config_path.open("r", encoding="utf-8"):
                        pass
                    return [self._config_path]
                except (PermissionError, OSError):
                    return []
            return []

        candidates = [
            get_user_config_dir() / "config.yaml",
            Path("/app/config.yaml"),
            Path(__file__).parent / "config.yaml",
            Path.cwd() / "config.yaml",
        ]

        readable: list[Path] = []
        for path in candidates:
            if not (path.exists() and path.is_file()):
                continue
            try:
                with path.open("r", encoding="utf-8"):
                    pass
                readable.append(path)
            except (PermissionError, OSError):
                continue

        return readable

    def _load_config(self) -> None:
        """Load configuration from the first valid candidate file."""
        candidates = self._find_config_candidates()

        if not candidates:
            raise RuntimeError(
                "No configuration file found. "
                "Expected one of:\n"
                f"  - {get_user_config_dir() / 'config.yaml'} (user config)\n"
                "  - /app/config.yaml (container default)\n"
                "  - stt_relay/config.yaml (packaged default)\n"
                "  - ./config.yaml (current directory)"
            )

        errors: list[tuple[Path, Exception]] = []
        for config_file in candidates:
            try:
                with config_file.open("r", encoding="utf-8") as f:
                    loaded = yaml.safe_load(f) or {}
                if not isinstance(loaded, dict):
                    raise yaml.YAMLError("top-level value must be a mapping")
                self.config = loaded
                self._loaded_from = config_file
                if errors:
                    print(
                        "WARNING: Skipped invalid config file(s): "
                        + ", ".join(str(path) for path, _ in errors)
                    )
                print(f"Loaded configuration from: {config_file}")
                return
            except (yaml.YAMLError, OSError) as e:
                print(f"ERROR: Could not load config file {config_file}: {e}")
                errors.append((config_file, e))
                if self._config_path:
                    break

        details = "\n".join(f"  - {path}: {err}" for path, err in errors)
        raise RuntimeError("Failed to load configuration. Tried:\n" + details)

    @property
    def loaded_from(self) -> Optional[Path]:
        """Return the path of the loaded configuration file."""
        return self._loaded_from

    def get(self, *keys: str, default: Any = None) -> Any:
        """
        Get a configuration value by nested key path.

            config.get("speech", "api_url")
            config.get("logging", "level", default="INFO")
            config.get("relay", default={})

        Raises:
            TypeError: If any key argument is not a string
        """
        if not keys:
            return self.config

        for i, key in enumerate(keys):
            if not isinstance(key, str):
                raise TypeError(
                    f"All configuration keys must be strings, got {type(key).__name__} "
                    f"for keys[{i}]: {repr(key)}. "
                    f"If you want to provide a default value, use the 'default=' keyword argument: "
                    f"cfg.get({', '.join(repr(k) for k in keys[:i] if isinstance(k, str))}, default={repr(key)})"
                )

        value = self.config
        for key in keys:
            if isinstance(value, dict):
                value = value.get(key)
            else:
                return default
            if value is None:
                return default
        return value

    @property
    def server(self) -> Dict[str, Any]:
        """Get server configuration."""
        return self.config.get("server") or {}

    @property
    def logging(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.config.get("logging") or {}

    @property
    def relay(self) -> Dict[str, Any]:
        """Get relay configuration."""
        return self.config.get("relay") or {}

    @property
    def speech(self) -> Dict[str, Any]:
        """Get speech API configuration."""
        return self.config.get("speech") or {}

    @property
    def speech_api_url(self) -> str:
        return _non_empty_string(self.get("speech", "api_url")) or DEFAULT_SPEECH_API_URL

    @property
    def token_scope(self) -> str:
        return _non_empty_string(self.get("speech", "scope")) or CLOUD_PLATFORM_SCOPE

    @property
    def speech_timeout(self) -> Optional[float]:
        """Seconds to wait on the speech API; None waits indefinitely."""
        value = self.get("speech", "timeout_seconds")
        return float(value) if value is not None else None

    @property
    def icon_url(self) -> str:
        return _non_empty_string(self.get("relay", "icon_url")) or DEFAULT_ICON_URL

    def get_service_credentials(self) -> Optional[str]:
        """
        Resolve the service-account JSON blob for the current request.

        The environment variable named by relay.credentials_env wins over the
        inline relay.service_key_json value. Blank values count as missing.
        """
        env_name = (
            _non_empty_string(self.get("relay", "credentials_env"))
            or DEFAULT_CREDENTIALS_ENV
        )
        return _non_empty_string(os.environ.get(env_name)) or _non_empty_string(
            self.get("relay", "service_key_json")
        )


def _non_empty_string(value: Any) -> Optional[str]:
    """Return a trimmed string only when value is a non-empty string."""
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed if trimmed else None


def resolve_recognition_config(config: RelayConfig | Dict[str, Any]) -> RecognitionConfig:
    """Build the recognition settings sent with every speech request."""
    if isinstance(config, RelayConfig):
        speech = config.speech
    else:
        speech = config.get("speech") or {}

    defaults = RecognitionConfig()
    sample_rate = speech.get("sample_rate_hertz") or defaults.sample_rate_hertz
    return RecognitionConfig(
        encoding=_non_empty_string(speech.get("encoding")) or defaults.encoding,
        sample_rate_hertz=int(sample_rate),
        language_code=_non_empty_string(speech.get("language_code"))
        or defaults.language_code,
    )


# Global config instance
_config: Optional[RelayConfig] = None


def get_config(config_path: Optional[Path] = None) -> RelayConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = RelayConfig(config_path)
    return _config


def reset_config() -> None:
    """Drop the global configuration so the next get_config() reloads it."""
    global _config
    _config = None
