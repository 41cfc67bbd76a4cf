"""Configuration loader for hubctl.

This module centralises the logic for reading configuration values from
multiple sources:

1. Built-in defaults.
2. ``~/.config/hubctl/config.yml`` (or an override path).
3. Environment variables prefixed with ``HUBCTL_``.
4. Explicit overrides supplied programmatically (reserved for CLI flags).

Environment keys use double underscores to express nesting, e.g.::

    export HUBCTL_API__BASE_URL=https://hub.example.com
    export HUBCTL_API__VERIFY_TLS=false

Values are coerced via PyYAML's ``safe_load`` so that booleans and numbers are
parsed naturally. The resulting configuration is exposed as immutable
``dataclasses`` for convenient access and type safety.
"""
from __future__ import annotations

import copy
import os
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from pathlib import Path

import yaml

from .errors import HubError
from .exit_codes import ExitCode

ENV_PREFIX = "HUBCTL_"
CONFIG_ENV_VAR = f"{ENV_PREFIX}CONFIG_FILE"
RESERVED_ENV_KEYS = {CONFIG_ENV_VAR}
REDACTED = "********"


class ConfigError(HubError):
    """Raised when configuration parsing fails."""

    exit_code = ExitCode.VALIDATION


@dataclass(frozen=True)
class ApiConfig:
    """Hub API endpoint and credentials."""

    base_url: str = "https://api.superhub.io"
    token: str | None = None
    timeout: float = 30.0
    verify_tls: bool = True

    def to_dict(self, *, redact: bool = True) -> dict[str, object]:
        """Return a serialisable representation."""
        token = self.token
        if redact and token:
            token = REDACTED
        return {
            "base_url": self.base_url,
            "token": token,
            "timeout": self.timeout,
            "verify_tls": self.verify_tls,
        }


@dataclass(frozen=True)
class FollowConfig:
    """Log-follow polling behaviour."""

    poll_interval: float = 5.0

    def to_dict(self) -> dict[str, object]:
        """Return a serialisable representation."""
        return {"poll_interval": self.poll_interval}


@dataclass(frozen=True)
class AppConfig:
    """Resolved configuration values for hubctl."""

    config_file: Path
    logs_dir: Path
    verbose: bool
    force: bool
    api: ApiConfig
    follow: FollowConfig

    def to_dict(self, *, redact: bool = True) -> dict[str, object]:
        """Return a JSON-serialisable representation of the config."""
        return {
            "config_file": str(self.config_file),
            "logs_dir": str(self.logs_dir),
            "verbose": self.verbose,
            "force": self.force,
            "api": self.api.to_dict(redact=redact),
            "follow": self.follow.to_dict(),
        }


DEFAULTS: dict[str, object] = {
    "config_file": "~/.config/hubctl/config.yml",
    "logs_dir": "~/.local/state/hubctl/logs",
    "verbose": False,
    "force": False,
    "api": {
        "base_url": "https://api.superhub.io",
        "token": None,
        "timeout": 30.0,
        "verify_tls": True,
    },
    "follow": {
        "poll_interval": 5.0,
    },
}

ALLOWED_TOP_LEVEL_KEYS = set(DEFAULTS.keys())
ALLOWED_API_KEYS = {"base_url", "token", "timeout", "verify_tls"}
ALLOWED_FOLLOW_KEYS = {"poll_interval"}


def load_config(
    config_file: str | os.PathLike[str] | None = None,
    *,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, object] | None = None,
) -> AppConfig:
    """Load and merge configuration sources into an :class:`AppConfig`."""
    merged: dict[str, object] = copy.deepcopy(DEFAULTS)
    resolved_env = dict(os.environ if env is None else env)

    config_default = _expect_str(merged["config_file"], "config_file")
    config_path = _determine_config_path(config_default, config_file, resolved_env)

    file_values = _load_yaml_file(config_path)
    if file_values:
        _deep_merge(merged, file_values)

    env_values = _build_env_overrides(resolved_env)
    if env_values:
        _deep_merge(merged, env_values)

    if overrides:
        _deep_merge(merged, dict(overrides))

    merged["config_file"] = str(config_path)

    _validate_structure(merged)

    return _build_app_config(merged)


def _determine_config_path(
    default_path: str,
    cli_override: str | os.PathLike[str] | None,
    env: Mapping[str, str],
) -> Path:
    if cli_override:
        return Path(cli_override).expanduser()
    if CONFIG_ENV_VAR in env:
        return Path(env[CONFIG_ENV_VAR]).expanduser()
    return Path(default_path).expanduser()


def _load_yaml_file(path: Path) -> dict[str, object]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - PyYAML owns detailed error
        raise ConfigError(f"Failed to parse config file {path}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level.")
    return _as_dict(data, f"file:{path}")


def _validate_structure(raw: Mapping[str, object]) -> None:
    _reject_unknown(raw, ALLOWED_TOP_LEVEL_KEYS, "configuration")

    api_map = _as_dict(raw.get("api"), "api")
    _reject_unknown(api_map, ALLOWED_API_KEYS, "api configuration")
    base_url = api_map.get("base_url")
    if not isinstance(base_url, str) or not base_url.strip():
        raise ConfigError("api.base_url must be a non-empty string.")
    if not base_url.startswith(("http://", "https://")):
        raise ConfigError(f"api.base_url must be an http(s) URL. Got {base_url!r}.")
    token = api_map.get("token")
    if token is not None and not isinstance(token, str):
        raise ConfigError("api.token must be a string when provided.")

    _reject_unknown(_as_dict(raw.get("follow"), "follow"), ALLOWED_FOLLOW_KEYS, "follow configuration")


def _reject_unknown(section: Mapping[str, object], allowed: set[str], label: str) -> None:
    unknown = sorted(set(section) - allowed)
    if unknown:
        raise ConfigError(f"Unknown {label} keys: {', '.join(unknown)}.")


def _build_app_config(raw: Mapping[str, object]) -> AppConfig:
    api_mapping = _as_dict(raw.get("api"), "api")
    token_value = api_mapping.get("token")
    api = ApiConfig(
        base_url=str(api_mapping.get("base_url")).rstrip("/"),
        token=str(token_value) if token_value else None,
        timeout=_expect_positive_float(api_mapping.get("timeout"), "api.timeout", default=30.0),
        verify_tls=_expect_bool(api_mapping.get("verify_tls"), "api.verify_tls", default=True),
    )

    follow_mapping = _as_dict(raw.get("follow"), "follow")
    follow = FollowConfig(
        poll_interval=_expect_positive_float(
            follow_mapping.get("poll_interval"),
            "follow.poll_interval",
            default=5.0,
        ),
    )

    return AppConfig(
        config_file=_to_path(raw.get("config_file")),
        logs_dir=_to_path(raw.get("logs_dir")),
        verbose=_expect_bool(raw.get("verbose"), "verbose", default=False),
        force=_expect_bool(raw.get("force"), "force", default=False),
        api=api,
        follow=follow,
    )


def _build_env_overrides(env: Mapping[str, str]) -> dict[str, object]:
    """Translate ``HUBCTL_A__B=value`` variables into ``{"a": {"b": value}}``."""
    overrides: dict[str, object] = {}
    for key, value in env.items():
        if key in RESERVED_ENV_KEYS or not key.startswith(ENV_PREFIX):
            continue
        segments = [part.lower() for part in key.removeprefix(ENV_PREFIX).split("__") if part]
        if segments:
            _assign_nested(overrides, segments, _coerce_value(value))
    return overrides


def _assign_nested(tree: dict[str, object], path: list[str], value: object) -> None:
    node = tree
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            dotted = ".".join(path)
            raise ConfigError(f"Environment override {dotted} conflicts with a scalar value.")
        node = child
    node[path[-1]] = value


def _deep_merge(target: MutableMapping[str, object], overrides: Mapping[str, object]) -> None:
    for key, value in overrides.items():
        current = target.get(key)
        if isinstance(current, MutableMapping) and isinstance(value, Mapping):
            _deep_merge(current, _as_dict(value, key))
        else:
            target[key] = value


def _coerce_value(raw: str) -> object:
    text = raw.strip()
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return text


def _to_path(value: object) -> Path:
    if isinstance(value, (str, Path)):
        return Path(value).expanduser()
    raise ConfigError(f"Expected a filesystem path. Got {value!r}.")


def _expect_str(value: object, key: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"Expected {key} to be a string. Got {value!r}.")
    return value


_BOOL_WORDS = {
    "true": True,
    "yes": True,
    "on": True,
    "1": True,
    "false": False,
    "no": False,
    "off": False,
    "0": False,
}


def _expect_bool(value: object | None, label: str, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _BOOL_WORDS:
        return _BOOL_WORDS[value.strip().lower()]
    raise ConfigError(f"Expected {label} to be a boolean. Got {value!r}.")


def _expect_positive_float(value: object | None, label: str, *, default: float) -> float:
    if value is None:
        return float(default)
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ConfigError(f"Expected {label} to be a number. Got {value!r}.")
    try:
        number = float(value)
    except ValueError as exc:
        raise ConfigError(f"Invalid number for {label}: {value!r}.") from exc
    if number <= 0:
        raise ConfigError(f"{label} must be greater than zero. Got {number}.")
    return number


def _as_dict(value: object | None, label: str) -> dict[str, object]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"Expected {label} to be a mapping. Got {type(value).__name__}.")
    bad_keys = [key for key in value if not isinstance(key, str)]
    if bad_keys:
        raise ConfigError(f"Mapping {label} must use string keys. Got {bad_keys[0]!r}.")
    return dict(value)


__all__ = [
    "ApiConfig",
    "AppConfig",
    "ConfigError",
    "FollowConfig",
    "load_config",
]
