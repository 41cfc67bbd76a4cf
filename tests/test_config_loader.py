"""Configuration loader tests."""
from __future__ import annotations

from pathlib import Path

import pytest

from hubctl.config import AppConfig, ConfigError, load_config


def test_load_config_defaults_when_file_missing(tmp_path: Path) -> None:
    """Defaults apply when no config file is present."""
    config = load_config(config_file=tmp_path / "missing.yml", env={})

    assert isinstance(config, AppConfig)
    assert config.api.base_url == "https://api.superhub.io"
    assert config.api.token is None
    assert config.api.timeout == 30.0
    assert config.api.verify_tls is True
    assert config.follow.poll_interval == 5.0
    assert config.verbose is False
    assert config.force is False


def test_load_config_reads_yaml_file(tmp_path: Path) -> None:
    """Values are loaded from the YAML config file."""
    cfg = tmp_path / "hubctl.yml"
    cfg.write_text(
        "logs_dir: {logs}\n"
        "force: true\n"
        "api:\n"
        "  base_url: https://hub.example.com/\n"
        "  token: abc\n"
        "  timeout: 5\n"
        "follow:\n"
        "  poll_interval: 2\n".format(logs=tmp_path / "logs")
    )

    config = load_config(config_file=cfg, env={})

    assert config.config_file == cfg
    assert config.logs_dir == tmp_path / "logs"
    assert config.force is True
    assert config.api.base_url == "https://hub.example.com"
    assert config.api.token == "abc"
    assert config.api.timeout == 5.0
    assert config.follow.poll_interval == 2.0


def test_env_overrides_take_precedence(tmp_path: Path) -> None:
    """Environment variables override defaults and file settings."""
    cfg = tmp_path / "hubctl.yml"
    cfg.write_text("api:\n  base_url: https://file.example.com\n")
    env = {
        "HUBCTL_API__BASE_URL": "https://env.example.com",
        "HUBCTL_API__VERIFY_TLS": "false",
        "HUBCTL_API__TIMEOUT": "45",
        "HUBCTL_VERBOSE": "yes",
        "HUBCTL_LOGS_DIR": str(tmp_path / "logs"),
    }

    config = load_config(config_file=cfg, env=env)

    assert config.api.base_url == "https://env.example.com"
    assert config.api.verify_tls is False
    assert config.api.timeout == 45.0
    assert config.verbose is True
    assert config.logs_dir == tmp_path / "logs"


def test_overrides_beat_environment(tmp_path: Path) -> None:
    """Programmatic overrides (CLI flags) win over the environment."""
    env = {"HUBCTL_FORCE": "false"}

    config = load_config(config_file=tmp_path / "none.yml", env=env, overrides={"force": True})

    assert config.force is True


def test_env_can_select_config_file(tmp_path: Path) -> None:
    """HUBCTL_CONFIG_FILE points at an alternative file."""
    cfg = tmp_path / "alt.yml"
    cfg.write_text("api:\n  token: from-env-file\n")

    config = load_config(env={"HUBCTL_CONFIG_FILE": str(cfg)})

    assert config.config_file == cfg
    assert config.api.token == "from-env-file"


def test_to_dict_redacts_token(tmp_path: Path) -> None:
    """The serialised form hides the API token unless asked not to."""
    config = load_config(
        config_file=tmp_path / "none.yml",
        env={"HUBCTL_API__TOKEN": "secret-token"},
    )

    assert config.to_dict()["api"]["token"] == "********"  # type: ignore[index]
    assert config.to_dict(redact=False)["api"]["token"] == "secret-token"  # type: ignore[index]


def test_invalid_config_file_raises(tmp_path: Path) -> None:
    """Non-mapping YAML documents are rejected."""
    cfg = tmp_path / "bad.yml"
    cfg.write_text("- just\n- a list\n")

    with pytest.raises(ConfigError):
        load_config(config_file=cfg, env={})


def test_unknown_top_level_key_raises(tmp_path: Path) -> None:
    """Unknown keys are reported."""
    cfg = tmp_path / "hubctl.yml"
    cfg.write_text("bogus: 1\n")

    with pytest.raises(ConfigError, match="bogus"):
        load_config(config_file=cfg, env={})


def test_unknown_api_key_raises(tmp_path: Path) -> None:
    """Unknown nested api keys are reported."""
    cfg = tmp_path / "hubctl.yml"
    cfg.write_text("api:\n  proxy: http://proxy\n")

    with pytest.raises(ConfigError, match="proxy"):
        load_config(config_file=cfg, env={})


def test_base_url_must_be_http(tmp_path: Path) -> None:
    """The API base URL must use http or https."""
    with pytest.raises(ConfigError, match="http"):
        load_config(
            config_file=tmp_path / "none.yml",
            env={"HUBCTL_API__BASE_URL": "ftp://hub"},
        )


def test_non_positive_timeout_raises(tmp_path: Path) -> None:
    """Timeouts must be positive numbers."""
    with pytest.raises(ConfigError, match="api.timeout"):
        load_config(config_file=tmp_path / "none.yml", env={"HUBCTL_API__TIMEOUT": "0"})
