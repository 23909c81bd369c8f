from __future__ import annotations

import textwrap

import pytest

from linearcli.config import DEFAULT_API_URL, ConfigError, load_config

FULL_CONFIG = textwrap.dedent(
    """\
    api:
      url: $LINEARCLI_TEST_URL
      timeout: 12
      token_file: ~/tokens/linear
    logging:
      json_enabled: true
      level: DEBUG
    concurrency:
      enabled: false
      max_workers: 2
    retry:
      attempts: 5
      base_sleep: 0.1
    environment:
      load_dotenv: false
      dotenv_path: .env.custom
    """
)


def test_defaults_when_default_file_missing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = load_config()
    assert cfg.source_file is None
    assert cfg.api_url == DEFAULT_API_URL
    assert cfg.api_timeout == 30
    assert cfg.logging_level == "WARNING"
    assert cfg.concurrency_enabled is True
    assert cfg.concurrency_max_workers == 4
    assert cfg.retry_attempts == 3
    assert cfg.env_load_dotenv is True


def test_explicit_missing_file_is_an_error(tmp_path):
    with pytest.raises(ConfigError) as exc:
        load_config(tmp_path / "nope.yaml", required=True)
    assert "not found" in str(exc.value)


def test_full_config_with_env_resolution(tmp_path, monkeypatch):
    monkeypatch.setenv("LINEARCLI_TEST_URL", "https://linear.example/graphql")
    path = tmp_path / "linear.config.yaml"
    path.write_text(FULL_CONFIG)
    cfg = load_config(path)
    assert cfg.source_file == path
    assert cfg.api_url == "https://linear.example/graphql"
    assert cfg.api_timeout == 12.0
    assert cfg.token_file == "~/tokens/linear"
    assert cfg.logging_json_enabled is True
    assert cfg.logging_level == "DEBUG"
    assert cfg.concurrency_enabled is False
    assert cfg.concurrency_max_workers == 2
    assert cfg.retry_attempts == 5
    assert cfg.retry_base_sleep == 0.1
    assert cfg.env_load_dotenv is False
    assert cfg.env_dotenv_path == ".env.custom"


def test_unset_env_reference_is_kept_verbatim(tmp_path, monkeypatch):
    monkeypatch.delenv("LINEARCLI_UNSET_VAR", raising=False)
    path = tmp_path / "c.yaml"
    path.write_text("api:\n  url: $LINEARCLI_UNSET_VAR\n")
    assert load_config(path).api_url == "$LINEARCLI_UNSET_VAR"


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "api: [1, 2]\n",
        "retry:\n  attempts: many\n",
        "api: {url: [unclosed\n",
    ],
)
def test_invalid_configs_raise(tmp_path, content):
    path = tmp_path / "bad.yaml"
    path.write_text(content)
    with pytest.raises(ConfigError):
        load_config(path)


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path).api_url == DEFAULT_API_URL
