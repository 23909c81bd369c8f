from __future__ import annotations

import pytest

from linearcli.env_auth import AuthError, EnvAuthConfig, TokenProvider, get_api_token


def _config(tmp_path, **kw):
    kw.setdefault("load_dotenv", False)
    kw.setdefault("token_file", str(tmp_path / "missing_token"))
    return EnvAuthConfig(**kw)


def test_explicit_token_wins(tmp_path, clean_token_env):
    clean_token_env.setenv("LINEAR_API_TOKEN", "from-env")
    assert get_api_token("explicit", _config(tmp_path)) == "explicit"


def test_environment_token(tmp_path, clean_token_env):
    clean_token_env.setenv("LINEAR_API_TOKEN", "  from-env \n")
    assert get_api_token(None, _config(tmp_path)) == "from-env"


def test_alias_variable(tmp_path, clean_token_env):
    clean_token_env.setenv("LINEAR_API_KEY", "from-key")
    assert get_api_token(None, _config(tmp_path)) == "from-key"


def test_token_file_fallback(tmp_path, clean_token_env):
    token_file = tmp_path / ".linear_api_token"
    token_file.write_text("from-file\n", encoding="utf-8")
    assert get_api_token(None, _config(tmp_path, token_file=str(token_file))) == "from-file"


def test_default_token_file_lives_in_home(tmp_path, clean_token_env):
    clean_token_env.setenv("HOME", str(tmp_path))
    (tmp_path / ".linear_api_token").write_text("home-token")
    provider = TokenProvider(EnvAuthConfig(load_dotenv=False))
    assert provider.token_file == tmp_path / ".linear_api_token"
    assert provider.get_token() == "home-token"


def test_dotenv_file_is_loaded(tmp_path, clean_token_env):
    env_file = tmp_path / ".env.test"
    env_file.write_text("LINEAR_API_TOKEN=from-dotenv\n")
    cfg = _config(tmp_path, load_dotenv=True, dotenv_path=str(env_file))
    assert get_api_token(None, cfg) == "from-dotenv"


def test_dotenv_does_not_override_environment(tmp_path, clean_token_env):
    clean_token_env.setenv("LINEAR_API_TOKEN", "from-env")
    env_file = tmp_path / ".env.test"
    env_file.write_text("LINEAR_API_TOKEN=from-dotenv\n")
    cfg = _config(tmp_path, load_dotenv=True, dotenv_path=str(env_file))
    assert get_api_token(None, cfg) == "from-env"


def test_missing_token_lists_all_options(tmp_path, clean_token_env):
    with pytest.raises(AuthError) as exc:
        get_api_token(None, _config(tmp_path))
    message = str(exc.value)
    assert "--api-token" in message
    assert "LINEAR_API_TOKEN" in message
    assert "~/.linear_api_token" in message
    assert exc.value.category == "auth"
