"""Tests for YAML configuration loading."""

import pytest

from relnotes import config
from relnotes.config import (
    get_buckets_config,
    get_rewrite_settings,
    load_config,
    resolve_config_path,
)


class TestLoadConfig:
    def test_missing_file(self, tmp_path):
        with pytest.raises(RuntimeError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(RuntimeError, match="mapping"):
            load_config(path)

    def test_empty_file_is_empty_config(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == {}

    def test_buckets_keep_yaml_order(self, tmp_path):
        path = tmp_path / "c.yaml"
        path.write_text("buckets:\n  Zeta: [z]\n  Alpha: [a]\n", encoding="utf-8")
        assert list(get_buckets_config(load_config(path))) == ["Zeta", "Alpha"]

    def test_buckets_wrong_type(self):
        with pytest.raises(RuntimeError):
            get_buckets_config({"buckets": "App"})

    def test_shipped_default_config_loads(self):
        cfg = load_config(config.DEFAULT_CONFIG_PATH)
        assert list(get_buckets_config(cfg)) == ["App", "Api"]


class TestResolveConfigPath:
    def test_explicit_path_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv(config.CONFIG_ENV_VAR, str(tmp_path / "env.yaml"))
        assert resolve_config_path(str(tmp_path / "x.yaml")) == (tmp_path / "x.yaml").resolve()

    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv(config.CONFIG_ENV_VAR, str(tmp_path / "env.yaml"))
        assert resolve_config_path() == (tmp_path / "env.yaml").resolve()

    def test_missing_default_gives_none(self, tmp_path, monkeypatch):
        monkeypatch.delenv(config.CONFIG_ENV_VAR, raising=False)
        monkeypatch.setattr(config, "DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml")
        assert resolve_config_path() is None


class TestRewriteSettings:
    def test_defaults_without_token_are_disabled(self):
        settings = get_rewrite_settings({}, environ={})
        assert settings.provider == "openai"
        assert settings.api_key is None
        assert not settings.enabled

    def test_token_from_configured_env_var(self):
        cfg = {"rewrite": {"token_env": "MY_TOKEN", "model": "gpt-x", "timeout_s": 5}}
        settings = get_rewrite_settings(cfg, environ={"MY_TOKEN": " sk-abc "})
        assert settings.api_key == "sk-abc"
        assert settings.model == "gpt-x"
        assert settings.timeout_s == 5.0
        assert settings.enabled

    def test_ollama_enabled_by_base_url(self):
        cfg = {"rewrite": {"provider": "ollama", "base_url": "http://localhost:11434"}}
        settings = get_rewrite_settings(cfg, environ={})
        assert settings.enabled
        assert settings.model == config.DEFAULT_MODELS["ollama"]

    def test_unknown_provider(self):
        with pytest.raises(RuntimeError, match="provider"):
            get_rewrite_settings({"rewrite": {"provider": "bard"}}, environ={})

    def test_bad_timeout(self):
        with pytest.raises(RuntimeError, match="timeout_s"):
            get_rewrite_settings({"rewrite": {"timeout_s": "soon"}}, environ={})

    def test_prompt_override(self):
        settings = get_rewrite_settings({"prompts": {"rewrite_system": "Be brief."}}, environ={})
        assert settings.system == "Be brief."
