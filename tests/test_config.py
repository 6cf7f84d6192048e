"""Tests for YAML configuration loading."""

from __future__ import annotations

import pytest

from article_enricher.config import AppConfig, ProviderConfig, get_api_key, load_config


def test_load_config_without_path_returns_defaults():
    cfg = load_config(None)
    assert cfg == AppConfig()
    assert cfg.retry.max_attempts == 5
    assert cfg.channel.stall_seconds == 60.0
    assert cfg.keys.output == "output.json"


def test_load_config_merges_sections(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "retry:\n"
        "  max_attempts: 3\n"
        "  attempt_timeout_seconds: null\n"
        "channel:\n"
        "  simulate_faults: false\n"
        "  seed: 7\n"
        "keys:\n"
        "  output: out/enriched.json\n"
        "unknown_section:\n"
        "  ignored: true\n",
        encoding="utf-8",
    )

    cfg = load_config(str(path))

    assert cfg.retry.max_attempts == 3
    assert cfg.retry.attempt_timeout_seconds is None
    assert cfg.retry.base_delay_seconds == 1.0
    assert cfg.channel.simulate_faults is False
    assert cfg.channel.seed == 7
    assert cfg.keys.output == "out/enriched.json"
    assert cfg.keys.diff == "diff.json"


def test_load_config_does_not_share_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    first = load_config(str(path))
    first.retry.max_attempts = 99
    assert load_config(None).retry.max_attempts == 5


def test_unknown_key_in_known_section_is_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("retry:\n  attempts: 3\n", encoding="utf-8")
    with pytest.raises(TypeError):
        load_config(str(path))


def test_get_api_key_prefers_inline(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "from-env")
    assert get_api_key(ProviderConfig(api_key="inline")) == "inline"
    assert get_api_key(ProviderConfig(api_key_env="OPENAI_API_KEY")) == "from-env"


def test_get_api_key_without_env_name_is_none():
    assert get_api_key(ProviderConfig()) is None


def test_provider_endpoint_defaults_are_unset():
    cfg = ProviderConfig(name="gemini")
    assert cfg.model is None
    assert cfg.base_url is None
    assert cfg.api_key_env is None
