import os

import pytest

from captioner.config_loader import AppConfig, ConfigLoader
from captioner.exceptions import ConfigurationError

ENV = {"OPENAI_API_KEY": "sk-test"}


def test_load_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("chunk_seconds: 300\ntranslate_model: gpt-4o\n", encoding="utf-8")
    assert ConfigLoader().load_config(str(path)) == {"chunk_seconds": 300, "translate_model": "gpt-4o"}


def test_load_empty_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert ConfigLoader().load_config(str(path)) == {}


def test_load_missing_config(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigLoader().load_config(str(tmp_path / "missing.yaml"))


def test_load_directory_is_rejected(tmp_path):
    with pytest.raises(ConfigurationError):
        ConfigLoader().load_config(str(tmp_path))


@pytest.mark.parametrize("content", ["just a string", "- a\n- b\n", "key: [unclosed"])
def test_load_invalid_yaml(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        ConfigLoader().load_config(str(path))


def test_defaults():
    config = AppConfig.from_sources({}, ENV)
    assert config.api_key == "sk-test"
    assert config.whisper_model == "whisper-1"
    assert config.chunk_seconds == 600
    assert config.translate_model == "gpt-4o-mini"
    assert config.translate_batch_size == 60
    assert config.max_attempts == 5
    assert config.bilingual and config.burn_in
    assert config.effective_font_size == 30


def test_file_values_and_environment():
    env = dict(ENV, OPENAI_BASE_URL="https://proxy.test/v1", CAPTIONER_FONTS_DIR="/fonts")
    config = AppConfig.from_sources({"chunk_seconds": 120, "bilingual": False, "bogus": 1}, env)
    assert config.chunk_seconds == 120
    assert config.api_base_url == "https://proxy.test/v1"
    assert config.env_font_dirs == ("/fonts",)
    assert config.effective_font_size == 36


def test_api_key_cannot_come_from_file():
    with pytest.raises(ConfigurationError):
        AppConfig.from_sources({"api_key": "sk-file"}, {})


def test_missing_api_key():
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        AppConfig.from_sources({}, {})


@pytest.mark.parametrize("key", ["chunk_seconds", "translate_batch_size", "max_attempts"])
def test_non_positive_values_are_rejected(key):
    with pytest.raises(ConfigurationError):
        AppConfig.from_sources({key: 0}, ENV)


def test_with_overrides_skips_none():
    config = AppConfig.from_sources({}, ENV).with_overrides(chunk_seconds=30, font_name=None, burn_in=False)
    assert config.chunk_seconds == 30
    assert config.font_name == "Noto Sans CJK TC"
    assert config.burn_in is False


def test_override_validation():
    with pytest.raises(ConfigurationError):
        AppConfig.from_sources({}, ENV).with_overrides(translate_batch_size=-1)


def test_example_config_is_valid():
    path = os.path.join(os.path.dirname(__file__), "..", "config.example.yaml")
    config = AppConfig.from_sources(ConfigLoader().load_config(path), ENV)
    assert config.translate_batch_size == 60
    assert config.target_language == "zh-TW"
