"""
Unit tests for configuration loading and the compile mode.
"""
import json

import pytest

from template_composer.config import (
    CompileMode,
    ComposerConfiguration,
    ensure_composer_config,
    get_compile_mode,
    load_config,
    load_config_file,
    load_configuration_from_env,
    merge_configs,
    set_compile_mode,
)
from template_composer.error import ConfigurationError


def test_defaults():
    config = ComposerConfiguration()

    assert config.compile_mode is None
    assert config.variable_start_string == "[["
    assert config.block_start_string == "[%"
    assert config.max_cached_compositions is None
    assert config.effective_compile_mode() == CompileMode.PRODUCTION


def test_process_wide_mode():
    """Test the process-wide compile mode setter."""
    assert get_compile_mode() == CompileMode.PRODUCTION

    assert set_compile_mode("Development") == CompileMode.DEVELOPMENT
    assert get_compile_mode() == CompileMode.DEVELOPMENT
    assert ComposerConfiguration().effective_compile_mode() == CompileMode.DEVELOPMENT
    assert ComposerConfiguration(compile_mode="production").effective_compile_mode() == CompileMode.PRODUCTION


def test_invalid_mode():
    with pytest.raises(ValueError):
        set_compile_mode("staging")
    with pytest.raises(ConfigurationError):
        ensure_composer_config({"compile_mode": "staging"})


def test_log_level_normalized():
    assert ComposerConfiguration(log_level="debug").log_level == "DEBUG"
    with pytest.raises(ConfigurationError):
        ensure_composer_config({"log_level": "verbose"})


def test_start_delimiters_must_differ():
    with pytest.raises(ConfigurationError):
        ensure_composer_config({"variable_start_string": "[%"})


def test_empty_delimiter_rejected():
    with pytest.raises(ConfigurationError):
        ensure_composer_config({"block_end_string": " "})


def test_unknown_encoding_rejected():
    with pytest.raises(ConfigurationError):
        ensure_composer_config({"encoding": "no-such-codec"})


def test_ensure_composer_config():
    config = ComposerConfiguration(trim_blocks=True)

    assert ensure_composer_config(config) is config
    assert ensure_composer_config(None) == ComposerConfiguration()
    assert ensure_composer_config({"trim_blocks": True}).trim_blocks
    with pytest.raises(ConfigurationError):
        ensure_composer_config(["not", "a", "dict"])


def test_environment_options():
    options = ComposerConfiguration(autoescape=True).environment_options

    assert options["autoescape"] is True
    assert options["block_start_string"] == "[%"
    assert options["comment_end_string"] == "#]"


def test_load_yaml_config(tmp_path):
    path = tmp_path / "composer.yaml"
    path.write_text("compile_mode: development\nmax_cached_compositions: 10\n")

    assert load_config_file(path) == {"compile_mode": "development", "max_cached_compositions": 10}


def test_load_json_config(tmp_path):
    path = tmp_path / "composer.json"
    path.write_text(json.dumps({"encoding": "latin-1"}))

    assert load_config_file(str(path)) == {"encoding": "latin-1"}


@pytest.mark.parametrize("name, content", [
    ("composer.toml", "a = 1"),
    ("composer.yaml", "a: [unclosed"),
    ("composer.json", "{bad json"),
    ("composer.yml", "- a list"),
])
def test_load_config_file_errors(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content)

    with pytest.raises(ConfigurationError):
        load_config_file(path)


def test_load_config_file_missing(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config_file(tmp_path / "missing.yaml")


def test_load_configuration_from_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TEMPLATE_COMPOSER_COMPILE_MODE", "development")
    monkeypatch.setenv("TEMPLATE_COMPOSER_NOT_A_FIELD", "ignored")

    config = load_configuration_from_env()

    assert config == {"compile_mode": "development"}


def test_load_config_precedence(monkeypatch, tmp_path):
    """Test that environment beats file and file beats defaults."""
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "composer.yaml"
    path.write_text("trim_blocks: true\nlog_level: warning\n")
    monkeypatch.setenv("TEMPLATE_COMPOSER_LOG_LEVEL", "error")

    config = load_config(path, defaults={"trim_blocks": False, "lstrip_blocks": True})

    assert config.trim_blocks is True
    assert config.lstrip_blocks is True
    assert config.log_level == "ERROR"


def test_merge_configs_nested():
    assert merge_configs({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}}) == {"a": {"x": 1, "y": 3}, "b": 1}
