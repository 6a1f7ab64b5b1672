import pytest

from streamchat.exceptions import ConfigurationError
from streamchat.utils.config_parser import load_app_config


def test_bundled_config_is_namespaced_by_file(monkeypatch):
    monkeypatch.delenv("STREAMCHAT_LOG_LEVEL", raising=False)

    config = load_app_config()

    assert config.app.chat.system_prompt == "You are a helpful assistant."
    assert config.app.chat.max_history_messages == 10
    assert config.app.chat.exit_command == "/exit"
    assert config.app.logging.level == "WARNING"
    assert config.app.chat.llm_provider_key in config.llms.llm_providers


def test_env_resolver_reads_environment(monkeypatch):
    monkeypatch.setenv("STREAMCHAT_LOG_LEVEL", "DEBUG")
    assert load_app_config().app.logging.level == "DEBUG"


def test_missing_directory_is_a_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError):
        load_app_config(tmp_path / "nope")


def test_unparseable_file_is_a_configuration_error(tmp_path):
    (tmp_path / "bad.yaml").write_text("key: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="bad.yaml"):
        load_app_config(tmp_path)
