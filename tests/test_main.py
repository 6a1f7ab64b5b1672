from types import SimpleNamespace

import pytest

import main
from streamchat.exceptions import ConfigurationError
from streamchat.utils.config_parser import load_app_config
from tests.fakes import FakeTransport, StubConsole, fragments


@pytest.fixture
def app_config():
    return load_app_config()


@pytest.fixture
def transport(monkeypatch):
    fake = FakeTransport(replies=[fragments("hi there")])
    created = {}

    def from_config(**kwargs):
        created.update(kwargs)
        return fake

    monkeypatch.setattr(main, "ChatTransport", SimpleNamespace(from_config=from_config))
    fake.created = created
    return fake


@pytest.mark.asyncio
async def test_session_builds_the_client_once_and_runs_until_exit(app_config, transport):
    console = StubConsole(messages=["hello"], then="/exit")

    exit_code = await main.run_session(app_config, console)

    assert exit_code == 0
    assert transport.created["credential"] == "ghp_token"
    assert transport.created["model"] == "openai/gpt-4.1-mini"
    assert transport.created["provider_key"] == "github_models"
    assert console.fragments == ["hi there"]
    assert console.errors == []
    # Once before the prompts, once before the loop
    assert console.headers == 2


@pytest.mark.asyncio
async def test_unknown_provider_is_fatal_and_never_enters_the_loop(app_config):
    app_config.app.chat.llm_provider_key = "nope"
    console = StubConsole(messages=["hello"])

    exit_code = await main.run_session(app_config, console)

    assert exit_code == 1
    assert len(console.errors) == 1
    assert console.errors[0].startswith("Fatal error: Provider 'nope' not found")
    assert console.reader.calls == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "prompts",
    [{"secret": KeyboardInterrupt}, {"secret": EOFError}, {"model": KeyboardInterrupt}],
)
async def test_interrupt_during_setup_prompts_exits_cleanly(app_config, transport, prompts):
    console = StubConsole(**prompts)

    exit_code = await main.run_session(app_config, console)

    assert exit_code == 0
    assert console.errors == ["Operation cancelled."]
    assert console.reader.calls == 0
    assert transport.created == {}


@pytest.mark.asyncio
async def test_unexpected_error_in_the_loop_is_fatal(app_config, transport):
    console = StubConsole(messages=[RuntimeError("boom")])

    exit_code = await main.run_session(app_config, console)

    assert exit_code == 1
    assert console.errors == ["Fatal error: boom"]


def test_main_reports_configuration_errors(monkeypatch, capsys):
    monkeypatch.setattr(main, "load_dotenv", lambda *args, **kwargs: None)

    def broken_config():
        raise ConfigurationError("Configuration directory not found")

    monkeypatch.setattr(main, "load_app_config", broken_config)

    assert main.main() == 1
    assert "Configuration directory not found" in capsys.readouterr().err
