import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from omegaconf import DictConfig

from streamchat.interface.console import ConsoleHelper
from streamchat.exceptions import ConfigurationError
from streamchat.llm import ChatTransport
from streamchat.streaming import CancellationSignal
from streamchat.utils.config_parser import load_app_config
from streamchat.workflows import TurnOrchestrator

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    # stdout carries the conversation, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    # Suppress excessively noisy logs from underlying HTTP libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


async def run_session(app_config: DictConfig, console: ConsoleHelper) -> int:
    """
    Collects the credential and model id, builds the client once, then runs
    the chat loop until the user exits or cancels.

    Returns:
        The process exit code.
    """
    chat_config = app_config.app.chat
    try:
        console.show_header()
        credential = console.get_secret("Enter your [red]GitHub Personal Access Token (PAT)[/]:")
        model = console.get_string(
            "Enter the [red]GitHub Model[/] you want to use (e.g. microsoft/Phi-4):",
            should_clear=True,
        )
        transport = ChatTransport.from_config(
            llm_config=app_config.llms,
            provider_key=chat_config.llm_provider_key,
            credential=credential,
            model=model,
        )
    except (KeyboardInterrupt, EOFError):
        console.display_error("Operation cancelled.")
        return 0
    except Exception as e:
        logger.critical("Failed to initialize the chat session", exc_info=True)
        console.display_error(f"Fatal error: {e}")
        return 1

    signal = CancellationSignal()
    orchestrator = TurnOrchestrator.from_config(app_config, transport, console, signal)

    console.show_header()
    try:
        return await orchestrator.run()
    except Exception as e:
        logger.critical("An unexpected error occurred in the conversation loop", exc_info=True)
        console.display_error(f"Fatal error: {e}")
        return 1


def main() -> int:
    """Main function to run the interactive chat."""
    load_dotenv(Path.cwd() / ".env")

    try:
        app_config = load_app_config()
    except ConfigurationError as e:
        print(f"FATAL: Could not load the configuration. Error: {e}", file=sys.stderr)
        return 1

    configure_logging(app_config.app.logging.level)
    console = ConsoleHelper.from_config(app_config)

    # A plain loop rather than asyncio.run(): Ctrl+C at the prompt must surface as
    # KeyboardInterrupt inside the session instead of cancelling the main task.
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(run_session(app_config, console))
    except KeyboardInterrupt:
        console.display_error("Operation cancelled.")
        return 0
    finally:
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
