from __future__ import annotations

from typing import Any, Optional

from omegaconf import DictConfig
from rich.align import Align
from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import InvalidResponse, Prompt
from rich.text import Text

from streamchat.models import UsageStats

# Default validation bounds for free-text prompts.
DEFAULT_MIN_LENGTH = 3
DEFAULT_MAX_LENGTH = 200

DEFAULT_CREDIT = "[red]Sample chat client for GitHub Models ([link]https://github.com/marketplace/models[/])[/]"


class LengthValidatedPrompt(Prompt):
    """A text prompt that trims the answer and re-asks until its length is within bounds."""

    validate_error_message = "[red]Invalid input[/]"

    def __init__(self, prompt: str, *, min_length: int, max_length: int, **kwargs: Any):
        super().__init__(prompt, **kwargs)
        self.min_length = max(min_length, 0)
        self.max_length = max(max_length, self.min_length)

    def process_response(self, value: str) -> str:
        value = super().process_response(value).strip()
        if len(value) < self.min_length:
            raise InvalidResponse(f"[red]Value too short (min {self.min_length})[/]")
        if len(value) > self.max_length:
            raise InvalidResponse(f"[red]Value too long (max {self.max_length})[/]")
        return value


class ConsoleHelper:
    """
    Styled terminal I/O for the chat session: the header, prompts, the
    streamed reply, errors and token usage.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        title: str = "GitHub Models",
        credit: str = DEFAULT_CREDIT,
        min_length: int = DEFAULT_MIN_LENGTH,
        max_length: int = DEFAULT_MAX_LENGTH,
        message_min_length: int = 0,
        exit_command: str = "/exit",
    ):
        self.console = console or Console()
        self.title = title
        self.credit = credit
        self.min_length = min_length
        self.max_length = max_length
        self.message_min_length = message_min_length
        self.exit_command = exit_command

    @classmethod
    def from_config(cls, app_config: DictConfig, console: Optional[Console] = None) -> ConsoleHelper:
        ui_config = app_config.app.get("ui", {})
        input_config = app_config.app.input
        return cls(
            console=console,
            title=ui_config.get("title", "GitHub Models"),
            credit=ui_config.get("credit", DEFAULT_CREDIT),
            min_length=input_config.min_length,
            max_length=input_config.max_length,
            message_min_length=input_config.message_min_length,
            exit_command=app_config.app.chat.exit_command,
        )

    def show_header(self) -> None:
        """Clears the console and renders the app header."""
        self.console.clear()
        title = Text(self.title, style="bold red", justify="center")
        self.console.print(Group(title, Align.center(Panel(self.credit, expand=False))))
        self.console.print()

    def get_string(
        self,
        prompt: str,
        should_clear: bool = True,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None,
    ) -> str:
        """
        Shows a prompt, validates the input length, and returns the trimmed result.

        Args:
            prompt: Message displayed to the user (rich markup allowed).
            should_clear: When true, clears the console and reprints the header first.
            min_length: Minimum allowed length (defaults to the configured minimum).
            max_length: Maximum allowed length (defaults to the configured maximum).
        """
        if should_clear:
            self.show_header()

        text_prompt = LengthValidatedPrompt(
            prompt,
            console=self.console,
            min_length=self.min_length if min_length is None else min_length,
            max_length=self.max_length if max_length is None else max_length,
        )
        return text_prompt().strip()

    def get_secret(self, prompt: str) -> str:
        """Prompts for a secret value with hidden input and returns the trimmed result."""
        secret_prompt = LengthValidatedPrompt(
            prompt,
            console=self.console,
            password=True,
            min_length=DEFAULT_MIN_LENGTH,
            max_length=10_000,
        )
        return secret_prompt().strip()

    def read_message(self) -> str:
        return self.get_string(
            f"Enter your message (or {escape(self.exit_command)}):",
            should_clear=False,
            min_length=self.message_min_length,
        )

    def write_ai_header(self) -> None:
        self.console.print("\n[bold]AI:[/]")

    def write_fragment(self, text: str) -> None:
        self.console.print(text, end="", markup=False, highlight=False, soft_wrap=True)

    def display_error(self, message: str) -> None:
        """Writes an error message in red."""
        self.console.print(f"[red]{escape(message)}[/]")

    def display_usage(self, usage: Optional[UsageStats]) -> None:
        """Prints token usage statistics if the server reported them."""
        self.console.print()
        if usage is None:
            return

        self.console.print()
        self.console.print("[grey50]--- Usage ---[/]")
        self.console.print(f"[grey50]Prompt Tokens: {usage.prompt_tokens:,}[/]")
        self.console.print(f"[grey50]Completion Tokens: {usage.completion_tokens:,}[/]")
        self.console.print(f"[grey50]Total Tokens: {usage.total_tokens:,}[/]")
        self.console.print()
