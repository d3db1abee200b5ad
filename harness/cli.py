"""Command-line entry point.

Sends the prompt to the configured model, runs any file tools it asks for,
and prints the final answer to stdout.
"""

import asyncio
import sys

import click
from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.markup import escape

from harness import __version__
from harness.clients import CompletionClient, create_completion_client
from harness.config import Settings
from harness.exceptions import HarnessError
from harness.services.agent import AgentLoop
from harness.tools.registry import ToolsRegistry
from harness.utils.logging import LogConfig, get_logger, setup_logging

logger = get_logger(__name__)


def get_error_console() -> Console:
    """Create a Rich Console on stderr so diagnostics never mix with the answer."""
    return Console(stderr=True)


async def run_prompt(prompt: str, settings: Settings, client: CompletionClient | None = None) -> str | None:
    """Run one prompt through the agent loop and return the final content."""
    loop = AgentLoop.from_settings(settings, client or create_completion_client(settings), ToolsRegistry())
    result = await loop.run(prompt, system_prompt=settings.system_prompt)

    logger.info(
        f"Token usage - Input: {result.usage.input_tokens}, Output: {result.usage.output_tokens}, "
        f"Turns: {result.turns}"
    )
    return result.content


@click.command()
@click.option("--prompt", "-p", required=True, help="The prompt to send to the model.")
@click.version_option(__version__, prog_name="harness")
def main(prompt: str) -> None:
    """Ask a model a question, letting it read and write local files."""
    load_dotenv(find_dotenv(usecwd=True))
    console = get_error_console()

    try:
        settings = Settings.from_env()
        setup_logging(LogConfig(level=settings.log_level))
        content = asyncio.run(run_prompt(prompt, settings))
    except HarnessError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    if content:
        click.echo(content, nl=False)


if __name__ == "__main__":
    main()
