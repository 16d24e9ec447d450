"""
ECPP Bridge CLI - Interactive chat interface.

Run `ecppbridge <path_to_server_script>` to start chatting with a model that
can call the tools of that MCP server.
"""

import sys
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

from ecppbridge import __version__
from ecppbridge.cli.logging_setup import configure_logging
from ecppbridge.core.orchestrator import Orchestrator
from ecppbridge.errors import ECPPBridgeError
from ecppbridge.providers.base import ProviderFactory
from ecppbridge.tools.schema import ToolDescriptor
from ecppbridge.tools.transport import MCPTransport
from ecppbridge.validation.config import Config

console = Console()

USAGE = "Usage: ecppbridge <path_to_server_script>"


class ChatShell:
    """
    Read-eval-print loop around an Orchestrator.

    `quit` (any case) ends the session, as do Ctrl+D and Ctrl+C.
    Errors from one query are printed and the shell keeps going.
    """

    def __init__(self, orchestrator: Orchestrator, tool_names: Optional[List[str]] = None):
        self.orchestrator = orchestrator
        self.tool_names = tool_names or []

    def _print_banner(self):
        tools = ", ".join(self.tool_names) if self.tool_names else "(none)"
        console.print(Panel(
            f"[bold]MCP Client Started![/bold]\n"
            f"[cyan]Tools:[/cyan] {tools}\n"
            f"[dim]Type your queries or 'quit' to exit.[/dim]",
            title=f"ECPP Bridge v{__version__}",
            border_style="blue",
        ))

    def _get_input(self) -> str:
        console.print("\n[bold green]Query: [/bold green]", end="")
        return input().strip()

    def run(self) -> None:
        self._print_banner()
        while True:
            try:
                query = self._get_input()
            except (EOFError, KeyboardInterrupt):
                console.print()
                break

            if query.lower() == "quit":
                break
            if not query:
                continue
            self.handle_query(query)

    def handle_query(self, query: str) -> None:
        try:
            with console.status("[bold blue]Thinking...[/bold blue]", spinner="dots"):
                answer = self.orchestrator.process_query(query)
        except ECPPBridgeError as exc:
            console.print(f"[red]Error: {exc}[/red]")
            return

        console.print()
        console.print(Markdown(answer))


def connect(script_path: str) -> Tuple[MCPTransport, List[ToolDescriptor]]:
    """Start the server script, handshake, and fetch its tool list."""
    transport = MCPTransport.for_script(script_path)
    try:
        transport.start()
        transport.initialize()
        tools = [ToolDescriptor.from_mcp(raw) for raw in transport.list_tools()]
    except ECPPBridgeError:
        transport.stop()
        raise
    return transport, tools


@click.command()
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option("--init", "-i", is_flag=True, help="Write a default .ecppbridge/config.yaml and exit")
@click.option("--log-level", default=None, help="Log level for stderr output")
@click.argument("server_script", required=False)
def cli(version: bool, init: bool, log_level: Optional[str], server_script: Optional[str]) -> None:
    """
    ECPP Bridge - chat with an LLM that can call MCP tools.

    \b
    Examples:
        ecppbridge ecppbridge/tools/server.py   # Chat using the ECPP tools
        ecppbridge --init                       # Write a default config
    """
    if version:
        console.print(f"ECPP Bridge v{__version__}")
        return

    if init:
        path = Config.create_default_local()
        console.print(f"[green]Config written to {path}[/green]")
        return

    if not server_script:
        console.print(USAGE)
        return

    try:
        config = Config.load()
        settings = config.merged
        configure_logging(log_level or settings.logging.level)
        provider = ProviderFactory.create(config)
        transport, tools = connect(server_script)
    except ECPPBridgeError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    try:
        console.print(f"[dim]Connected to server with tools: {[t.name for t in tools]}[/dim]")
        orchestrator = Orchestrator(
            provider,
            transport,
            tools=[t.llm_spec() for t in tools],
            system_prompt=settings.agent.system_prompt,
            max_tool_iterations=settings.agent.max_tool_iterations,
        )
        ChatShell(orchestrator, [t.name for t in tools]).run()
    finally:
        transport.stop()


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
