"""Console output for the CLI using the Rich library.

Renders signed requests (URL, headers and the string-to-sign, which is
the first thing to compare when a server answers SignatureDoesNotMatch)
and summaries of S3 responses.
"""

from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from s3rest.models import PendingRequest
from s3rest.response import GuardedResponse, XmlCursor

# Stop listing XML values after this many leaf elements
DEFAULT_LEAF_LIMIT = 50


def collect_leaves(cursor: XmlCursor, limit: int = DEFAULT_LEAF_LIMIT) -> list[tuple[str, str]]:
    """Collect (name, text) for leaf elements in document order.

    Args:
        cursor: Cursor positioned anywhere in the document.
        limit: Maximum number of leaves to return.

    Returns:
        List of (local name, text) pairs.
    """
    leaves = []
    previous = None
    for node in cursor:
        # A leaf's end node directly follows its own start
        if node.is_end and previous is not None and previous.element is node.element:
            leaves.append((node.name, node.text))
            if len(leaves) >= limit:
                break
        previous = node
    return leaves


class ConsoleRenderer:
    """Rich-based renderer for CLI output.

    Args:
        console: Console to print to. Defaults to stdout.
    """

    def __init__(self, console: Optional[Console] = None):
        # Use legacy_windows=True for ASCII-safe output on Windows consoles
        self.console = console or Console(legacy_windows=True)

    def headers_table(self, title: str, items: list[tuple[str, str]]) -> Table:
        table = Table(title=title, box=box.SIMPLE, show_header=True)
        table.add_column("Header", style="cyan")
        table.add_column("Value")
        for name, value in items:
            table.add_row(name, value)
        return table

    def show_signed_request(self, request: PendingRequest, string_to_sign: str) -> None:
        """Print a signed request and the string its signature covers."""
        self.console.print(f"[bold]{request.method}[/bold] {request.url}")
        self.console.print(self.headers_table("Request headers", request.headers.multi_items()))
        self.console.print(
            Panel(
                Text(string_to_sign.replace("\n", "\\n\n")),
                title="String to sign",
                border_style="dim",
            )
        )

    def show_response(self, response: GuardedResponse) -> None:
        """Print the status line and headers of a response."""
        if response.is_success:
            status = f"[bold green]{response.status_code}[/bold green]"
        else:
            status = f"[bold red]{response.status_code}[/bold red]"
        self.console.print(f"Status: {status}")
        self.console.print(self.headers_table("Response headers", response.headers.multi_items()))

    def show_xml(self, root_name: str, leaves: list[tuple[str, str]]) -> None:
        """Print the document element name and its leaf values."""
        table = Table(title=f"<{root_name}>", box=box.SIMPLE)
        table.add_column("Element", style="cyan")
        table.add_column("Text")
        for name, text in leaves:
            table.add_row(name, text)
        self.console.print(table)

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]Error:[/bold red] {message}")
