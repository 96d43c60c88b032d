"""Console output utilities with color formatting."""

from rich.console import Console
from rich.markup import escape

# Global console instance
_console = Console()


def print_dim(message: str) -> None:
    """Print a dim/debug message."""
    _console.print(f"[dim]{escape(message)}[/dim]")


def print_success(message: str) -> None:
    """Print a success message in green."""
    _console.print(f"[green]{escape(message)}[/green]")


def print_error(message: str) -> None:
    """Print an error message in red."""
    _console.print(f"[red]{escape(message)}[/red]")


def print_header(message: str) -> None:
    """Print a header message in bold cyan."""
    _console.print(f"[bold cyan]{escape(message)}[/bold cyan]")


def print_text(message: str) -> None:
    """Print text as-is, without interpreting markup."""
    _console.print(message, markup=False, highlight=False, soft_wrap=True)
