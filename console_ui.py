#!/usr/bin/env python3
"""
Console UI Module using Rich

Provides the styled output, prompts and progress displays used by
cargo-cleans.
"""

from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.prompt import Prompt


class ConsoleUI:
    """Console UI handler using Rich"""

    def __init__(self, force_terminal: Optional[bool] = None, console: Optional[Console] = None):
        """Initialize console with optional terminal forcing"""
        self.console = console or Console(force_terminal=force_terminal, highlight=False)

    # Basic styled output methods
    def print_success(self, message: str):
        """Print success message in green"""
        self.console.print(message, style="green", markup=False)

    def print_error(self, message: str):
        """Print error message in red"""
        self.console.print(message, style="red bold", markup=False)

    def print_warning(self, message: str):
        """Print warning message in yellow"""
        self.console.print(message, style="yellow", markup=False)

    def print_info(self, message: str):
        """Print info message in cyan"""
        self.console.print(message, style="cyan", markup=False)

    def print_plain(self, message: str):
        """Print message without styling or markup (paths may contain brackets)"""
        self.console.print(message, markup=False)

    # Progress displays
    def create_progress(self):
        """Create a Rich progress context manager for batch operations"""
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TextColumn("({task.completed}/{task.total})"),
            TimeElapsedColumn(),
            console=self.console,
        )

    def create_activity_progress(self):
        """Create a Rich progress context manager for activity-only display (no counts)"""
        return Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )

    # Interactive prompts
    def prompt(self, question: str, default: Optional[str] = None) -> str:
        """Ask for text input"""
        if default is None:
            return Prompt.ask(question, console=self.console)
        return Prompt.ask(question, default=default, console=self.console)
