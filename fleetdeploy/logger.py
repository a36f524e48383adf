"""
Logging system for FleetDeploy
Provides real-time logging to files with clean console output
"""

import re
from pathlib import Path
from datetime import datetime
from typing import Optional, TextIO
from rich.console import Console
from rich.markup import escape

from fleetdeploy.constants import DEFAULT_LOG_DIR, LOG_DATE_FORMAT, LOG_TIME_FORMAT

console = Console()

ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


class DeployLogger:
    """
    Manages logging for fleet installs
    - Writes all output to log files in real-time
    - Shows clean progress UI in console (unless verbose)
    - Captures errors with context
    """

    def __init__(
        self,
        operation: str,
        verbose: bool = False,
        log_dir: Optional[Path] = None,
        quiet: bool = False,
    ):
        """
        Initialize logger

        Args:
            operation: Operation name (e.g., 'install', 'check')
            verbose: If True, show all output in console
            log_dir: Base directory for log files (default: ./logs)
            quiet: If True, never print to console (JSON mode)
        """
        self.operation = operation
        self.verbose = verbose
        self.quiet = quiet
        self.log_file: Optional[TextIO] = None
        self.log_path: Optional[Path] = None
        self.current_step = ""
        self.has_errors = False

        # Structure: logs/{date}/{time}_{operation}.log
        now = datetime.now()
        base_dir = Path(log_dir) if log_dir else Path.cwd() / DEFAULT_LOG_DIR
        logs_dir = base_dir / now.strftime(LOG_DATE_FORMAT)
        logs_dir.mkdir(parents=True, exist_ok=True)

        self.log_path = logs_dir / f"{now.strftime(LOG_TIME_FORMAT)}_{operation}.log"

        # Line buffered for real-time tailing
        self.log_file = open(self.log_path, "a", buffering=1)

        self._write_log_header()

    def _write_log_header(self):
        """Write log file header"""
        header = f"""
{"=" * 80}
FleetDeploy Log
{"=" * 80}
Operation: {self.operation}
Started: {datetime.now().isoformat()}
{"=" * 80}

"""
        self.log_file.write(header)
        self.log_file.flush()

    def _print(self, markup: str):
        if not self.quiet:
            console.print(markup)

    def log(self, message: str, level: str = "INFO"):
        """
        Log a message to file and optionally console

        Args:
            message: Message to log
            level: Log level (INFO, WARNING, ERROR, DEBUG)
        """
        timestamp = datetime.now().strftime("%H:%M:%S")
        log_line = f"[{timestamp}] [{level}] {ANSI_ESCAPE.sub('', message)}\n"

        if self.log_file:
            self.log_file.write(log_line)
            self.log_file.flush()

        if self.verbose:
            text = escape(message)
            if level == "ERROR":
                self._print(f"[red]{text}[/red]")
            elif level == "WARNING":
                self._print(f"[yellow]{text}[/yellow]")
            elif level == "DEBUG":
                self._print(f"[dim]{text}[/dim]")
            else:
                self._print(text)

    def log_command(self, host: str, command: str):
        """Log a remote command being executed"""
        self.log(f"[{host}] Executing: {command}", "DEBUG")

    def log_output(self, output: str, stream: str = "stdout"):
        """
        Log command output

        Always written to the log file, shown in console only if verbose.

        Args:
            output: Command output (single line or multiline)
            stream: Stream name (stdout, stderr)
        """
        if not output:
            return

        clean_output = ANSI_ESCAPE.sub("", output)

        if self.log_file:
            for line in clean_output.splitlines():
                self.log_file.write(f"  [{stream}] {line}\n")
            self.log_file.flush()

        if self.verbose:
            self._print(escape(output))

    def host(self, address: str, message: str, level: str = "INFO"):
        """
        Log a per-host progress line

        Host lines are always shown in console so the operator can follow
        the batch without verbose mode.
        """
        self.log(f"[{address}] {message}", level)

        if self.verbose:
            return

        if level == "ERROR":
            self._print(f"  [red]✗[/red] [cyan]{address}[/cyan] [dim]{escape(message)}[/dim]")
        elif level == "WARNING":
            self._print(f"  [yellow]⚠[/yellow] [cyan]{address}[/cyan] [dim]{escape(message)}[/dim]")
        elif level == "DEBUG":
            return
        else:
            self._print(f"  [dim]•[/dim] [cyan]{address}[/cyan] [dim]{escape(message)}[/dim]")

    def log_error(self, error: str, context: Optional[str] = None):
        """
        Log an error with context

        Args:
            error: Error message
            context: Additional context (e.g., command that failed)
        """
        self.has_errors = True

        # Clear markers for grepping
        error_block = f"""
{"!" * 80}
ERROR OCCURRED
{"!" * 80}
{error}
"""
        if context:
            error_block += f"\nContext: {context}\n"

        error_block += f"{'!' * 80}\n\n"

        if self.log_file:
            self.log_file.write(error_block)
            self.log_file.flush()

        if not self.verbose:
            self._print("")

        self._print(f"[bold red]✗ {escape(error)}[/bold red]")
        if context:
            self._print(f"  [color(208)]{escape(context)}[/color(208)]")

    def step(self, step_name: str):
        """
        Start a new step

        Args:
            step_name: Name of the step
        """
        # Spacing between steps, not before the first one
        if self.current_step and not self.verbose:
            self._print("")

        self.current_step = step_name
        self.log(f"Step: {step_name}", "INFO")

        if not self.verbose:
            self._print(f"[color(214)]▶[/color(214)] [white]{escape(step_name)}[/white]")

    def success(self, message: str):
        """Log a success message"""
        self.log(message, "INFO")

        if not self.verbose:
            self._print(f"  [dim]✓ {escape(message)}[/dim]")

    def warning(self, message: str):
        """Log a warning message"""
        self.log(message, "WARNING")

        if not self.verbose:
            self._print(f"  [yellow]⚠[/yellow] [dim]{escape(message)}[/dim]")

    def close(self):
        """Close log file"""
        if self.log_file:
            footer = f"""
{"=" * 80}
Completed: {datetime.now().isoformat()}
Status: {"FAILED" if self.has_errors else "SUCCESS"}
{"=" * 80}
"""
            self.log_file.write(footer)
            self.log_file.close()
            self.log_file = None

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, _exc_tb):
        """Context manager exit"""
        if exc_type is not None and exc_type != SystemExit:
            self.log_error(
                str(exc_val) if exc_val else "Operation failed",
                context=f"{exc_type.__name__}",
            )
        self.close()
        return False  # Don't suppress exceptions
