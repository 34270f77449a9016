"""
Logging, output and error reporting helpers for the pumpfun-launch CLI
"""

import csv
import io
import json
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from solana.exceptions import SolanaRpcException

from .exceptions import BuildFailure, OnChainRejection, SubmissionFailure, UploadFailure
from .submitter import transport_error_text

PACKAGE_LOGGER = "pumpfun_launcher"
LOG_SUBDIR = Path(".pumpfun_launcher") / "logs"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'

# Client libraries that log every request at INFO
NOISY_LOGGERS = ('httpx', 'httpcore', 'hpack')

logger = logging.getLogger(PACKAGE_LOGGER)


def setup_logging(debug: bool = False, log_dir: Optional[Path] = None) -> logging.Logger:
    """
    Configure the package logger for a CLI run

    Only the ``pumpfun_launcher`` logger is configured, and it stops
    propagating, so an application that imports the launcher as a library
    keeps its own root logging. The rotating file log always records DEBUG,
    while stderr follows ``--debug``. Calling it again replaces the handlers
    installed by the previous call.

    Args:
        debug: Show DEBUG records on stderr
        log_dir: Directory for ``pumpfun_launcher.log``, by default
            ``~/.pumpfun_launcher/logs``

    Returns:
        logging.Logger: The configured package logger
    """
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    log_dir = Path(log_dir) if log_dir else Path.home() / LOG_SUBDIR
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / "pumpfun_launcher.log",
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug(f"Logging to {log_dir / 'pumpfun_launcher.log'}")
    return logger


def _to_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2)


def _dict_to_csv(data: Dict[str, Any]) -> str:
    """Convert a flat dictionary to a header row and a value row"""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(data.keys())
    writer.writerow(data.values())
    return output.getvalue()


SERIALIZERS: Dict[str, Callable[[Dict[str, Any]], str]] = {
    'json': _to_json,
    'csv': _dict_to_csv,
}


def format_output(data: Dict[str, Any], format_type: str, output_path: Optional[str], console: Console):
    """
    Write a flat result record as JSON or CSV

    Any format other than ``csv`` is written as JSON, since results are
    single records and the table view is drawn by the commands themselves.
    With ``output_path`` the text goes to that file and a failed write is
    reported on the console; otherwise JSON is pretty-printed and CSV is
    printed verbatim.
    """
    serializer = SERIALIZERS.get(format_type, _to_json)
    text = serializer(data)

    if not output_path:
        if serializer is _to_json:
            console.print_json(text)
        else:
            console.print(text)
        return

    try:
        Path(output_path).write_text(text)
    except OSError as e:
        logger.error(f"Could not write {output_path}: {e}")
        console.print(f"[red]Error saving output to {output_path}: {e}[/red]")
    else:
        console.print(f"[green]Output saved to {output_path}[/green]")


def describe_error(error: Exception) -> str:
    """Render an error with whatever diagnostic context it carries"""
    if isinstance(error, SolanaRpcException):
        return f"RPC request failed: {transport_error_text(error)}"

    lines = [str(error)]
    if isinstance(error, (UploadFailure, BuildFailure)):
        lines.append(f"Status: {error.status_code}")
    elif isinstance(error, OnChainRejection) and error.signature:
        lines.append(f"Signature: {error.signature}")
    elif isinstance(error, SubmissionFailure) and error.logs:
        lines.append("Logs:")
        lines.extend(f"  {line}" for line in error.logs)
    return "\n".join(lines)


def handle_launch_error(error: Exception, console: Console):
    """Report a failed launch stage"""
    console.print(Panel(f"[bold red]Error: {describe_error(error)}[/bold red]", title="Launch Error", expand=False))
    logger.error(f"Launch error: {describe_error(error)}")
