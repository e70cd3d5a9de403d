"""Logging for linescm.

Log records go to stderr through rich so that warnings about failed or slow
git blame runs never mix with the tables and JSON printed on stdout.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_ROOT = "linescm"

_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Install the stderr handler (and optionally a log file) for a CLI run.

    Replaces any handlers already on the root logger, so calling it again
    with other flags switches the level instead of duplicating output.

    Args:
        verbose: Show debug messages, e.g. which files were served from the
                 blame cache; also adds source paths and locals to tracebacks
        quiet: Only show errors; wins over ``verbose``
        log_file: Append plain-text records to this file as well

    Returns:
        The ``linescm`` package logger
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    stderr_handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        # messages carry file paths and git stderr, not rich markup
        markup=False,
        show_time=True,
        show_path=verbose,
    )
    handlers: list[logging.Handler] = [stderr_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )

    package_logger = logging.getLogger(_ROOT)
    package_logger.setLevel(level)
    return package_logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the ``linescm`` namespace.

    ``get_logger(__name__)`` inside the package returns the module's logger;
    a bare suffix such as ``"scm.blame"`` is prefixed with ``linescm.``.
    """
    if name is None:
        return logging.getLogger(_ROOT)
    if name != _ROOT and not name.startswith(f"{_ROOT}."):
        name = f"{_ROOT}.{name}"
    return logging.getLogger(name)
