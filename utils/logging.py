import logging
import sys
from typing import Optional

# ANSI escape codes for colors
BLUE = "\033[0;34m"
YELLOW = "\033[1;33m"
RED = "\033[0;31m"
MAGENTA = "\033[95m"
GREEN = "\033[0;32m"
RESET = "\033[0m"


def _banner(text: str) -> str:
    """
    Creates a magenta-colored banner for logging.

    Parameters
    ----------
    text : str
        The text to display in the banner.
    Returns
    -------
    str
        A formatted string with ANSI escape codes for coloring.
    """
    return (
        f"\n{MAGENTA}\n{'=' * 80}\n"
        f"{' ' * ((80 - len(text)) // 2)}{text.upper()}\n"
        f"{'=' * 80}{RESET}"
    )


class ColoredFormatter(logging.Formatter):
    """A custom logging formatter that adds colors based on log level."""

    log_format_prefix = "[%(levelname)s:%(name)s:%(funcName)s:L.%(lineno)d] "

    PREFIX_COLORS = {
        logging.DEBUG: GREEN,
        logging.INFO: BLUE,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED,
    }

    def format(self, record):
        color = self.PREFIX_COLORS.get(record.levelno, "")
        prefix_formatter = logging.Formatter(self.log_format_prefix)
        prefix = prefix_formatter.format(record)
        colored_prefix = f"{color}{prefix}{RESET}"

        # The message itself might have its own colors, which will be preserved.
        message = record.getMessage().lstrip("\n")
        return f"{colored_prefix}{message}"


def configure_logging(level: str = "INFO", stream: Optional[object] = None) -> None:
    """
    Install the colored formatter on the root logger.

    Parameters
    ----------
    level : str
        Name of the root logging level (e.g. "INFO", "DEBUG").
    stream : file-like, optional
        Stream for the handler, by default ``sys.stdout``.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(ColoredFormatter())
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # uproot and matplotlib are chatty at DEBUG level
    logging.getLogger("matplotlib").setLevel(logging.WARNING)
    logging.getLogger("fsspec").setLevel(logging.WARNING)
