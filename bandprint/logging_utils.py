import logging
import sys

from wcwidth import wcswidth

LOGGER_NAME = "bandprint"
BANNER_WIDTH = 50

_RESET = "\033[0m"

# colour and marker per level
_LEVEL_STYLE = {
    logging.DEBUG: ("\033[36m", "·"),
    logging.INFO: ("\033[32m", "•"),
    logging.WARNING: ("\033[33m", "!"),
    logging.ERROR: ("\033[31m", "✗"),
    logging.CRITICAL: ("\033[1;35m", "✗"),
}

log = logging.getLogger(LOGGER_NAME)


class PrettyFormatter(logging.Formatter):
    """
    One line per record: time, coloured level, the submodule that logged it
    and the message. Tracebacks follow on the next lines.
    """

    def __init__(self, color: bool = True):
        super().__init__(datefmt="%H:%M:%S")
        self.color = color

    def format(self, record):
        style, marker = _LEVEL_STYLE.get(record.levelno, ("", " "))
        level = f"{marker} {record.levelname:<7}"
        if self.color and style:
            level = f"{style}{level}{_RESET}"

        origin = record.name
        if origin.startswith(LOGGER_NAME + "."):
            origin = origin[len(LOGGER_NAME) + 1:]

        line = f"[{self.formatTime(record, self.datefmt)}] {level} {origin:<10} │ {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level=logging.INFO) -> logging.Logger:
    """Attach the pretty console handler to the package logger (once)."""
    log.setLevel(level)

    for handler in list(log.handlers):
        if getattr(handler, "_bandprint", False):
            log.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(PrettyFormatter(color=sys.stdout.isatty()))
    handler._bandprint = True
    log.addHandler(handler)
    return log


def _center_display(text: str, width: int) -> str:
    """Pad `text` to `width` terminal columns, counting double-width glyphs."""
    cols = wcswidth(text)
    if cols < 0:
        cols = len(text)
    spare = max(width - cols, 0)
    return " " * (spare // 2) + text + " " * (spare - spare // 2)


def log_section(title: str, width: int = BANNER_WIDTH):
    border = "═" * width
    log.info("╔%s╗", border)
    log.info("║ %s ║", _center_display(title, width - 2))
    log.info("╚%s╝", border)


def log_success(message: str):
    log.info("✓ %s", message)


def log_detail(key: str, value):
    log.info("  %s: %s", key, value)
