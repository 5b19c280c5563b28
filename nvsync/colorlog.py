"""A logging formatter that adds color to the output."""

import logging

(BLACK, RED, GREEN, YELLOW, BLUE, MAGENTA, CYAN, WHITE) = list(range(8))

RESET_SEQ = "\033[0m"
COLOR_SEQ = "\033[1;{}m"

#: Level between INFO and WARNING used to report a finished step.
SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

COLORS = {
    "WARNING": YELLOW,
    "INFO": BLUE,
    "SUCCESS": GREEN,
    "DEBUG": CYAN,
    "CRITICAL": RED,
    "ERROR": RED,
}


class ColorFormatter(logging.Formatter):
    """A logging formatter that adds color to the output."""

    def __init__(self, msg) -> None:
        """Initializes the formatter.

        Args:
            msg: The format string to use.
        """
        logging.Formatter.__init__(self, msg)

    def formatColor(self, record: logging.LogRecord) -> str:
        """Formats the log level name of a record with ANSI color codes.

        Args:
            record: The record whose level name is colorized.

        Returns:
            The colorized log level name.
        """
        levelname = record.levelname
        color = COLOR_SEQ.format(30 + COLORS.get(levelname, WHITE))
        if levelname == "DEBUG":
            return (
                "\033[2K"
                + color
                + levelname.lower()
                + RESET_SEQ
                + " [{!s}:{!s}]".format(record.module, record.funcName)
            )
        return "\033[2K" + color + levelname.lower() + RESET_SEQ

    def format(self, record: logging.LogRecord) -> str:
        """Formats the log record.

        Args:
            record: The log record to format.

        Returns:
            The formatted log record as a string.
        """
        record.message = record.getMessage()
        if self._fmt and self._fmt.find("%(levelname)") >= 0:
            record.levelname = self.formatColor(record)

        return logging.Formatter.format(self, record)


def create_logger(name: str, level: str | int = "INFO") -> logging.Logger:
    """Creates a logger with a colorized output.

    Args:
        name: The name of the logger.
        level: The logging level.

    Returns:
        A configured `logging.Logger` instance.
    """
    out = logging.getLogger(name) if name else logging.getLogger()
    out.setLevel(level)
    handler = logging.StreamHandler()
    formatter = ColorFormatter("%(levelname)s: %(message)s")
    handler.setFormatter(formatter)
    out.addHandler(handler)
    return out
