"""An argument parser that reports failures instead of exiting."""

import argparse
import sys


class ArgsParseFailure(RuntimeError):
    """Raised instead of exiting when parsing stops.

    `status` is the exit code the program should return, 0 after
    `--help` or `--version`.
    """

    def __init__(self, status: int = 0) -> None:
        self.status = status
        super().__init__()


class ArgumentParser(argparse.ArgumentParser):
    """An argument parser writing to an injectable `sys` module."""

    def __init__(self, *a, **kw) -> None:
        """Initializes the parser.

        Args:
            *a: Arguments to pass to the parent constructor.
            **kw: Keyword arguments to pass to the parent constructor.
                `sys_` replaces the `sys` module used for output.
        """
        self.sys = kw.pop("sys_", sys)
        super().__init__(*a, **kw)

    def print_help(self, file=None) -> None:
        # also reached through the default help action
        super().print_help(self.sys.stdout)

    def print_usage(self, file=None) -> None:
        super().print_usage(self.sys.stdout)

    def exit(self, status: int = 0, message: str | None = None) -> None:  # type: ignore
        """Raises `ArgsParseFailure` instead of calling `sys.exit`."""
        if message:
            self._print_message(message, self.sys.stderr)

        raise ArgsParseFailure(status)
