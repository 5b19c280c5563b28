"""A list-like object for storing command log entries."""

from . import CommandLog


def to_string(item: str | bytes) -> str:
    """Converts a string or bytes object to a string.

    Args:
        item: The string or bytes object to convert.

    Returns:
        The converted string.
    """
    if isinstance(item, bytes):
        return item.decode("utf-8", "replace")
    return item


class HostLog(list):
    """A list-like object for storing command log entries."""

    log = CommandLog

    def append(self, *args) -> CommandLog:
        """Appends a command log entry to the list.

        Args:
            *args: Either one 5-item sequence or the five fields
                command, stdout, stderr, exitcode and runtime.

        Returns:
            The stored `CommandLog` entry.
        """
        if len(args) == 1 and isinstance(args[0], list | tuple):
            args = tuple(args[0])
        if len(args) != 5:
            raise ValueError(f"it need 5 args, got {len(args)}")

        entry = self.log(
            to_string(args[0]),
            to_string(args[1]),
            to_string(args[2]),
            int(args[3]),
            int(args[4]),
        )
        super().append(entry)
        return entry
