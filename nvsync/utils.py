import shlex
import time
from collections.abc import Iterable


class DictWithInjections(dict):
    """A dictionary that allows for a custom error on key lookup failure."""

    def __init__(self, *args, **kw) -> None:
        """Initializes the dictionary.

        Args:
            *args: Arguments to pass to the dict constructor.
            **kw: Keyword arguments to pass to the dict constructor.
                'key_error' is a special keyword argument that specifies
                the exception to raise on a key error.
        """
        self.key_error = kw.pop("key_error", KeyError)

        super().__init__(*args, **kw)

    def __getitem__(self, x):
        try:
            return super().__getitem__(x)
        except KeyError:
            raise self.key_error(x)


def timestamp() -> str:
    """Gets the current time as a Unix timestamp string.

    Returns:
        The current time as a string.
    """
    # remove fractional part
    return str(int(time.time()))


def cmdline(argv: Iterable[str]) -> str:
    """Renders an argument list as a shell-quoted command line.

    Only used for logging and for transports that take a single string.
    """
    return shlex.join(str(x) for x in argv)


def split_list(value: str | Iterable[str] | None) -> list[str]:
    """Splits a comma or whitespace separated config value.

    Args:
        value: A string such as `"100, 101 102"` or an iterable.

    Returns:
        The list of non-empty items, in order.
    """
    if not value:
        return []
    if isinstance(value, str):
        value = value.replace(",", " ").split()
    return [str(x).strip() for x in value if str(x).strip()]
