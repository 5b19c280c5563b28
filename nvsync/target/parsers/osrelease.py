"""Functions for parsing the os-release file of a target."""

import shlex

from ...types import OSRelease


def parse_os_release(text: str) -> OSRelease:
    """Parses the content of an os-release file.

    Args:
        text: The content of `/etc/os-release`.

    Returns:
        The `ID` and `VERSION_ID` of the system. Missing keys are
        returned as empty strings.
    """
    osinfo: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        try:
            words = shlex.split(value)
        except ValueError:
            words = [value.strip("\"'")]
        osinfo[key.strip()] = " ".join(words)

    return OSRelease(osinfo.get("ID", "").lower(), osinfo.get("VERSION_ID", ""))
