"""Functions for parsing kernel state exposed by the host."""

import re

_driver_version = re.compile(r"Kernel Module\s+(?:for\s+\S+\s+)?(?P<version>\d+\.\d+(?:\.\d+)*)")


def parse_lsmod(text: str) -> set[str]:
    """Returns the names of the loaded kernel modules."""
    modules: set[str] = set()
    for line in text.splitlines()[1:]:
        if fields := line.split():
            modules.add(fields[0])
    return modules


def parse_driver_version(text: str) -> str | None:
    """Extracts the version of the loaded driver.

    Args:
        text: The content of `/proc/driver/nvidia/version`.

    Returns:
        The version, e.g. `590.48.01`, or None if no driver is loaded.
    """
    if m := _driver_version.search(text):
        return m.group("version")
    return None


def parse_proc_devices(text: str) -> dict[str, int]:
    """Maps character device names to their major numbers.

    Args:
        text: The content of `/proc/devices`.
    """
    majors: dict[str, int] = {}
    section = ""
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        if line.endswith(":"):
            section = line
            continue
        if section != "Character devices:":
            continue
        major, _, name = line.partition(" ")
        try:
            majors.setdefault(name.strip(), int(major))
        except ValueError:
            continue
    return majors
