"""Functions for parsing the output of apt tools."""

import re
from dataclasses import dataclass, field
from urllib.parse import urlparse

_source = re.compile(r"^\s*(?P<priority>-?\d+)\s+(?P<uri>\S+)\s*(?P<dist>.*)$")
_descriptor = re.compile(r"/compute/cuda/repos/(?P<descriptor>[^/]+)/")


@dataclass
class PolicySource:
    """One entry of the `Package files:` section of `apt-cache policy`."""

    priority: int
    uri: str
    dist: str = ""
    release: dict[str, str] = field(default_factory=dict)
    origin: str = ""

    @property
    def host(self) -> str:
        """The host name of the source uri, empty for local files."""
        return urlparse(self.uri).hostname or ""

    @property
    def descriptor(self) -> str | None:
        """The vendor repository descriptor in the uri, if any."""
        if m := _descriptor.search(self.uri.rstrip("/") + "/"):
            return m.group("descriptor")
        return None


def _parse_release(text: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    for item in text.split(","):
        key, sep, value = item.partition("=")
        if sep:
            fields[key.strip()] = value.strip()
    return fields


def parse_policy(text: str) -> list[PolicySource]:
    """Parses the output of `apt-cache policy` without arguments.

    Args:
        text: The output of the command.

    Returns:
        A list of sources, in the order apt printed them.
    """
    sources: list[PolicySource] = []
    in_files = False
    for line in text.splitlines():
        if not line.strip():
            continue
        if not line.startswith(" "):
            in_files = line.strip() == "Package files:"
            continue
        if not in_files:
            continue

        stripped = line.strip()
        if stripped.startswith("release ") and sources:
            sources[-1].release = _parse_release(stripped[len("release ") :])
        elif stripped.startswith("origin ") and sources:
            sources[-1].origin = stripped[len("origin ") :].strip()
        elif m := _source.match(line):
            sources.append(
                PolicySource(
                    priority=int(m.group("priority")),
                    uri=m.group("uri"),
                    dist=m.group("dist").strip(),
                )
            )
    return sources


def vendor_descriptors(sources: list[PolicySource], host: str) -> set[str]:
    """Returns the repository descriptors of all sources served by `host`."""
    return {
        s.descriptor
        for s in sources
        if s.descriptor and (s.host == host or s.origin == host)
    }


def parse_showhold(text: str) -> list[str]:
    """Parses the output of `apt-mark showhold` into package names."""
    return [x.strip() for x in text.splitlines() if x.strip()]
