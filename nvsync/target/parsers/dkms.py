"""Functions for parsing the output of `dkms status`."""

import re
from typing import NamedTuple

# nvidia/590.48.01, 6.8.12-4-pve, x86_64: installed
_new = re.compile(
    r"^(?P<module>[^/,\s]+)/(?P<version>[^,:\s]+)"
    r"(?:,\s*(?P<kernel>[^,:]+))?(?:,\s*(?P<arch>[^:]+))?:\s*(?P<state>\S+)"
)
# nvidia, 590.48.01, 6.8.12-4-pve, x86_64: installed
_old = re.compile(
    r"^(?P<module>[^/,\s]+),\s*(?P<version>[^,:\s]+)"
    r"(?:,\s*(?P<kernel>[^,:]+))?(?:,\s*(?P<arch>[^:]+))?:\s*(?P<state>\S+)"
)


class DkmsEntry(NamedTuple):
    module: str
    version: str
    kernel: str
    arch: str
    state: str


def parse_dkms_status(text: str) -> list[DkmsEntry]:
    """Parses both the current and the legacy `dkms status` formats."""
    entries: list[DkmsEntry] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        m = _new.match(line) or _old.match(line)
        if not m:
            continue
        entries.append(
            DkmsEntry(
                m.group("module"),
                m.group("version"),
                (m.group("kernel") or "").strip(),
                (m.group("arch") or "").strip(),
                m.group("state").rstrip(","),
            )
        )
    return entries
