"""Functions for parsing the output of the Proxmox container toolkit."""

from ...types import ContainerState


def parse_pct_status(exitcode: int, stdout: str) -> ContainerState:
    """Turns the result of `pct status <id>` into a container state.

    A non-zero exit code means the container does not exist.
    """
    if exitcode != 0:
        return ContainerState.ABSENT
    for line in stdout.splitlines():
        key, _, value = line.partition(":")
        if key.strip() == "status":
            if value.strip() == "running":
                return ContainerState.RUNNING
            return ContainerState.STOPPED
    return ContainerState.STOPPED
