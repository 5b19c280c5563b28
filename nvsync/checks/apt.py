"""Classifies failed apt and dpkg commands."""

from logging import getLogger

from ..exceptions import ReconcileError

logger = getLogger("nvsync.checks.apt")

#: stderr markers of apt-get failures, checked in order.
APT_ERRORS: list[tuple[str, str]] = [
    ("Unable to locate package", "package not found"),
    ("was not found", "version not found"),
    ("Could not get lock", "package manager locked"),
    ("is held by process", "package manager locked"),
    ("Held packages were changed", "held packages"),
    ("dpkg was interrupted", "dpkg interrupted, run 'dpkg --configure -a'"),
    ("Unmet dependencies", "Dependency Error"),
    ("Temporary failure resolving", "repository unreachable"),
    ("Failed to fetch", "repository unreachable"),
]


def _report(hostname: str, stdin: str, stdout: str, stderr: str) -> None:
    logger.critical(
        '%s: command "%s" failed:\nstdout:\n%s\nstderr:\n%s',
        hostname,
        stdin,
        stdout,
        stderr,
    )


def apt(hostname: str, stdin: str, stdout: str, stderr: str, exitcode: int) -> None:
    """Raises a `ReconcileError` naming why an apt-get command failed.

    Args:
        hostname: The target the command ran on.
        stdin: The command line.
        stdout: The output of the command.
        stderr: The error output of the command.
        exitcode: The exit code of the command.
    """
    if exitcode == 0:
        return
    _report(hostname, stdin, stdout, stderr)
    for marker, reason in APT_ERRORS:
        if marker in stderr:
            raise ReconcileError(reason, hostname)
    raise ReconcileError("Unknown Error", hostname)


def dpkg(hostname: str, stdin: str, stdout: str, stderr: str, exitcode: int) -> None:
    """Raises a `ReconcileError` naming why a dpkg command failed."""
    if exitcode == 0:
        return
    _report(hostname, stdin, stdout, stderr)
    if "lock" in stderr:
        raise ReconcileError("package manager locked", hostname)
    if "not a Debian format archive" in stderr:
        raise ReconcileError("corrupt keyring package", hostname)
    raise ReconcileError("keyring installation failed", hostname)
