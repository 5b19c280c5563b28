"""The `Host` and `Container` targets nvsync reconciles.

A target runs argument-list commands through a connection to the
Proxmox host. Containers are reached through `pct exec` on the host.
Every command is recorded in the target's `HostLog`.
"""

from collections.abc import Callable, Sequence
from logging import getLogger
from pathlib import Path, PurePosixPath
from typing import Any

from ..exceptions import ReconcileError
from ..types import CommandLog, ContainerState, HostLog, OSRelease, RebootPolicy, System
from ..utils import cmdline, timestamp
from .parsers import parse_os_release, parse_pct_status

logger = getLogger("nvsync.target")

Check = Callable[[str, str, str, str, int], None]


class Target:
    """Base class of the reconciled machines.

    Commands that change the target go through `run` and are only
    logged in dry-run mode. Commands that only read the target go
    through `query` and always execute.
    """

    kind: str = ""

    def __init__(self, connection: Any, hostname: str, dryrun: bool = False) -> None:
        self.connection = connection
        self.hostname = hostname
        self.dryrun = dryrun
        self.out = HostLog()
        self.system: System | None = None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} object hostname={self.hostname}>"

    def wrap(self, argv: Sequence[str]) -> list[str]:
        """Returns the command line that runs `argv` on this target."""
        return [str(x) for x in argv]

    def _execute(self, argv: Sequence[str], stdin: str | None) -> CommandLog:
        command = cmdline(argv)
        logger.debug('%s: running "%s"', self.hostname, command)
        time_before = timestamp()
        try:
            exitcode = self.connection.run(self.wrap(argv), stdin)
        except Exception:
            # failed to run command
            logger.error('%s: failed to run command "%s"', self.hostname, command)
            exitcode = -1

        time_after = timestamp()
        runtime = int(time_after) - int(time_before)
        return self.out.append(
            [
                command,
                self.connection.stdout,
                self.connection.stderr,
                exitcode,
                runtime,
            ]
        )

    def query(self, argv: Sequence[str], stdin: str | None = None) -> CommandLog:
        """Runs a read-only command, also in dry-run mode."""
        return self._execute(argv, stdin)

    def run(self, argv: Sequence[str], stdin: str | None = None) -> CommandLog:
        """Runs a command that changes the target.

        In dry-run mode the command is logged and recorded as a success
        without being sent to the target.
        """
        if self.dryrun:
            logger.info('dryrun: %s running "%s"', self.hostname, cmdline(argv))
            return self.out.append([cmdline(argv), "", "", 0, 0])
        return self._execute(argv, stdin)

    def required(
        self,
        argv: Sequence[str],
        reason: str,
        stdin: str | None = None,
        check: Check | None = None,
    ) -> CommandLog:
        """Runs a command whose failure aborts the whole run.

        Args:
            argv: The command and its arguments.
            reason: Why the run stops if the command fails.
            stdin: Optional data fed to the command.
            check: An optional classifier that inspects a failed command
                and raises a more specific `ReconcileError`.

        Raises:
            ReconcileError: If the command exits non-zero.
        """
        log = self.run(argv, stdin)
        if log.ok:
            return log
        if check:
            check(self.hostname, log.command, log.stdout, log.stderr, log.exitcode)
        logger.critical(
            '%s: command "%s" failed:\nstdout:\n%s\nstderr:\n%s',
            self.hostname,
            log.command,
            log.stdout,
            log.stderr,
        )
        raise ReconcileError(reason, self.hostname)

    def best_effort(self, argv: Sequence[str], stdin: str | None = None) -> CommandLog:
        """Runs a command whose failure is only logged."""
        log = self.run(argv, stdin)
        if not log.ok:
            logger.debug(
                '%s: ignoring failure of "%s" (%d): %s',
                self.hostname,
                log.command,
                log.exitcode,
                log.stderr.strip(),
            )
        return log

    def read_file(self, path: PurePosixPath | str) -> str | None:
        """Returns the content of a file, or None if it can't be read."""
        log = self.query(["cat", str(path)])
        return log.stdout if log.ok else None

    def exists(self, path: PurePosixPath | str) -> bool:
        return self.query(["test", "-e", str(path)]).ok

    def write_file(self, path: PurePosixPath | str, content: str, reason: str) -> CommandLog:
        """Replaces the content of a file. Failure is fatal."""
        logger.debug("%s: writing %s", self.hostname, path)
        return self.required(["tee", str(path)], reason, stdin=content)

    def list_files(self, directory: PurePosixPath | str, pattern: str) -> list[str]:
        """Lists the paths directly inside `directory` matching `pattern`.

        A missing directory yields an empty list.
        """
        log = self.query(
            [
                "find",
                str(directory),
                "-maxdepth",
                "1",
                "-name",
                pattern,
                "-printf",
                "%p\\n",
            ]
        )
        return [line.strip() for line in log.stdout.splitlines() if line.strip()]

    def detect_system(self) -> System:
        """Reads /etc/os-release of the target.

        An unreadable file results in a `System` that is not supported.
        """
        text = self.read_file("/etc/os-release")
        release = parse_os_release(text) if text else OSRelease("", "")
        self.system = System(release)
        logger.debug("%s: detected %s", self.hostname, self.system)
        return self.system

    def push_file(self, local: Path, remote: PurePosixPath) -> None:
        raise NotImplementedError


class Host(Target):
    """The Proxmox host that owns the kernel driver."""

    kind = "host"

    def __init__(self, connection: Any, dryrun: bool = False) -> None:
        super().__init__(connection, connection.hostname, dryrun)

    def push_file(self, local: Path, remote: PurePosixPath) -> None:
        """Copies a local file onto the host.

        Raises:
            ReconcileError: If the transfer fails.
        """
        if self.dryrun:
            logger.info("dryrun: put %s %s:%s", local, self.hostname, remote)
            return
        logger.debug('%s: sending "%s"', self.hostname, local)
        try:
            self.connection.put(local, remote)
        except OSError as error:
            logger.error(
                "%s: failed to send %s: %s", self.hostname, local, error.strerror
            )
            raise ReconcileError(f"failed to send {local.name}", self.hostname) from error

    def close(self) -> None:
        if self.connection and self.connection.is_active():
            logger.debug("closing connection to %s", self.hostname)
            self.connection.close()


class Container(Target):
    """An LXC container on the host sharing its GPU."""

    kind = "container"

    def __init__(self, host: Host, ct_id: int, policy: RebootPolicy) -> None:
        super().__init__(host.connection, f"ct{ct_id}", host.dryrun)
        self.host = host
        self.ct_id = ct_id
        self.policy = policy

    def wrap(self, argv: Sequence[str]) -> list[str]:
        return ["pct", "exec", str(self.ct_id), "--", *super().wrap(argv)]

    def status(self) -> ContainerState:
        """Queries the runtime state of the container on the host."""
        log = self.host.query(["pct", "status", str(self.ct_id)])
        state = parse_pct_status(log.exitcode, log.stdout)
        logger.debug("%s: container is %s", self.hostname, state)
        return state

    def start(self) -> None:
        self.host.required(
            ["pct", "start", str(self.ct_id)], f"starting container {self.ct_id} failed"
        )

    def stop(self) -> None:
        self.host.required(
            ["pct", "stop", str(self.ct_id)], f"stopping container {self.ct_id} failed"
        )

    def restart(self, delay: int, sleep: Callable[[float], Any]) -> None:
        """Stops and starts the container so it picks up the new libraries."""
        self.stop()
        if not self.dryrun:
            sleep(delay)
        self.start()

    def push_file(self, local: Path, remote: PurePosixPath) -> None:
        """Copies a local file into the container.

        The file is staged on the host first and moved in with `pct push`.
        The staged copy is removed afterwards.
        """
        staged = PurePosixPath("/tmp") / f"nvsync-{self.ct_id}-{remote.name}"
        self.host.push_file(local, staged)
        try:
            self.host.required(
                ["pct", "push", str(self.ct_id), str(staged), str(remote)],
                f"pushing {remote.name} into container {self.ct_id} failed",
            )
        finally:
            self.host.best_effort(["rm", "-f", str(staged)])
