"""Runs commands on the Proxmox host, locally or over SSH.

This module provides the `LocalConnection` class, used when nvsync runs
on the host itself, and the `Connection` class, which encapsulates a
paramiko SSH/SFTP session to a remote host. Both take commands as
argument lists and expose the exit code, stdout and stderr of the last
command.
"""

import errno
import getpass
import logging
import select
import shutil
import socket
import subprocess
from collections.abc import Sequence
from logging import getLogger
from pathlib import Path

import paramiko
from paramiko import Channel, SFTPClient, SSHClient, SSHConfig

from .messages import ReConnectFailed
from .utils import cmdline

logger = getLogger("nvsync.connection")
RETRIES: int = 5


def _log_output(data: str) -> None:
    for line in data.split("\n"):
        if line:
            logger.debug(line)


class LocalConnection:
    """Runs commands on the machine nvsync itself runs on."""

    __slots__ = ["hostname", "stderr", "stdin", "stdout"]

    def __init__(self, hostname: str = "localhost") -> None:
        self.hostname = hostname
        self.stdin = ""
        self.stdout = ""
        self.stderr = ""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} object hostname={self.hostname}>"

    def run(self, argv: Sequence[str], stdin: str | None = None) -> int:
        """Runs a command and waits for it to terminate.

        Args:
            argv: The command and its arguments.
            stdin: Optional data fed to the command's standard input.

        Returns:
            The exit code of the command, 127 if it doesn't exist.
        """
        self.stdin = cmdline(argv)
        self.stdout = ""
        self.stderr = ""
        try:
            proc = subprocess.run(
                [str(x) for x in argv],
                input=stdin,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            self.stderr = str(e)
            return 127

        self.stdout = proc.stdout
        self.stderr = proc.stderr
        _log_output(self.stdout)
        _log_output(self.stderr)
        return proc.returncode

    def put(self, local: Path, remote: Path) -> None:
        """Copies a file to a path on this machine."""
        if Path(local) == Path(remote):
            return
        logger.debug("copying %s to %s", local, remote)
        shutil.copyfile(local, remote)

    def is_active(self) -> bool:
        return True

    def close(self) -> None:
        pass


class Connection:
    """Manages SSH and SFTP connections to a remote host."""

    __slots__ = [
        "client",
        "hostname",
        "port",
        "stderr",
        "stdin",
        "stdout",
    ]

    def __init__(self, hostname: str, port: int | str = 22) -> None:
        """Opens an SSH channel to the specified host.

        This method tries to authenticate using SSH keys and falls back to
        password authentication if key-based authentication fails.

        Args:
            hostname: The hostname or IP address of the remote host.
            port: The port number to connect to.
        """
        self.hostname = hostname

        try:
            self.port = int(port)
        except ValueError:
            self.port = 22

        self.stdin = ""
        self.stdout = ""
        self.stderr = ""

        self.client = SSHClient()

        self.load_keys()
        self.connect()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} object hostname={self.hostname} port={self.port}>"

    def load_keys(self) -> None:
        """Loads system host keys."""
        self.client.load_system_host_keys()
        self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

    def connect(self) -> None:
        """Connects to the remote host using paramiko."""
        cfg = SSHConfig()
        try:
            with Path("~/.ssh/config").expanduser().open() as fd:
                cfg.parse(fd)
        except OSError as e:
            if e.errno != errno.ENOENT:
                logger.warning(e)
        opts = cfg.lookup(self.hostname)

        kwargs = dict(
            hostname=(
                opts.get("hostname", self.hostname)
                if "proxycommand" not in opts
                else self.hostname
            ),
            port=int(opts.get("port", self.port)),
            username=opts.get("user", "root"),
            sock=(
                paramiko.ProxyCommand(opts["proxycommand"])
                if "proxycommand" in opts
                else None
            ),
        )

        try:
            logger.debug("connecting to %s:%s", self.hostname, self.port)
            self.client.connect(
                key_filename=opts.get("identityfile", None), **kwargs
            )
        except (paramiko.AuthenticationException, paramiko.BadHostKeyException):
            # public key auth failed, ask once for the root password
            logger.warning(
                "Authentication failed on %s: AuthKey missing. Make sure your system is set up correctly",
                self.hostname,
            )
            logger.warning("Trying manually, please enter the root password")
            password = getpass.getpass()

            try:
                self.client.connect(password=password, **kwargs)
            except paramiko.AuthenticationException:
                logger.exception(
                    "Authentication failed on %s: wrong password", self.hostname
                )
                raise
        except paramiko.SSHException:
            logger.exception("SSHException while connecting to %s", self.hostname)
            raise

    def reconnect(self, retry: int = 0, timeout: int = 10) -> None:
        """Tries to reconnect to the host.

        Args:
            retry: The number of times to retry the connection.
            timeout: Seconds to wait before each attempt.
        """
        count = 0
        while not self.is_active() and count <= retry:
            count += 1
            logger.debug(
                "lost connection to %s:%s, reconnecting",
                self.hostname,
                self.port,
            )
            select.select([], [], [], timeout)
            self.connect()

    def new_session(self) -> Channel | None:
        """Opens a new session on the channel.

        Every command runs in its own session so leftovers from the
        previous command do not interfere with the current one.

        Returns:
            A new session object, or None if a session could not be opened.
        """
        logger.debug("creating new session at %s:%s", self.hostname, self.port)
        try:
            if transport := self.client.get_transport():
                transport.set_keepalive(30)
            else:
                return None
            sshlog = logging.getLogger(transport.get_log_channel())
            sshlog.addHandler(logging.NullHandler())
            session = transport.open_session()
        except (paramiko.ChannelException, paramiko.SSHException):
            session = None

        return session

    @staticmethod
    def close_session(session: Channel | None = None) -> None:
        """Closes a session, ignoring sessions that are already gone."""
        if session:
            try:
                session.shutdown(2)
                session.close()
            except (EOFError, OSError, paramiko.SSHException):
                pass

    def __run_command(self, command: str, stdin: str | None) -> Channel | None:
        """Opens a new session and runs a command in it.

        Returns:
            A session instance with the running command, or None on failure.
        """
        session = self.new_session()
        if not session:
            return None
        try:
            session.exec_command(command)
            if stdin is not None:
                session.sendall(stdin.encode("utf-8"))
            session.shutdown_write()
        except (paramiko.ChannelException, paramiko.SSHException):
            self.close_session(session)
            return None
        return session

    def run(self, argv: Sequence[str], stdin: str | None = None) -> int:
        """Runs a command over the SSH channel.

        This method blocks until the command terminates and returns its
        exit code. There is no timeout.

        Args:
            argv: The command and its arguments. They are quoted into a
                single command line for the remote shell.
            stdin: Optional data fed to the command's standard input.

        Returns:
            The exit code of the command.
        """
        command = cmdline(argv)
        self.stdin = command
        self.stdout = ""
        self.stderr = ""
        stdout = b""
        stderr = b""

        session = self.__run_command(command, stdin)
        counter = 0
        while not session:
            if counter == RETRIES:
                raise ReConnectFailed(self.hostname)

            self.reconnect()
            session = self.__run_command(command, stdin)
            counter += 1

        while True:
            buffer = b""
            select.select([session], [], [])

            try:
                if session.recv_ready():
                    buffer = session.recv(1024)
                    stdout += buffer

                if session.recv_stderr_ready():
                    buffer = session.recv_stderr(1024)
                    stderr += buffer

                if not buffer:
                    break

            except socket.timeout:
                select.select([], [], [], 1)

        exitcode = session.recv_exit_status()

        self.close_session(session)
        self.stdout = stdout.decode("utf-8", "replace")
        self.stderr = stderr.decode("utf-8", "replace")
        _log_output(self.stdout)
        _log_output(self.stderr)
        return exitcode

    def __sftp_reconnect(self) -> SFTPClient:
        """Opens an SFTP session, reconnecting if needed."""
        counter = 0
        while True:
            try:
                return self.client.open_sftp()
            except (AttributeError, paramiko.ChannelException, paramiko.SSHException):
                if counter == RETRIES:
                    raise ReConnectFailed(self.hostname)
                self.reconnect()
                counter += 1

    def put(self, local: Path, remote: Path) -> None:
        """Transfers a file to the remote host over SFTP.

        Args:
            local: The local file to transfer.
            remote: The remote path to transfer the file to.
        """
        sftp = self.__sftp_reconnect()
        logger.debug(
            "transmitting %s to %s:%s:%s",
            local,
            self.hostname,
            self.port,
            remote,
        )
        try:
            # paramiko isn't prepared for proper pathlib objects
            sftp.put(str(local), str(remote))
        finally:
            sftp.close()

    def is_active(self) -> bool:
        """Checks if the connection is active."""
        transport = self.client.get_transport()
        return bool(transport and transport.is_active())

    def close(self) -> None:
        """Closes the SSH channel and disconnects."""
        logger.debug("closing connection to %s:%s", self.hostname, self.port)
        self.client.close()
