"""A set of classes for displaying messages to the user.

Errors caused by the environment or by improper configuration are
reported through these classes so the wording stays consistent across
the host and container code paths.
"""

from abc import ABC


class UserMessage(BaseException, ABC):
    """An abstract base class for messages to be displayed to the user."""

    def __str__(self) -> str:
        return self.message  # type: ignore

    def __eq__(self, x: object) -> bool:
        return str(self) == str(x)

    def __hash__(self) -> int:
        return hash(str(self))


class ErrorMessage(UserMessage, RuntimeError):
    """A program error message to be displayed to the user."""


class UserError(UserMessage, RuntimeError):
    """An error caused by improper usage of the program."""


class NotRootError(UserError):
    """Raised when nvsync runs without root privileges on the host."""

    def __init__(self, uid: str) -> None:
        self.uid = uid
        self.message = "nvsync must be run as root (uid {0!r})".format(uid)


class InvalidVersionError(UserError, ValueError):
    """Raised when the desired driver version is malformed."""

    _msg = "Invalid target version {0!r}: expected <major>.<minor>, e.g. 590.48"

    def __init__(self, version: str) -> None:
        self.version = version
        self.message = self._msg.format(version)


class InvalidContainerIdError(UserError, ValueError):
    """Raised when a configured container id is not an integer."""

    def __init__(self, value: str) -> None:
        self.value = value
        self.message = "Invalid container id {0!r}".format(value)


class OverlappingContainersError(UserError, ValueError):
    """Raised when a container is listed in both reboot groups."""

    def __init__(self, ids) -> None:
        self.ids = sorted(ids)
        self.message = "Containers listed in both reboot and staging: {0}".format(
            ", ".join(str(x) for x in self.ids)
        )


class NoLibraryDirsError(UserError, ValueError):
    """Raised when no library directory is configured."""

    def __init__(self) -> None:
        self.message = "No library directories configured in [paths] library_dirs"


class UnsupportedSystemError(ErrorMessage):
    """Raised when no vendor repository exists for a target's OS."""

    _msg = "Unsupported OS {0!r} {1!r}"

    def __init__(self, family: str, version: str) -> None:
        self.family = family
        self.version = version
        self.message = self._msg.format(family, version)


class MissingCatalogError(ErrorMessage):
    """Raised when there is no package catalog for a target kind."""

    def __init__(self, key) -> None:
        self.key = key
        self.message = "Missing package catalog for {0}".format(key)


class MissingInstallerError(ErrorMessage):
    """Raised when there is no installer for a target kind."""

    def __init__(self, key) -> None:
        self.key = key
        self.message = "Missing Installer for {0}".format(key)


class ContainerAbsentMessage(UserMessage):
    """A message for a configured container that does not exist."""

    def __init__(self, ct_id: int) -> None:
        self.ct_id = ct_id

    def __str__(self) -> str:
        return "Container {0} does not exist. Skipping.".format(self.ct_id)


class ContainerStoppedDryRunMessage(UserMessage):
    """A message for a stopped container that can't be probed in dry-run."""

    def __init__(self, ct_id: int) -> None:
        self.ct_id = ct_id

    def __str__(self) -> str:
        return (
            "dryrun: container {0} is stopped, start skipped. "
            "Skipping version check and install simulation.".format(self.ct_id)
        )


class StagedChangesMessage(UserMessage):
    """A warning for a container that was updated but not restarted."""

    def __init__(self, ct_id: int) -> None:
        self.ct_id = ct_id

    def __str__(self) -> str:
        return "Container {0} NOT rebooted. Driver changes will apply on next restart.".format(
            self.ct_id
        )


class DeviceNodesMissingMessage(UserMessage):
    """A warning for device nodes still missing after remediation."""

    def __init__(self, nodes) -> None:
        self.nodes = list(nodes)

    def __str__(self) -> str:
        return "device nodes still missing: {0}. GPU passthrough needs manual follow-up".format(
            ", ".join(str(x) for x in self.nodes)
        )


class KeyringDownloadError(ErrorMessage):
    """Raised when the vendor keyring package can't be fetched."""

    def __init__(self, url: str, reason) -> None:
        self.url = url
        self.reason = reason
        self.message = "Failed to download {0}: {1}".format(url, reason)


class ReConnectFailed(ErrorMessage):
    """Raised when a reconnect attempt fails."""

    _msg = "Failed to re-connect to {}"

    def __init__(self, host) -> None:
        self.message = self._msg.format(host)


class ConnectingHostFailedMessage(UserMessage):
    """A message for when connecting to the Proxmox host fails."""

    def __init__(self, hostname, reason) -> None:
        self.hostname = hostname
        self.reason = reason

    def __str__(self) -> str:
        return "connecting to {0} failed: {1}".format(self.hostname, self.reason)


class InvalidCatalogError(UserError):
    """Raised when the package catalog file can't be parsed."""

    def __init__(self, path, reason) -> None:
        self.path = path
        self.reason = reason
        self.message = "Invalid package catalog {0}: {1}".format(path, reason)
