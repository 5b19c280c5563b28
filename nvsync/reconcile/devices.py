"""Keeps the host's kernel module setup and GPU device nodes in place.

Containers get the GPU through bind-mounted device nodes, so the nodes
have to exist on the host even when nothing on the host opened the GPU
since boot.
"""

from logging import getLogger
from typing import NamedTuple

from ..messages import DeviceNodesMissingMessage
from ..target import Target
from ..target.parsers import parse_proc_devices

logger = getLogger("nvsync.reconcile.devices")

BLACKLIST_PATH = "/etc/modprobe.d/blacklist-nouveau.conf"
BLACKLIST = "blacklist nouveau\noptions nouveau modeset=0\n"

UNIT_NAME = "nvidia-device-nodes.service"
UNIT_PATH = f"/etc/systemd/system/{UNIT_NAME}"
UNIT = """\
[Unit]
Description=Create NVIDIA device nodes
After=systemd-modules-load.service
Before=pve-guests.service

[Service]
Type=oneshot
ExecStart=/usr/bin/nvidia-modprobe -c 0 -u
RemainAfterExit=yes

[Install]
WantedBy=multi-user.target
"""

PERSISTENCED = "nvidia-persistenced.service"
PRIMARY_NODE = "/dev/nvidia0"
CAPS_DIR = "/dev/nvidia-caps"

# the frontend major is fixed by the driver
NVIDIA_MAJOR = 195


class DeviceNode(NamedTuple):
    path: str
    major_name: str | None
    minor: int


#: Device nodes the containers expect, created in this order.
NODES = [
    DeviceNode(PRIMARY_NODE, None, 0),
    DeviceNode("/dev/nvidiactl", None, 255),
    DeviceNode("/dev/nvidia-modeset", None, 254),
    DeviceNode("/dev/nvidia-uvm", "nvidia-uvm", 0),
    DeviceNode("/dev/nvidia-uvm-tools", "nvidia-uvm", 1),
    DeviceNode(f"{CAPS_DIR}/nvidia-cap1", "nvidia-caps", 1),
    DeviceNode(f"{CAPS_DIR}/nvidia-cap2", "nvidia-caps", 2),
]


class DeviceStatus(NamedTuple):
    present: list[str]
    missing: list[str]

    @property
    def ok(self) -> bool:
        return not self.missing


class DeviceReconciler:
    """Blacklists nouveau and repairs the NVIDIA device nodes."""

    def ensure_devices_and_modules(self, host: Target) -> DeviceStatus:
        """Brings module configuration and device nodes into shape.

        Every step checks before it acts, so running this on a healthy
        host only reads state. Missing nodes after repair are a warning.

        Raises:
            ReconcileError: If a configuration file can't be written.
        """
        self.blacklist_nouveau(host)
        self.install_unit(host)
        self.enable_persistenced(host)
        self.create_nodes(host)

        status = self.verify(host)
        if status.missing:
            logger.warning(DeviceNodesMissingMessage(status.missing))
        else:
            logger.info("NVIDIA device nodes present on %s", host.hostname)
        return status

    def blacklist_nouveau(self, host: Target) -> bool:
        if host.exists(BLACKLIST_PATH):
            return False
        logger.info("Blacklisting nouveau on %s", host.hostname)
        host.write_file(BLACKLIST_PATH, BLACKLIST, "writing nouveau blacklist failed")
        return True

    def install_unit(self, host: Target) -> bool:
        if host.exists(UNIT_PATH):
            return False
        logger.info("Installing %s on %s", UNIT_NAME, host.hostname)
        host.write_file(UNIT_PATH, UNIT, f"writing {UNIT_NAME} failed")
        host.best_effort(["systemctl", "daemon-reload"])
        host.best_effort(["systemctl", "enable", UNIT_NAME])
        return True

    def enable_persistenced(self, host: Target) -> bool:
        state = host.query(["systemctl", "is-enabled", PERSISTENCED]).stdout.strip()
        if state != "disabled":
            logger.debug("%s: %s is %s", host.hostname, PERSISTENCED, state or "not installed")
            return False
        logger.info("Enabling %s on %s", PERSISTENCED, host.hostname)
        if not host.run(["systemctl", "enable", "--now", PERSISTENCED]).ok:
            logger.warning("%s: enabling %s failed", host.hostname, PERSISTENCED)
        return True

    def create_nodes(self, host: Target) -> list[str]:
        """Creates the missing device nodes if the primary one is absent.

        Returns:
            The nodes created with mknod.
        """
        if host.exists(PRIMARY_NODE):
            return []

        logger.warning("%s missing on %s, creating device nodes", PRIMARY_NODE, host.hostname)
        host.best_effort(["nvidia-modprobe", "-c", "0", "-u"])

        majors = parse_proc_devices(host.read_file("/proc/devices") or "")
        created: list[str] = []
        for node in NODES:
            if host.exists(node.path):
                continue
            major = majors.get(node.major_name) if node.major_name else NVIDIA_MAJOR
            if major is None:
                logger.debug("%s: no major for %s", host.hostname, node.path)
                continue
            if node.path.startswith(CAPS_DIR + "/"):
                host.best_effort(["mkdir", "-p", CAPS_DIR])
            argv = ["mknod", "-m", "666", node.path, "c", str(major), str(node.minor)]
            if host.best_effort(argv).ok:
                created.append(node.path)
        return created

    def verify(self, host: Target) -> DeviceStatus:
        present: list[str] = []
        missing: list[str] = []
        for node in NODES:
            (present if host.exists(node.path) else missing).append(node.path)
        return DeviceStatus(present, missing)
