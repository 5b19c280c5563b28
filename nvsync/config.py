"""Handles the configuration for nvsync.

This module reads configuration files, sets default values, and allows for
overriding configuration options with command-line arguments. The values
are checked once by `Config.validate` before any target is touched.
"""

import configparser
from argparse import Namespace
from collections.abc import Callable
from logging import getLogger
from os import getenv
from pathlib import Path
from typing import Any

from .messages import (
    InvalidContainerIdError,
    NoLibraryDirsError,
    OverlappingContainersError,
)
from .types import DesiredVersion
from .utils import split_list

logger = getLogger("nvsync.config")

DEFAULT_VERSION = "590.48"
KEYRING_URL = (
    "https://developer.download.nvidia.com/compute/cuda/repos/"
    "{descriptor}/x86_64/cuda-keyring_1.1-1_all.deb"
)


class Config:
    """Read and store the variables from nvsync config files."""

    def __init__(self, path: Path | None = None) -> None:
        """Initializes the configuration object.

        Args:
            path: An optional path to a specific config file.
        """
        if path:
            self.configfiles = [path]
        elif _pth := getenv("NVSYNC_CONF"):
            self.configfiles = [Path(_pth).expanduser()]
        else:
            self.configfiles = [
                Path("/etc/nvsync.cfg"),
                Path("~/.nvsyncrc").expanduser(),
            ]
        self.read()

        self.dry_run = False
        self.desired_version: DesiredVersion
        self.reboot_ids: list[int] = []
        self.staging_ids: list[int] = []

        self._define_config_options()
        self._parse_config()

    def read(self) -> None:
        """Reads the configuration files."""
        self.config = configparser.ConfigParser(inline_comment_prefixes=("#", ";"))
        try:
            self.config.read(self.configfiles)
        except configparser.Error as e:
            logger.error(e)

    def _parse_config(self) -> None:
        """Parses the configuration options from the config files."""
        for datum in self.data:
            attr, inipath, default, fixup, getter = datum

            try:
                val = self._get_option(inipath, getter)
            except (configparser.Error, ValueError):
                val = default() if callable(default) else default

            setattr(self, str(attr), fixup(val))
            logger.debug('config.%s set to "%s"', attr, val)

    def _define_config_options(self) -> None:
        """Defines all available configuration options."""

        def normalizer(x: Any) -> Any:
            return x

        def expanduser(p: Path | str) -> Path:
            return Path(p).expanduser()

        data: list[tuple[Any, ...]] = [
            (
                "target_version",
                ("nvsync", "version"),
                lambda: getenv("TARGET_VERSION", DEFAULT_VERSION),
                str.strip,
            ),
            # seconds to wait after starting a stopped container
            ("settle_delay", ("nvsync", "settle_delay"), 5, int, self.config.getint),
            # seconds between stop and start of a must-reboot container
            ("restart_delay", ("nvsync", "restart_delay"), 2, int, self.config.getint),
            (
                "catalogs_path",
                ("nvsync", "catalogs"),
                Path("/etc/nvsync/catalogs.yml"),
                expanduser,
            ),
            ("keyring_url", ("repository", "keyring_url"), KEYRING_URL),
            ("repo_host", ("repository", "host"), "developer.download.nvidia.com"),
            (
                "pin_priority",
                ("repository", "pin_priority"),
                1001,
                int,
                self.config.getint,
            ),
            ("reboot_containers", ("containers", "reboot"), "100", split_list),
            ("staging_containers", ("containers", "staging"), "", split_list),
            ("host_hostname", ("host", "hostname"), ""),
            ("host_port", ("host", "port"), 22, int, self.config.getint),
            ("headers_package", ("host", "headers"), "proxmox-default-headers"),
            (
                "library_dirs",
                ("paths", "library_dirs"),
                "/usr/lib/x86_64-linux-gnu,/lib/x86_64-linux-gnu",
                split_list,
            ),
            ("probe_library", ("paths", "probe_library"), "libnvidia-ml.so"),
        ]

        def add_normalizer(x):
            return x if len(x) > 3 else x + (normalizer,)

        n_data = (add_normalizer(x) for x in data)

        getter = self.config.get

        def add_getter(x):
            return x if len(x) > 4 else x + (getter,)

        self.data: list[tuple[str, tuple[str, ...], Any, Callable, Callable]] = [
            add_getter(x) for x in n_data
        ]

    def _get_option(self, secopt, getter):
        """Gets an option from the configuration.

        Args:
            secopt: A tuple containing the section and option name.
            getter: The function to use to get the option.

        Returns:
            The value of the option.
        """
        try:
            return getter(*secopt)
        except (configparser.NoSectionError, configparser.NoOptionError):
            msg = "Config option {0}.{1} not found.".format(*secopt)
            logger.debug(msg)
            raise
        except ValueError:
            msg = "Config option {0}.{1} extraction from {2} failed."
            logger.error(msg.format(*secopt, self.configfiles))
            raise

    def merge_args(self, args: Namespace) -> None:
        """Merges command-line arguments into the configuration.

        Args:
            args: The parsed command-line arguments.
        """
        if args.dry_run:
            self.dry_run = True

        if args.target_version:
            self.target_version = args.target_version

        if args.host:
            self.host_hostname = args.host

    def validate(self) -> None:
        """Checks the invariants of the configuration.

        Raises:
            InvalidVersionError: If the target version is malformed.
            InvalidContainerIdError: If a container id isn't an integer.
            OverlappingContainersError: If a container is listed in both
                the reboot and the staging group.
            NoLibraryDirsError: If `[paths] library_dirs` is empty.
        """
        self.desired_version = DesiredVersion(self.target_version)
        self.reboot_ids = self._container_ids(self.reboot_containers)
        self.staging_ids = self._container_ids(self.staging_containers)

        if both := set(self.reboot_ids) & set(self.staging_ids):
            raise OverlappingContainersError(both)

        if not self.library_dirs:
            raise NoLibraryDirsError()

    @staticmethod
    def _container_ids(values: list[str]) -> list[int]:
        ids: list[int] = []
        for value in values:
            try:
                ct_id = int(value)
            except ValueError:
                raise InvalidContainerIdError(value) from None
            if ct_id not in ids:
                ids.append(ct_id)
        return ids
