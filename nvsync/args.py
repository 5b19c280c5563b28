"""Defines the command-line arguments for nvsync."""

from pathlib import Path

from . import __version__
from .argparse import ArgumentParser


def get_parser(sys) -> ArgumentParser:
    """Creates and configures the argument parser for the application.

    Args:
        sys: The `sys` module, used for stdout/stderr.

    Returns:
        A configured `ArgumentParser` instance.
    """
    parser = ArgumentParser(
        prog="nvsync",
        description="Keep the NVIDIA driver of a Proxmox host and its LXC containers in sync.",
        sys_=sys,
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="log the changes instead of making them",
    )
    parser.add_argument(
        "-c", "--config", type=Path, default=None, help="Override default config path"
    )
    parser.add_argument(
        "-t",
        "--target-version",
        type=str,
        help="override config nvsync.version, e.g. 590.48",
    )
    parser.add_argument(
        "-H",
        "--host",
        type=str,
        help="reconcile a remote Proxmox host over SSH, override config host.hostname",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        default=False,
        help="enable debugging output",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version="{}".format(__version__),
        help="print version and exit",
    )

    return parser
