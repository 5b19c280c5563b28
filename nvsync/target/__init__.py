"""This package contains the target-related classes for nvsync.

The `Host` is the Proxmox node running the kernel driver, each
`Container` is an LXC guest consuming it.
"""

from .target import Container, Host, Target

__all__ = ["Container", "Host", "Target"]
