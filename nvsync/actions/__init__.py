"""This package contains the command definitions for nvsync.

Commands are argument lists. Settings that differ between the host and
containers are looked up by target kind in `installer`.
"""

from .apt import (
    dpkg_install_command,
    hold_command,
    install_command,
    installer,
    policy_command,
    showhold_command,
    unhold_command,
    update_command,
)

__all__ = [
    "dpkg_install_command",
    "hold_command",
    "install_command",
    "installer",
    "policy_command",
    "showhold_command",
    "unhold_command",
    "update_command",
]
