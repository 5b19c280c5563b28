"""This package contains parser functions for nvsync.

Each module in this package turns the output of a command run on a
target into typed values, so callers compare fields instead of
searching for substrings.
"""

from .apt import PolicySource, parse_policy, parse_showhold, vendor_descriptors
from .dkms import DkmsEntry, parse_dkms_status
from .kernel import parse_driver_version, parse_lsmod, parse_proc_devices
from .osrelease import parse_os_release
from .pct import parse_pct_status

__all__ = [
    "DkmsEntry",
    "PolicySource",
    "parse_dkms_status",
    "parse_driver_version",
    "parse_lsmod",
    "parse_os_release",
    "parse_pct_status",
    "parse_policy",
    "parse_proc_devices",
    "parse_showhold",
    "vendor_descriptors",
]
