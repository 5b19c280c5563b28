"""This package contains the failure classifiers for nvsync.

A classifier is called with the hostname, command line, stdout, stderr
and exit code of a failed command and raises a `ReconcileError` with a
reason the operator can act on.
"""

from .apt import apt, dpkg

__all__ = ["apt", "dpkg"]
