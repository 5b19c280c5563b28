"""This package contains the connector classes for nvsync.

Each module in this package defines a connector to a backend service
reached from the machine nvsync runs on.
"""

from .nvidia import NvidiaRepository

__all__ = ["NvidiaRepository"]
