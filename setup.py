#!/usr/bin/env python3

from setuptools import find_packages, setup

from nvsync import __version__

setup(
    name="nvsync",
    description="NVIDIA driver version reconciler for Proxmox hosts and LXC containers",
    long_description="Command-line tool keeping the NVIDIA kernel driver of a "
    + "Proxmox host and the userspace libraries of its LXC containers "
    + "at the same pinned version.",
    version=__version__,
    python_requires=">=3.11",
    install_requires=["paramiko", "ruamel.yaml", "requests"],
    include_package_data=True,
    extras_require={"test": ["pytest"]},
    license="License :: Other/Proprietary License",
    platforms=["Linux"],
    keywords=["NVIDIA", "Proxmox", "LXC", "driver", "apt"],
    packages=find_packages(exclude=["*.tests", "*.tests.*", "tests.*", "tests"]),
    entry_points={"console_scripts": ["nvsync = nvsync.main:main"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX :: Linux",
        "Environment :: Console",
    ],
)
