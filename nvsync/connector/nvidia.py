"""A connector for the NVIDIA CUDA package repository."""

from logging import getLogger
from pathlib import Path

import requests

from ..messages import KeyringDownloadError

logger = getLogger("nvsync.connector.nvidia")


class NvidiaRepository:
    """Downloads files published on the vendor repository.

    Only the `cuda-keyring` package is fetched here; everything else is
    installed by apt on the target.
    """

    def __init__(self, keyring_url: str, timeout: int = 60) -> None:
        """Initializes the connector.

        Args:
            keyring_url: The keyring package URL, with a `{descriptor}`
                placeholder for the repository path, e.g. `debian12`.
            timeout: Seconds to wait for the server.
        """
        self.keyring_url = keyring_url
        self.timeout = timeout

    def keyring_for(self, descriptor: str) -> str:
        return self.keyring_url.format(descriptor=descriptor)

    def download_keyring(self, descriptor: str, dest: Path) -> Path:
        """Downloads the keyring package for a repository descriptor.

        Args:
            descriptor: The repository path, e.g. `ubuntu2404`.
            dest: The local file to write.

        Returns:
            The path of the downloaded file.

        Raises:
            KeyringDownloadError: If the download fails.
        """
        url = self.keyring_for(descriptor)
        logger.debug("downloading %s", url)
        try:
            rsp = requests.get(url, timeout=self.timeout)
            rsp.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise KeyringDownloadError(url, e) from e

        dest.write_bytes(rsp.content)
        logger.debug("saved %d bytes to %s", len(rsp.content), dest)
        return dest
