"""
Client for the remote build endpoint that turns an exported ZIP into a
finished .comapeocat file.
"""

import logging
from typing import Optional

import httpx

from ..config import config
from ..exceptions import RemoteFetchError


class BuildClient:
    """
    Uploads exported archives to the build service.
    """

    def __init__(self, build_url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize the build client.

        Args:
            build_url: Build endpoint (defaults to config value)
            timeout: Request timeout in seconds (defaults to config value)
            transport: Optional httpx transport, used by tests
        """
        self.build_url = build_url or config.build_url
        self.client = httpx.Client(timeout=timeout or config.remote_timeout, transport=transport)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.client.close()

    def build(self, archive: bytes, filename: str = "config.zip") -> bytes:
        """
        Send an exported archive to the build service.

        Args:
            archive: ZIP bytes produced by ArchiveWriter
            filename: Upload file name

        Returns:
            The built .comapeocat bytes

        Raises:
            RemoteFetchError: If the service is unreachable or rejects the upload
        """
        try:
            response = self.client.post(
                self.build_url,
                files={"file": (filename, archive, "application/zip")},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteFetchError(f"Build request failed: {e}")
        except httpx.RequestError as e:
            raise RemoteFetchError(f"Failed to connect to build service: {e}")

        logging.info(f"Build service returned {len(response.content)} bytes")
        return response.content
