"""
Remote catalog of published default configurations.

Queries the "latest release" endpoint of each configured GitHub repository
and lists the downloadable .comapeocat bundles, including bundles shipped
inside .zip release assets.
"""

import asyncio
import io
import logging
import re
import zipfile
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from ..config import config
from ..exceptions import RemoteFetchError
from ..importers.base import ProgressCallback, ProgressReporter


COMAPEOCAT_SUFFIX = ".comapeocat"
ZIP_SUFFIX = ".zip"


class DefaultConfigOption(BaseModel):
    """A downloadable default configuration."""

    name: str = Field(..., description="Friendly display name")
    file_name: str = Field(..., description="Name of the release asset")
    download_url: str
    size: int = Field(default=0, description="Asset size in bytes")
    formatted_size: str = ""
    release_tag: str = ""
    release_date: str = ""
    source: str = Field(..., description="Display name of the repository")
    description: Optional[str] = None
    is_zipped: bool = False
    comapeocat_in_zip: Optional[str] = Field(
        default=None,
        description="Member name of the bundle when the asset is a .zip"
    )


def format_file_size(size_in_bytes: int) -> str:
    """1536 -> '1.50KB', 3145728 -> '3.00MB'."""
    size_in_kb = size_in_bytes / 1024
    if size_in_kb > 1024:
        return f"{size_in_kb / 1024:.2f}MB"
    return f"{size_in_kb:.2f}KB"


def friendly_name(filename: str) -> str:
    """'mapeo-default_config.comapeocat' -> 'Mapeo Default Config'."""
    base = re.sub(r"\.(comapeocat|zip)$", "", filename, flags=re.IGNORECASE)
    base = re.sub(r"[-_]", " ", base)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), base)


def _release_date(published_at: Any) -> str:
    if not isinstance(published_at, str) or not published_at:
        return ""
    try:
        return datetime.fromisoformat(published_at.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return published_at


def find_comapeocat(data: bytes) -> Optional[str]:
    """Name of the first .comapeocat member of a ZIP, or None."""
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            return next(
                (name for name in archive.namelist() if name.lower().endswith(COMAPEOCAT_SUFFIX)),
                None,
            )
    except zipfile.BadZipFile:
        return None


class DefaultConfigCatalog:
    """
    Lists and downloads published default configurations.
    """

    def __init__(self, repositories: Optional[List[Dict[str, str]]] = None,
                 timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the catalog.

        Args:
            repositories: Repository definitions with name, url and display_name
                (defaults to the remote.repositories config value)
            timeout: Request timeout in seconds (defaults to config value)
            transport: Optional httpx transport, used by tests
        """
        self.repositories = repositories if repositories is not None else config.catalog_repositories
        self.timeout = timeout or config.remote_timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport, follow_redirects=True)

    async def _get(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        try:
            response = await client.get(url)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            raise RemoteFetchError(f"Request to {url} failed: {e}")
        except httpx.RequestError as e:
            raise RemoteFetchError(f"Failed to connect to {url}: {e}")

    async def list_options(self) -> List[DefaultConfigOption]:
        """
        List the bundles of every configured repository's latest release.

        A repository that cannot be reached contributes nothing; the listing
        as a whole never fails.

        Returns:
            Options sorted by source, then by name
        """
        async with self._client() as client:
            results = await asyncio.gather(
                *(self._repository_options(client, repo) for repo in self.repositories),
                return_exceptions=True,
            )

        options: List[DefaultConfigOption] = []
        for repo, result in zip(self.repositories, results):
            if isinstance(result, Exception):
                logging.warning(f"Skipping repository {repo.get('name')}: {result}")
                continue
            options.extend(result)

        if not options:
            logging.info("No .comapeocat files found in any repository")
        return sorted(options, key=lambda option: (option.source, option.name))

    async def _repository_options(self, client: httpx.AsyncClient,
                                  repo: Dict[str, str]) -> List[DefaultConfigOption]:
        response = await self._get(client, repo["url"])
        try:
            release = response.json()
        except ValueError as e:
            raise RemoteFetchError(f"Invalid release document from {repo['url']}: {e}")

        source = repo.get("display_name") or repo.get("name", "")
        common = {
            "release_tag": release.get("tag_name", ""),
            "release_date": _release_date(release.get("published_at")),
            "source": source,
        }
        assets = release.get("assets", [])

        options = []
        for asset in assets:
            if asset.get("name", "").lower().endswith(COMAPEOCAT_SUFFIX):
                options.append(DefaultConfigOption(
                    name=f"{friendly_name(asset['name'])} ({source})",
                    file_name=asset["name"],
                    download_url=asset.get("browser_download_url", ""),
                    size=asset.get("size", 0),
                    formatted_size=format_file_size(asset.get("size", 0)),
                    **common,
                ))

        for asset in assets:
            if not asset.get("name", "").lower().endswith(ZIP_SUFFIX):
                continue
            # The bundle name is only known after looking inside the zip
            try:
                zipped = await self._get(client, asset.get("browser_download_url", ""))
            except RemoteFetchError as e:
                logging.warning(f"Could not inspect {asset['name']}: {e}")
                continue
            member = find_comapeocat(zipped.content)
            if member:
                options.append(DefaultConfigOption(
                    name=f"{friendly_name(member.rsplit('/', 1)[-1])} ({source}, from {asset['name']})",
                    file_name=asset["name"],
                    download_url=asset.get("browser_download_url", ""),
                    size=asset.get("size", 0),
                    formatted_size=format_file_size(asset.get("size", 0)),
                    is_zipped=True,
                    comapeocat_in_zip=member,
                    **common,
                ))
        return options

    async def download(self, option: DefaultConfigOption,
                       progress: Optional[ProgressCallback] = None) -> bytes:
        """
        Download the .comapeocat bytes of an option.

        Args:
            option: An option returned by list_options
            progress: Optional (percent, message) callback

        Returns:
            The bundle bytes, extracted from the enclosing zip when needed

        Raises:
            RemoteFetchError: If the download fails or the bundle is missing
        """
        reporter = ProgressReporter(progress)
        reporter.report(0.1, f"Downloading {option.name}...")
        async with self._client() as client:
            response = await self._get(client, option.download_url)
        reporter.report(0.3, "Processing configuration file...")

        if not (option.is_zipped and option.comapeocat_in_zip):
            reporter.report(1.0, "Download complete")
            return response.content

        reporter.report(0.4, f"Extracting {option.comapeocat_in_zip} from zip file...")
        try:
            with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
                data = archive.read(option.comapeocat_in_zip)
        except KeyError:
            raise RemoteFetchError(f"Could not find {option.comapeocat_in_zip} in {option.file_name}")
        except zipfile.BadZipFile as e:
            raise RemoteFetchError(f"Downloaded {option.file_name} is not a valid zip: {e}")
        reporter.report(1.0, "Download complete")
        return data
