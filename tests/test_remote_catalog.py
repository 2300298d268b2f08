"""
Tests for the remote default-configuration catalog.
"""

import unittest

import httpx
import pytest

from comapeo_config.exceptions import RemoteFetchError
from comapeo_config.remote import DefaultConfigCatalog, DefaultConfigOption, format_file_size, friendly_name

from archive_helpers import make_zip


RELEASE_URL = "https://api.example.test/repos/alpha/releases/latest"
BROKEN_URL = "https://api.example.test/repos/beta/releases/latest"
BUNDLE_URL = "https://downloads.example.test/mapeo-default-config.comapeocat"
ZIP_URL = "https://downloads.example.test/source.zip"

BUNDLE_BYTES = b"PK\x03\x04bundle"
ZIPPED_BUNDLE_BYTES = b"PK\x03\x04inner"

REPOSITORIES = [
    {"name": "alpha", "url": RELEASE_URL, "display_name": "Alpha"},
    {"name": "beta", "url": BROKEN_URL, "display_name": "Beta"},
]


def catalog_handler(request):
    url = str(request.url)
    if url == RELEASE_URL:
        return httpx.Response(200, json={
            "tag_name": "v5.0.0",
            "published_at": "2024-03-01T12:00:00Z",
            "assets": [
                {"name": "mapeo-default-config.comapeocat", "browser_download_url": BUNDLE_URL, "size": 2048},
                {"name": "source.zip", "browser_download_url": ZIP_URL, "size": 3 * 1024 * 1024},
                {"name": "notes.txt", "browser_download_url": "https://downloads.example.test/notes.txt", "size": 1},
            ],
        })
    if url == BUNDLE_URL:
        return httpx.Response(200, content=BUNDLE_BYTES)
    if url == ZIP_URL:
        return httpx.Response(200, content=make_zip({"dist/inner_config.comapeocat": ZIPPED_BUNDLE_BYTES}))
    return httpx.Response(500)


class TestDefaultConfigCatalog(unittest.IsolatedAsyncioTestCase):
    """Test listing and downloading published configurations."""

    def setUp(self):
        self.catalog = DefaultConfigCatalog(
            repositories=REPOSITORIES,
            timeout=5.0,
            transport=httpx.MockTransport(catalog_handler),
        )

    async def test_list_options(self):
        options = await self.catalog.list_options()

        self.assertEqual(
            [option.name for option in options],
            ["Inner Config (Alpha, from source.zip)", "Mapeo Default Config (Alpha)"],
        )
        zipped, direct = options
        self.assertTrue(zipped.is_zipped)
        self.assertEqual(zipped.comapeocat_in_zip, "dist/inner_config.comapeocat")
        self.assertEqual(zipped.formatted_size, "3.00MB")
        self.assertEqual(direct.formatted_size, "2.00KB")
        self.assertEqual(direct.release_tag, "v5.0.0")
        self.assertEqual(direct.release_date, "2024-03-01")
        self.assertEqual(direct.source, "Alpha")

    async def test_download_direct_bundle(self):
        options = await self.catalog.list_options()
        reported = []

        data = await self.catalog.download(options[1], progress=lambda percent, message: reported.append(percent))

        self.assertEqual(data, BUNDLE_BYTES)
        self.assertEqual(reported[-1], 100)

    async def test_download_extracts_zipped_bundle(self):
        options = await self.catalog.list_options()

        data = await self.catalog.download(options[0])

        self.assertEqual(data, ZIPPED_BUNDLE_BYTES)

    async def test_download_failure(self):
        option = DefaultConfigOption(
            name="Gone", file_name="gone.comapeocat",
            download_url="https://downloads.example.test/gone.comapeocat", source="Alpha",
        )

        with self.assertRaises(RemoteFetchError):
            await self.catalog.download(option)

    async def test_missing_member_in_zip(self):
        option = DefaultConfigOption(
            name="Zipped", file_name="source.zip", download_url=ZIP_URL, source="Alpha",
            is_zipped=True, comapeocat_in_zip="other.comapeocat",
        )

        with self.assertRaises(RemoteFetchError):
            await self.catalog.download(option)

    async def test_unreachable_network_gives_empty_listing(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        catalog = DefaultConfigCatalog(repositories=REPOSITORIES, transport=httpx.MockTransport(refuse))

        self.assertEqual(await catalog.list_options(), [])


@pytest.mark.parametrize("size, expected", [
    (1536, "1.50KB"),
    (1024 * 1024, "1024.00KB"),
    (3 * 1024 * 1024, "3.00MB"),
])
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_friendly_name():
    assert friendly_name("mapeo-default_config.comapeocat") == "Mapeo Default Config"
    assert friendly_name("Library.ZIP") == "Library"
