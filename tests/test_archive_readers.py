"""
Unit tests for the ZIP and legacy tar archive readers.
"""

import io
import tarfile
import unittest

import pytest

from comapeo_config.exceptions import ArchiveFormatError, ImportCancelled
from comapeo_config.importers import (
    CancellationToken,
    LegacyTarReader,
    ZipArchiveReader,
    detect_kind,
    get_reader,
)
from comapeo_config.models import ArchiveKind

from archive_helpers import make_tar, make_zip, tar_entry, tar_header


PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\xff\xfe"


class TestZipArchiveReader(unittest.TestCase):
    """Test decoding of ZIP bundles."""

    def setUp(self):
        self.reader = ZipArchiveReader()

    def test_text_and_binary_entries(self):
        """Test rasters stay bytes while other entries are decoded as text."""
        data = make_zip({
            "config.json": '{"metadata": {}}',
            "icons/tree.svg": "<svg/>",
            "icons/tree-medium@2x.png": PNG_BYTES,
        })

        entries = self.reader.read(data)
        by_path = {entry.path: entry for entry in entries}

        self.assertEqual(list(by_path), ["config.json", "icons/tree.svg", "icons/tree-medium@2x.png"])
        self.assertFalse(by_path["config.json"].is_binary)
        self.assertEqual(by_path["config.json"].content, '{"metadata": {}}')
        self.assertTrue(by_path["icons/tree-medium@2x.png"].is_binary)
        self.assertEqual(by_path["icons/tree-medium@2x.png"].content, PNG_BYTES)
        self.assertEqual(by_path["icons/tree.svg"].name, "tree.svg")

    def test_skips_directories_and_macos_metadata(self):
        """Test directory entries and __MACOSX resource forks are ignored."""
        data = make_zip({
            "icons/": "",
            "__MACOSX/._config.json": b"\x00\x05\x16\x07",
            "config.json": "{}",
        })

        entries = self.reader.read(data)

        self.assertEqual([entry.path for entry in entries], ["config.json"])

    def test_utf8_bom_is_removed(self):
        data = make_zip({"metadata.json": "\ufeff{\"name\": \"Selva\"}".encode("utf-8")})

        entries = self.reader.read(data)

        self.assertEqual(entries[0].content, '{"name": "Selva"}')

    def test_tar_bytes_rejected(self):
        """Test tar data handed to the ZIP reader is a format error."""
        data = make_tar({"presets.json": "{}"})

        with self.assertRaises(ArchiveFormatError):
            self.reader.read(data)

    def test_garbage_rejected(self):
        with self.assertRaises(ArchiveFormatError):
            self.reader.read(b"definitely not an archive")

    def test_cancellation(self):
        token = CancellationToken()
        token.cancel()

        with self.assertRaises(ImportCancelled):
            self.reader.read(make_zip({"config.json": "{}"}), cancel_token=token)

    def test_progress_is_monotonic(self):
        data = make_zip({f"icons/icon{i}.svg": "<svg/>" for i in range(5)})
        reported = []

        self.reader.read(data, progress=lambda percent, message: reported.append(percent))

        self.assertEqual(reported, sorted(reported))
        self.assertEqual(reported[-1], 100)


class TestLegacyTarReader(unittest.TestCase):
    """Test decoding of .mapeosettings tar bundles."""

    def setUp(self):
        self.reader = LegacyTarReader(config_extensions=[".json", ".svg", ".png"], version_filename="VERSION")

    def test_keeps_only_configuration_files(self):
        """Test filtering by extension and the VERSION sentinel."""
        data = make_tar({
            "presets.json": '{"presets": {}}',
            "icons/tree.svg": "<svg/>",
            "icons/tree-medium@2x.png": PNG_BYTES,
            "README.md": "# notes",
            "VERSION": "1",
        })

        entries = self.reader.read(data)

        self.assertEqual(
            [entry.path for entry in entries],
            ["presets.json", "icons/tree.svg", "icons/tree-medium@2x.png", "VERSION"],
        )
        self.assertEqual(entries[0].content, '{"presets": {}}')
        self.assertTrue(entries[2].is_binary)
        self.assertEqual(entries[2].content, PNG_BYTES)
        self.assertEqual(entries[3].content, "1")

    def test_leading_dot_slash_is_stripped(self):
        data = make_tar({"./metadata.json": "{}"})

        entries = self.reader.read(data)

        self.assertEqual(entries[0].path, "metadata.json")

    def test_content_spanning_several_blocks(self):
        svg = "<svg>" + "x" * 1500 + "</svg>"
        data = make_tar({"icons/big.svg": svg, "metadata.json": "{}"})

        entries = self.reader.read(data)

        self.assertEqual(entries[0].content, svg)
        self.assertEqual(entries[1].path, "metadata.json")

    def test_zero_block_ends_archive(self):
        """Test nothing after the end-of-archive marker is read."""
        data = (
            tar_entry("metadata.json", "{}")
            + b"\0" * 1024
            + tar_entry("presets.json", "{}")
        )

        entries = self.reader.read(data)

        self.assertEqual([entry.path for entry in entries], ["metadata.json"])

    def test_directories_are_skipped(self):
        data = tar_header("icons/", 0, typeflag=b"5") + tar_entry("icons/a.svg", "<svg/>") + b"\0" * 1024

        entries = self.reader.read(data)

        self.assertEqual([entry.path for entry in entries], ["icons/a.svg"])

    def test_invalid_octal_size_names_the_entry(self):
        data = tar_header("presets.json", 0, size_field=b"0000000012x\0") + b"\0" * 1024

        with self.assertRaises(ArchiveFormatError) as context:
            self.reader.read(data)

        self.assertEqual(context.exception.entry, "presets.json")
        self.assertIn("presets.json", str(context.exception))

    def test_checksum_mismatch(self):
        header = bytearray(tar_header("presets.json", 2))
        header[100] = ord("7")
        data = bytes(header) + b"{}" + b"\0" * 510 + b"\0" * 1024

        with self.assertRaises(ArchiveFormatError):
            self.reader.read(data)

    def test_truncated_content(self):
        data = tar_header("presets.json", 2048) + b"{}"

        with self.assertRaises(ArchiveFormatError):
            self.reader.read(data)

    def test_zip_bytes_rejected(self):
        with self.assertRaises(ArchiveFormatError):
            self.reader.read(make_zip({"config.json": "{}"}))

    def test_cancellation(self):
        token = CancellationToken()
        token.cancel()

        with self.assertRaises(ImportCancelled):
            self.reader.read(make_tar({"metadata.json": "{}"}), cancel_token=token)

    def test_progress_reaches_completion(self):
        reported = []

        self.reader.read(
            make_tar({"metadata.json": "{}", "presets.json": "{}"}),
            progress=lambda percent, message: reported.append(percent),
        )

        self.assertEqual(reported, sorted(reported))
        self.assertEqual(reported[-1], 100)


def test_reads_archive_written_by_tarfile():
    """Archives produced by a standard tar implementation are readable."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w", format=tarfile.USTAR_FORMAT) as archive:
        for name, content in [("metadata.json", b'{"dataset_id": "x"}'), ("notes.txt", b"skip me")]:
            info = tarfile.TarInfo(name)
            info.size = len(content)
            archive.addfile(info, io.BytesIO(content))

    entries = LegacyTarReader().read(buffer.getvalue())

    assert [entry.path for entry in entries] == ["metadata.json"]
    assert entries[0].content == '{"dataset_id": "x"}'


@pytest.mark.parametrize("filename, kind", [
    ("config.comapeocat", ArchiveKind.ZIP),
    ("export.zip", ArchiveKind.ZIP),
    ("Old.MAPEOSETTINGS", ArchiveKind.LEGACY_TAR),
])
def test_detect_kind(filename, kind):
    assert detect_kind(filename) is kind


def test_get_reader_by_kind_name():
    assert isinstance(get_reader("legacy_tar"), LegacyTarReader)
    assert isinstance(get_reader(ArchiveKind.ZIP), ZipArchiveReader)
