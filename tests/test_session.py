"""
Unit tests for the configuration session and its editing operations.
"""

import json
import unittest

import httpx
import pytest

from comapeo_config.exceptions import ArchiveFormatError, ConversionDegradedError, RemoteFetchError
from comapeo_config.exporters import BuildClient
from comapeo_config.models import CoMapeoField, CoMapeoPreset, FieldType, TextContent
from comapeo_config.session import ConfigSession

from archive_helpers import make_tar, make_zip


class TestSessionImport(unittest.TestCase):
    """Test imports through the session."""

    def test_import_sample(self):
        session = ConfigSession(strict=False)

        configuration = session.import_sample()

        self.assertEqual(configuration.metadata.name, "Sample Configuration")
        self.assertEqual([preset.id for preset in configuration.presets], ["building", "school"])
        self.assertEqual(len(session.assets), 2)
        self.assertFalse(session.is_mapeo)

    def test_import_legacy_tar(self):
        data = make_tar({
            "metadata.json": json.dumps({"dataset_id": "mapeo-default", "version": "v1.2.0"}),
            "presets.json": json.dumps({"river": {"name": "River", "geometry": ["line"]}}),
        })
        reported = []

        session = ConfigSession(strict=False)
        configuration = session.import_archive(
            data, filename="default.mapeosettings",
            progress=lambda percent, message: reported.append(percent),
        )

        self.assertTrue(session.is_mapeo)
        self.assertEqual(configuration.metadata.version, "1.2.0")
        self.assertEqual(configuration.presets[0].id, "river")
        self.assertEqual(reported, sorted(reported))
        self.assertEqual(reported[-1], 100)

    def test_degradations_are_kept(self):
        data = make_zip({"config.json": json.dumps({"fields": [{"id": "x", "type": "barcode"}]})})

        session = ConfigSession(strict=False)
        session.import_archive(data, kind="zip")

        self.assertEqual(len(session.degradations), 1)
        self.assertEqual(session.config.fields[0].type, FieldType.TEXT)

    def test_strict_session(self):
        data = make_zip({"config.json": json.dumps({"fields": [{"id": "x", "type": "barcode"}]})})

        with self.assertRaises(ConversionDegradedError):
            ConfigSession(strict=True).import_archive(data, kind="zip")

    def test_strict_session_rejects_irregular_legacy_bundle(self):
        """Test strict mode is not swallowed by the legacy placeholder fallback."""
        data = make_tar({
            "metadata.json": json.dumps({"dataset_id": "mapeo-default"}),
            "presets.json": json.dumps({"presets": {}, "fields": {"f": {"key": "f", "type": "barcode"}}}),
        })

        session = ConfigSession(strict=True)
        with self.assertRaises(ConversionDegradedError):
            session.import_archive(data, filename="x.mapeosettings")

        self.assertIsNone(session.config)

    def test_presets_only_bundle_with_nested_fields(self):
        """Test a bundle holding only presets.json with nested fields imports fully."""
        data = make_zip({"presets.json": json.dumps({
            "presets": {"building": {"name": "Building", "fields": ["name"]}},
            "fields": {"name": {"key": "name", "type": "text", "label": "Name"}},
        })})

        session = ConfigSession(strict=False)
        configuration = session.import_archive(data, filename="bundle.comapeocat")

        self.assertEqual([field.id for field in configuration.fields], ["name"])
        self.assertEqual(configuration.get_preset("building").field_refs, ["name"])
        self.assertEqual(configuration.translations, {})
        self.assertEqual(configuration.icons, {})
        self.assertTrue(configuration.metadata.build_date)
        self.assertFalse(session.is_mapeo)
        self.assertEqual(session.degradations, [])

    def test_failed_import_keeps_previous_state(self):
        session = ConfigSession(strict=False)
        session.import_sample()

        with self.assertRaises(ArchiveFormatError):
            session.import_archive(b"not a zip", kind="zip")

        self.assertEqual(session.config.metadata.name, "Sample Configuration")

    def test_export_without_configuration(self):
        with self.assertRaises(ValueError):
            ConfigSession().export_archive()


class TestSessionEditing(unittest.TestCase):
    """Test editing operations on a loaded configuration."""

    def setUp(self):
        self.session = ConfigSession(strict=False)
        self.session.import_sample()

    def test_update_metadata(self):
        self.session.update_metadata(name="Renamed", version="2.0.0")

        self.assertEqual(self.session.config.metadata.name, "Renamed")
        self.assertEqual(self.session.config.metadata.version, "2.0.0")
        self.assertEqual(self.session.config.metadata.file_version, "1")

    def test_preset_lifecycle(self):
        self.session.add_preset(CoMapeoPreset(id="river", name="River"))
        updated = self.session.update_preset("river", color="#0000FF", fieldRefs=["name"])

        self.assertEqual(updated.color, "#0000FF")
        self.assertEqual(self.session.config.get_preset("river").field_refs, ["name"])
        self.assertTrue(self.session.delete_preset("river"))
        self.assertFalse(self.session.delete_preset("river"))
        self.assertIsNone(self.session.config.get_preset("river"))

    def test_duplicate_preset_rejected(self):
        with self.assertRaises(ValueError):
            self.session.add_preset(CoMapeoPreset(id="building", name="Again"))

    def test_update_unknown_preset(self):
        with self.assertRaises(KeyError):
            self.session.update_preset("missing", name="x")

    def test_field_lifecycle(self):
        self.session.add_field(CoMapeoField(id="floors", name="Floors", tag_key="floors", type=FieldType.NUMBER))
        updated = self.session.update_field("floors", type="selectOne")

        self.assertEqual(updated.type, FieldType.SELECT_ONE)
        self.assertEqual(updated.options, [])

    def test_delete_field_removes_references(self):
        self.assertTrue(self.session.delete_field("building-type"))

        self.assertIsNone(self.session.config.get_field("building-type"))
        self.assertEqual(self.session.config.get_preset("building").field_refs, ["name"])

    def test_translations(self):
        self.session.add_language("pt")
        self.session.update_translation("pt", "fields/name/label", "Nome")
        self.session.update_translation("es", "presets/school/name", "Colegio")

        self.assertEqual(self.session.config.translations["pt"], {"fields": {"name": {"label": "Nome"}}})
        self.assertEqual(self.session.config.translated_preset_name("es", "school"), "Colegio")
        self.assertEqual(self.session.config.translated_label("es", "name"), "Nombre")
        self.assertEqual(self.session.config.translated_helper_text("pt", "name"), "The name of this place")
        self.assertEqual(self.session.config.translated_helper_text("es", "name"), "El nombre de este lugar")

    def test_translation_paths_strip_quotes(self):
        self.session.update_translation("es", 'fields/"name"/label', "Nombre propio")

        self.assertEqual(self.session.config.translated_label("es", "name"), "Nombre propio")

    def test_empty_translation_key(self):
        with self.assertRaises(ValueError):
            self.session.update_translation("es", "//", "x")

    def test_icons(self):
        self.session.add_icon("river", "<svg>river</svg>")
        self.session.update_preset("building", icon="river")

        self.assertEqual(self.session.icon_for_preset("building").content, TextContent("<svg>river</svg>"))
        self.assertTrue(self.session.delete_icon("river"))
        self.assertIsNone(self.session.icon_for_preset("building"))
        self.assertEqual(self.session.icon_for_preset("school").path, "icons/school.svg")

    def test_replacing_an_icon(self):
        self.session.add_icon("school", "<svg>new</svg>")

        school_icons = [asset for asset in self.session.assets if asset.path == "icons/school.svg"]
        self.assertEqual(len(school_icons), 1)
        self.assertEqual(school_icons[0].content, TextContent("<svg>new</svg>"))


def test_build_client_posts_archive():
    received = {}

    def handler(request):
        received["url"] = str(request.url)
        received["body"] = request.read()
        return httpx.Response(200, content=b"built")

    with BuildClient(build_url="http://build.test/api/build", transport=httpx.MockTransport(handler)) as client:
        result = client.build(b"zip-bytes", filename="config.zip")

    assert result == b"built"
    assert received["url"] == "http://build.test/api/build"
    assert b"zip-bytes" in received["body"]


def test_build_client_failure():
    transport = httpx.MockTransport(lambda request: httpx.Response(500))

    with BuildClient(build_url="http://build.test/api/build", transport=transport) as client:
        with pytest.raises(RemoteFetchError):
            client.build(b"zip-bytes")
