"""
Unit tests for legacy Mapeo to CoMapeo conversion.
"""

import re
import unittest
from unittest.mock import patch

import pytest

from comapeo_config.conversion import LegacyConverter, derive_color, placeholder_config
from comapeo_config.models import ConfigDraft, FieldType, Geometry
from comapeo_config.normalize import ShapeNormalizer


def legacy_draft():
    return ConfigDraft(
        metadata={"dataset_id": "mapeo-jungle", "name": "Jungle", "version": "v2.1.0"},
        fields={
            "species": {
                "key": "species",
                "type": "select_one",
                "label": "Species",
                "placeholder": "Which species?",
                "options": ["Oak", "Palm tree"],
            },
            "notes": {"key": "notes", "type": "textarea", "label": "Notes"},
        },
        presets={
            "tree": {
                "name": "Tree",
                "tags": {"natural": "tree"},
                "fields": ["species", "notes"],
                "geometry": ["point", "area"],
                "icon": "tree",
                "color": "#ff0000",
            },
        },
        translations={
            "es": {
                "fields": {
                    "species": {"label": "Especie", "placeholder": "¿Cuál?", "options": {'"oak"': {"label": "Roble"}}},
                },
                "presets": {"tree": {"name": "Árbol"}},
            },
        },
    )


class TestLegacyConverter(unittest.TestCase):
    """Test conversion of legacy drafts."""

    def setUp(self):
        self.converter = LegacyConverter(ShapeNormalizer(strict=False))

    def test_metadata(self):
        configuration = self.converter.convert(legacy_draft())

        self.assertEqual(configuration.metadata.name, "Jungle")
        self.assertEqual(configuration.metadata.version, "2.1.0")
        self.assertEqual(configuration.metadata.file_version, "1")
        self.assertIn("mapeo-jungle", configuration.metadata.description)
        self.assertTrue(configuration.metadata.build_date)

    def test_missing_metadata_uses_defaults(self):
        configuration = self.converter.convert(ConfigDraft(metadata={"dataset_id": ""}))

        self.assertEqual(configuration.metadata.version, "1.0.0")
        self.assertEqual(configuration.metadata.name, "converted-mapeo-config")

    def test_field_attributes_are_renamed(self):
        species = self.converter.convert(legacy_draft()).get_field("species")

        self.assertEqual(species.type, FieldType.SELECT_ONE)
        self.assertEqual(species.name, "Species")
        self.assertEqual(species.tag_key, "species")
        self.assertEqual(species.helper_text, "Which species?")
        self.assertEqual(
            [(option.label, option.value) for option in species.options],
            [("Oak", "oak"), ("Palm tree", "palm_tree")],
        )

    def test_legacy_type_remap(self):
        draft = ConfigDraft(
            metadata={"dataset_id": "x"},
            fields=[
                {"id": "a", "type": "select_multiple", "options": ["One"]},
                {"id": "b", "type": "datetime"},
            ],
        )

        configuration = self.converter.convert(draft)

        self.assertEqual(configuration.get_field("a").type, FieldType.SELECT_MANY)
        self.assertEqual(configuration.get_field("b").type, FieldType.DATE)

    def test_preset_color_is_derived_from_id(self):
        tree = self.converter.convert(legacy_draft()).get_preset("tree")

        self.assertEqual(tree.color, derive_color("tree"))
        self.assertEqual(tree.field_refs, ["species", "notes"])
        self.assertEqual(tree.geometry, [Geometry.POINT, Geometry.AREA])
        self.assertEqual(tree.icon, "tree")

    def test_translations(self):
        spanish = self.converter.convert(legacy_draft()).translations["es"]

        species = spanish["fields"]["species"]
        self.assertEqual(species["label"], "Especie")
        self.assertEqual(species["helperText"], "¿Cuál?")
        self.assertNotIn("placeholder", species)
        self.assertEqual(species["options"], {"oak": "Roble"})
        self.assertEqual(spanish["presets"]["tree"]["name"], "Árbol")

    def test_field_definition_in_translations_is_coerced(self):
        draft = legacy_draft()
        draft.translations["pt"] = {
            "fields": {
                "species": {"key": "species", "type": "select_one", "label": "Espécie", "options": ["Carvalho"]},
            },
        }

        configuration = self.converter.convert(draft)

        self.assertEqual(
            configuration.translations["pt"]["fields"]["species"],
            {"label": "Espécie", "helperText": "", "options": {"carvalho": "Carvalho"}},
        )
        self.assertTrue(any(notice.section == "translations" for notice in self.converter.log.notices))

    def test_option_arrays_become_label_maps(self):
        draft = ConfigDraft(
            metadata={"dataset_id": "x"},
            translations={"es": {"options": {"species": ["Roble", {"label": "Palma", "value": "palm"}]}}},
        )

        configuration = self.converter.convert(draft)

        self.assertEqual(configuration.translations["es"]["options"], {"roble": "Roble", "palm": "Palma"})

    def test_failure_returns_placeholder(self):
        with patch.object(LegacyConverter, "convert", side_effect=RuntimeError("boom")):
            configuration = self.converter.convert_or_placeholder(legacy_draft())

        self.assertEqual(configuration.fields, [])
        self.assertEqual(configuration.presets, [])
        self.assertIn("boom", configuration.metadata.description)


def test_derive_color_known_values():
    assert derive_color("") == "#000000"
    assert derive_color("a") == "#000061"
    assert derive_color("ab") == "#000c21"


def test_derive_color_hashes_utf16_code_units():
    assert derive_color("🌳") == "#1b0e77"


@pytest.mark.parametrize("identifier", ["tree", "river-crossing", "a" * 200, "árbol"])
def test_derive_color_is_deterministic_hex(identifier):
    color = derive_color(identifier)

    assert re.fullmatch(r"#[0-9a-f]{6}", color)
    assert derive_color(identifier) == color


def test_placeholder_config_without_reason():
    configuration = placeholder_config()

    assert configuration.metadata.file_version == "1"
    assert configuration.translations == {}
    assert "(" not in configuration.metadata.description
