"""
Sample configuration importer.

Provides a built-in CoMapeo configuration as archive entries so it flows
through the same reconcile/normalize pipeline as an uploaded bundle.
"""

import json
from typing import Any, Dict, List

from ..models import ArchiveEntry, utc_now_iso


BUILDING_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="24" height="24" viewBox="0 0 24 24">'
    '<path d="M12 2C6.48 2 2 6.48 2 12s4.48 10 10 10 10-4.48 10-10S17.52 2 12 2z"/></svg>'
)

SCHOOL_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="24" height="24" viewBox="0 0 24 24">'
    '<path d="M5 13.18v4L12 21l7-3.82v-4L12 17l-7-3.82zM12 3L1 9l11 6 9-4.91V17h2V9L12 3z"/></svg>'
)


class SampleConfigImporter:
    """
    Importer that returns a hardcoded sample configuration.

    Used to start editing without an uploaded bundle, and as a fixture for
    pipeline tests.
    """

    def __init__(self):
        """Initialize the importer with the sample document."""
        self._document = self._create_sample_document()

    @property
    def document(self) -> Dict[str, Any]:
        return self._document

    def get_entries(self) -> List[ArchiveEntry]:
        """
        Return the sample as entries, as if read from a unified archive.

        Returns:
            The config.json entry followed by the sample SVG icons
        """
        entries = [
            ArchiveEntry(path="config.json", is_binary=False, content=json.dumps(self._document, indent=2)),
        ]
        entries.extend(self._create_sample_icon_entries())
        return entries

    def _create_sample_document(self) -> Dict[str, Any]:
        """
        Create the sample canonical document.

        Returns:
            Dictionary with metadata, fields, presets, translations and icons
        """
        fields = [
            {
                "id": "name",
                "name": "Name",
                "tagKey": "name",
                "type": "text",
                "universal": True,
                "helperText": "The name of this place",
            },
            {
                "id": "building-type",
                "name": "Building Type",
                "tagKey": "building-type",
                "type": "selectOne",
                "universal": False,
                "helperText": "School/hospital/etc",
                "options": [
                    {"label": "School", "value": "school"},
                    {"label": "Hospital", "value": "hospital"},
                    {"label": "Community Center", "value": "community"},
                ],
            },
        ]

        presets = [
            {
                "id": "building",
                "name": "Building",
                "tags": {"type": "building"},
                "color": "#B209B2",
                "icon": "building",
                "fieldRefs": ["name", "building-type"],
                "geometry": ["point"],
            },
            {
                "id": "school",
                "name": "School",
                "tags": {"type": "building", "building": "school"},
                "color": "#0033CC",
                "icon": "school",
                "fieldRefs": ["name"],
                "addTags": {"building-type": "school"},
                "geometry": ["point"],
            },
        ]

        translations = {
            "en": {
                "fields": {
                    "name": {"label": "Name", "helperText": "The name of this place"},
                    "building-type": {
                        "label": "Building Type",
                        "helperText": "School/hospital/etc",
                        "options": {
                            "school": "School",
                            "hospital": "Hospital",
                            "community": "Community Center",
                        },
                    },
                },
                "presets": {
                    "building": {"name": "Building"},
                    "school": {"name": "School"},
                },
            },
            "es": {
                "fields": {
                    "name": {"label": "Nombre", "helperText": "El nombre de este lugar"},
                    "building-type": {
                        "label": "Tipo de Edificio",
                        "helperText": "Escuela/hospital/etc",
                        "options": {
                            "school": "Escuela",
                            "hospital": "Hospital",
                            "community": "Centro Comunitario",
                        },
                    },
                },
                "presets": {
                    "building": {"name": "Edificio"},
                    "school": {"name": "Escuela"},
                },
            },
        }

        return {
            "metadata": {
                "name": "Sample Configuration",
                "version": "1.0.0",
                "fileVersion": "1",
                "description": "A sample configuration for testing",
                "buildDate": utc_now_iso(),
            },
            "fields": fields,
            "presets": presets,
            "translations": translations,
            "icons": {
                "building": {"src": "icons/building.svg"},
                "school": {"src": "icons/school.svg"},
            },
        }

    def _create_sample_icon_entries(self) -> List[ArchiveEntry]:
        return [
            ArchiveEntry(path="icons/building.svg", is_binary=False, content=BUILDING_SVG),
            ArchiveEntry(path="icons/school.svg", is_binary=False, content=SCHOOL_SVG),
        ]
