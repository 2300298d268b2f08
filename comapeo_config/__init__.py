"""
comapeo_config: authoring and conversion toolkit for CoMapeo configurations.

Reads configuration bundles in their historical layouts, reconstructs one
canonical configuration, converts legacy Mapeo schemas and writes
distributable archives.
"""

__version__ = "0.1.0"
__author__ = "CoMapeo Config Project"

# Import main components
from .models import CoMapeoConfig, CoMapeoField, CoMapeoPreset, Asset
from .importers import LegacyTarReader, SampleConfigImporter, ZipArchiveReader
from .reconcile import ComponentReconciler
from .normalize import ShapeNormalizer
from .conversion import LegacyConverter
from .exporters import ArchiveWriter, BuildClient
from .remote import DefaultConfigCatalog
from .storage import ConfigStore
from .session import ConfigSession

__all__ = [
    "CoMapeoConfig",
    "CoMapeoField",
    "CoMapeoPreset",
    "Asset",
    "LegacyTarReader",
    "SampleConfigImporter",
    "ZipArchiveReader",
    "ComponentReconciler",
    "ShapeNormalizer",
    "LegacyConverter",
    "ArchiveWriter",
    "BuildClient",
    "DefaultConfigCatalog",
    "ConfigStore",
    "ConfigSession",
]
