"""Remote catalog of published default configurations."""

from .catalog import DefaultConfigCatalog, DefaultConfigOption, format_file_size, friendly_name

__all__ = ["DefaultConfigCatalog", "DefaultConfigOption", "format_file_size", "friendly_name"]
