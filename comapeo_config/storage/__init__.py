"""Shared configuration store."""

from .manager import ConfigStore, StoredConfig

__all__ = ["ConfigStore", "StoredConfig"]
