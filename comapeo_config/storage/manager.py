"""
Shared configuration store.

This module keeps shared configuration documents in DuckDB, keyed by a short
hash id that can be handed out as a link.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

import duckdb
from pydantic import BaseModel, Field

from ..config import config
from ..exceptions import StorageError
from ..models import CoMapeoConfig


class StoredConfig(BaseModel):
    """A configuration document saved in the shared store."""

    hash_id: str = Field(..., description="Short identifier used in share links")
    name: str
    version: str
    file_version: str
    build_date: str
    is_mapeo: bool = False
    created_at: str
    document: CoMapeoConfig


class ConfigStore:
    """
    Manages the DuckDB database of shared configurations.
    """

    def __init__(self, db_path: Optional[str] = None, hash_length: Optional[int] = None):
        """
        Initialize the store.

        Args:
            db_path: Path to the DuckDB database file (defaults to config value)
            hash_length: Length of generated hash ids (defaults to config value)
        """
        self.db_path = db_path or config.storage_filename
        self.hash_length = hash_length or config.hash_length
        self.connection = None

    def connect(self):
        """Establish connection to the database."""
        self.connection = duckdb.connect(self.db_path)

    def disconnect(self):
        """Close the database connection."""
        if self.connection:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        self.connect()
        self.initialize_database()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def _require_connection(self):
        if not self.connection:
            raise StorageError("Database connection not established")
        return self.connection

    def initialize_database(self):
        """
        Create the configs table if it doesn't exist.
        """
        self._require_connection().execute("""
            CREATE TABLE IF NOT EXISTS configs (
                hash_id VARCHAR PRIMARY KEY,
                name VARCHAR NOT NULL,
                version VARCHAR NOT NULL,
                file_version VARCHAR NOT NULL,
                build_date VARCHAR NOT NULL,
                is_mapeo BOOLEAN NOT NULL DEFAULT FALSE,
                created_at VARCHAR NOT NULL,
                document TEXT NOT NULL
            )
        """)

    def _new_hash_id(self) -> str:
        return uuid.uuid4().hex[:self.hash_length]

    def create_config(self, document: CoMapeoConfig, is_mapeo: bool = False) -> StoredConfig:
        """
        Save a configuration under a fresh hash id.

        Args:
            document: The configuration to share
            is_mapeo: Whether it originated from a legacy Mapeo bundle

        Returns:
            The stored record
        """
        connection = self._require_connection()
        stored = StoredConfig(
            hash_id=self._new_hash_id(),
            name=document.metadata.name,
            version=document.metadata.version,
            file_version=document.metadata.file_version,
            build_date=document.metadata.build_date,
            is_mapeo=is_mapeo,
            created_at=datetime.now(timezone.utc).isoformat(),
            document=document,
        )
        connection.execute("""
            INSERT INTO configs (hash_id, name, version, file_version, build_date, is_mapeo, created_at, document)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, [
            stored.hash_id,
            stored.name,
            stored.version,
            stored.file_version,
            stored.build_date,
            stored.is_mapeo,
            stored.created_at,
            json.dumps(document.to_document()),
        ])
        logging.info(f"Stored configuration '{stored.name}' as {stored.hash_id}")
        return stored

    def get_config_by_hash(self, hash_id: str) -> Optional[StoredConfig]:
        """
        Retrieve a configuration by its hash id.

        Returns:
            The stored record if found, None otherwise
        """
        result = self._require_connection().execute("""
            SELECT hash_id, name, version, file_version, build_date, is_mapeo, created_at, document
            FROM configs
            WHERE hash_id = ?
        """, [hash_id]).fetchone()

        if not result:
            return None
        return StoredConfig(
            hash_id=result[0],
            name=result[1],
            version=result[2],
            file_version=result[3],
            build_date=result[4],
            is_mapeo=result[5],
            created_at=result[6],
            document=CoMapeoConfig.model_validate(json.loads(result[7])),
        )

    def update_config(self, hash_id: str, document: CoMapeoConfig,
                      is_mapeo: Optional[bool] = None) -> Optional[StoredConfig]:
        """
        Replace the document stored under a hash id.

        Returns:
            The updated record, or None if the hash id is unknown
        """
        existing = self.get_config_by_hash(hash_id)
        if existing is None:
            return None

        updated = existing.model_copy(update={
            "name": document.metadata.name,
            "version": document.metadata.version,
            "file_version": document.metadata.file_version,
            "build_date": document.metadata.build_date,
            "is_mapeo": existing.is_mapeo if is_mapeo is None else is_mapeo,
            "document": document,
        })
        self._require_connection().execute("""
            UPDATE configs
            SET name = ?, version = ?, file_version = ?, build_date = ?, is_mapeo = ?, document = ?
            WHERE hash_id = ?
        """, [
            updated.name,
            updated.version,
            updated.file_version,
            updated.build_date,
            updated.is_mapeo,
            json.dumps(document.to_document()),
            hash_id,
        ])
        logging.info(f"Updated stored configuration {hash_id}")
        return updated

    def delete_config(self, hash_id: str) -> bool:
        """
        Delete a stored configuration.

        Returns:
            True if a record was deleted, False if the hash id was unknown
        """
        if self.get_config_by_hash(hash_id) is None:
            return False
        self._require_connection().execute("DELETE FROM configs WHERE hash_id = ?", [hash_id])
        logging.info(f"Deleted stored configuration {hash_id}")
        return True
