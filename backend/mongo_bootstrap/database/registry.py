"""
Manifest registry.
Builds the manifest a run applies, from the bundled database definitions
or from a JSON manifest file.
"""
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from mongo_bootstrap.config import Settings
from mongo_bootstrap.core.errors import ManifestError
from mongo_bootstrap.database.databases import admin_db, ai_memory_db
from mongo_bootstrap.models.specs import BootstrapManifest

logger = logging.getLogger("mongo_bootstrap.registry")


def default_manifest(ai_memory_db_name: str = ai_memory_db.DB_NAME) -> BootstrapManifest:
    """Users, collections and indexes for the AI agent chat memory store."""
    return BootstrapManifest(
        users=[
            *admin_db.user_specs(),
            *ai_memory_db.user_specs(ai_memory_db_name),
        ],
        collections=ai_memory_db.collection_specs(ai_memory_db_name),
        indexes=ai_memory_db.index_specs(ai_memory_db_name),
    )


def load_manifest(path: str) -> BootstrapManifest:
    """
    Load a manifest from a JSON file.

    Raises:
        ManifestError: If the file cannot be read or is not a valid manifest
    """
    try:
        raw = Path(path).read_text()
    except OSError as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e

    try:
        return BootstrapManifest.model_validate_json(raw)
    except ValidationError as e:
        raise ManifestError(f"Invalid manifest {path}: {e}") from e


def resolve_manifest(settings: Settings, manifest_path: Optional[str] = None) -> BootstrapManifest:
    """Manifest from an explicit path, the configured path, or the bundled definitions."""
    path = manifest_path or settings.manifest_path
    if path:
        logger.info(f"Loading manifest from {path}")
        return load_manifest(path)
    return default_manifest(settings.ai_memory_db_name)
