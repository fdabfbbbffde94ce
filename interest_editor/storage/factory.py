"""
Backend Factory for the interest editor.

Creates the appropriate storage backend based on project configuration.
Handles loading project config and instantiating FileBackend or SupabaseBackend.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union, TYPE_CHECKING

from interest_editor.storage.file_backend import FileBackend

if TYPE_CHECKING:
    from interest_editor.storage.supabase_backend import SupabaseBackend

logger = logging.getLogger(__name__)

DEFAULT_BACKEND = "file"

CONFIG_FILENAME = "config.json"


def get_project_config(project_path: Union[str, Path]) -> dict:
    """
    Load project configuration from config.json.

    Args:
        project_path: Path to the project folder

    Returns:
        Dict with project config, or default config if file doesn't exist
    """
    project_path = Path(project_path)
    config_path = project_path / CONFIG_FILENAME

    default_config = {
        "storage_backend": DEFAULT_BACKEND
    }

    if not config_path.exists():
        return default_config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
            if "storage_backend" not in config:
                config["storage_backend"] = DEFAULT_BACKEND
            return config
    except Exception as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        return default_config


def get_backend_type(project_path: Union[str, Path]) -> str:
    """
    Get the storage backend type for a project.

    Returns:
        'file' or 'supabase'
    """
    config = get_project_config(project_path)
    return config.get("storage_backend", DEFAULT_BACKEND)


def create_backend(
    project_path: Union[str, Path],
    supabase_client=None,
    force_backend: Optional[str] = None,
):
    """
    Create a storage backend instance for a project.

    Args:
        project_path: Path to the project folder
        supabase_client: Optional Supabase client for cloud storage
        force_backend: Override the configured backend type

    Returns:
        FileBackend or SupabaseBackend (both implement CatalogService and SelectionRepository)
    """
    project_path = Path(project_path)
    backend_type = force_backend or get_backend_type(project_path)

    if backend_type == "supabase":
        return _create_supabase_backend(project_path, supabase_client)
    if backend_type != DEFAULT_BACKEND:
        raise ValueError(f"Unknown storage backend: {backend_type!r}")
    return FileBackend(project_path)


def _create_supabase_backend(project_path: Path, supabase_client=None) -> "SupabaseBackend":
    import os

    from interest_editor.storage.supabase_backend import SupabaseBackend

    config = get_project_config(project_path)
    supabase_url = config.get("supabase_url") or os.environ.get("SUPABASE_URL")
    supabase_key = config.get("supabase_key") or os.environ.get("SUPABASE_KEY")

    logger.info(f"Using Supabase backend for {project_path.name}")
    return SupabaseBackend(
        client=supabase_client,
        supabase_url=supabase_url,
        supabase_key=supabase_key,
    )
