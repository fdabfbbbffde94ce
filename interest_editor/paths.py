"""
Path utilities for the interest editor.

Handles path resolution for both development mode and frozen (PyInstaller) executables.
- In development: paths are relative to the project root
- When frozen: paths are relative to the executable location

External data (db/, config.json) lives NEXT TO the executable, not bundled inside.
"""

import sys
from pathlib import Path


def get_app_dir() -> Path:
    """
    Get the application directory.

    - In development: the project root (parent of interest_editor/)
    - When frozen: the directory containing the executable
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent.parent


def get_db_dir() -> Path:
    """Get the database directory (db/) holding the catalog and user selections."""
    return get_app_dir() / "db"


def get_config_path() -> Path:
    """Get the path to the config file (interest limits, session TTL, backend)."""
    return get_app_dir() / "config.json"


def get_locales_dir() -> Path:
    """Get the directory with the YAML string tables."""
    return Path(__file__).parent / "locales"


def ensure_db_dir() -> Path:
    """
    Ensure the db directory exists, creating it if necessary.
    Returns the path to the db directory.
    """
    db_dir = get_db_dir()
    db_dir.mkdir(parents=True, exist_ok=True)
    return db_dir
