"""
Storage abstraction for the interest editor.

Supports multiple storage backends:
- FileBackend: Local JSON files (default)
- SupabaseBackend: Cloud PostgreSQL

and session stores:
- InMemorySessionStore: process-local, TTL-bounded
- MappingSessionStore: on top of NiceGUI app.storage or any mapping
"""

from interest_editor.storage.protocol import CatalogService, SelectionRepository, SessionStore
from interest_editor.storage.file_backend import FileBackend
from interest_editor.storage.session_store import (
    InMemorySessionStore,
    MappingSessionStore,
    session_key,
)
from interest_editor.storage.factory import create_backend, get_backend_type

__all__ = [
    'CatalogService',
    'SelectionRepository',
    'SessionStore',
    'FileBackend',
    'InMemorySessionStore',
    'MappingSessionStore',
    'session_key',
    'create_backend',
    'get_backend_type',
]
