"""Hierarchical album library with optimistic local edits and whole-document sync."""

__version__ = "0.1.0-dev"

from .config import (
	APP_CONFIG,
	AppConfig,
	load_app_config,
)
from .errors import (
	AlbumVaultError,
	ConfigError,
	ConfigFileError,
	LoadFailure,
	PersistFailure,
	RemoteStoreError,
	StalePathError,
)
from .models import Album, Forest, Image, new_id
from .store import DocumentStore, FileDocumentStore, HttpDocumentStore, build_store
from .sync import SyncController, SyncStatus
from .browser import LibraryBrowser

__all__ = [
	"__version__",
	"APP_CONFIG",
	"AppConfig",
	"load_app_config",
	"AlbumVaultError",
	"ConfigError",
	"ConfigFileError",
	"LoadFailure",
	"PersistFailure",
	"RemoteStoreError",
	"StalePathError",
	"Album",
	"Forest",
	"Image",
	"new_id",
	"DocumentStore",
	"FileDocumentStore",
	"HttpDocumentStore",
	"build_store",
	"SyncController",
	"SyncStatus",
	"LibraryBrowser",
]
