"""Configuration loading for the album vault synchronizer."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from dotenv import load_dotenv

from album_vault.errors import ConfigError, ConfigFileError

load_dotenv()

CONFIG_ENV = os.getenv("VAULT_CONFIG_PATH", "vault_config.json")
CONFIG_PATH = CONFIG_ENV


def _resolve_config_path(path: str) -> str:
    """Resolve a config path: try as given, then relative to repo root when missing.

    If `path` is absolute, return it. For relative paths, prefer the cwd location
    if present, otherwise look for the file under the repository root (parent of
    the package directory). Returns the absolute candidate path (even if it does
    not exist) so callers can attempt to open it and handle missing files.
    """
    if os.path.isabs(path):
        return path
    cwd_candidate = os.path.abspath(path)
    if os.path.exists(cwd_candidate):
        return cwd_candidate
    pkg_dir = os.path.dirname(__file__)
    repo_root = os.path.abspath(os.path.join(pkg_dir, os.pardir))
    repo_candidate = os.path.join(repo_root, path)
    if os.path.exists(repo_candidate):
        return repo_candidate
    return cwd_candidate


# Folder names produced by NAS indexers and desktop shells; never imported as albums.
RESERVED_NAMES: Set[str] = {
    "@eadir",
    "#snapshot",
    "@tmp",
    ".ds_store",
    "__macosx",
    "thumbs.db",
}

IMAGE_FILE_EXTENSIONS: Set[str] = {
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
    ".bmp",
    ".webp",
    ".tif",
    ".tiff",
    ".heic",
    ".heif",
    ".avif",
    ".arw",
    ".cr2",
    ".cr3",
    ".nef",
    ".dng",
    ".rw2",
    ".orf",
    ".raf",
    ".srw",
    ".pef",
}

DEFAULT_BASE_URL = "https://694d4185ad0f8c8e6e203206.mockapi.io"
DEFAULT_RESOURCE = "vault"
DEFAULT_DOCUMENT_ID = "1"
DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_RETRIES = 5
DEFAULT_RETRY_BASE_SECONDS = 0.5
DEFAULT_RETRY_MAX_SECONDS = 8.0
DEFAULT_PLACEHOLDER_URL_TEMPLATE = "https://picsum.photos/seed/{seed}/800/600"


@dataclass
class RemoteSettings:
    base_url: str
    resource: str
    document_id: str
    timeout: int

    @classmethod
    def from_env(cls, json_section: Dict[str, object]) -> "RemoteSettings":
        base_url = os.getenv("VAULT_BASE_URL") or str(json_section.get("base_url") or DEFAULT_BASE_URL)
        resource = os.getenv("VAULT_RESOURCE") or str(json_section.get("resource") or DEFAULT_RESOURCE)
        document_id = os.getenv("VAULT_DOCUMENT_ID") or str(json_section.get("document_id") or DEFAULT_DOCUMENT_ID)
        raw_timeout = os.getenv("VAULT_TIMEOUT") or json_section.get("timeout", DEFAULT_TIMEOUT_SECONDS)
        try:
            timeout = int(raw_timeout)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid remote timeout '{raw_timeout}'") from exc
        base_url = base_url.strip().rstrip("/")
        if not base_url:
            raise ConfigError("Remote base_url must not be empty")
        return cls(base_url, resource.strip().strip("/"), document_id.strip(), timeout)


@dataclass
class StoreSettings:
    backend: str
    file_path: str

    @classmethod
    def from_json(cls, data: Dict[str, object]) -> "StoreSettings":
        backend = str(os.getenv("VAULT_STORE") or data.get("backend") or "http").strip().lower()
        if backend not in {"http", "file"}:
            print(f"⚠️ Unknown store backend '{backend}'; falling back to http")
            backend = "http"
        file_path = str(data.get("file_path") or "vault_library.json")
        return cls(backend=backend, file_path=file_path)


@dataclass
class RetrySettings:
    attempts: int
    base_delay: float
    max_delay: float
    jitter: bool

    @classmethod
    def from_json(cls, data: Dict[str, object]) -> "RetrySettings":
        try:
            attempts = int(data.get("attempts", DEFAULT_RETRIES))
        except (TypeError, ValueError):
            print("⚠️ Invalid retry.attempts; using the default")
            attempts = DEFAULT_RETRIES
        if attempts <= 0:
            attempts = 1
        return cls(
            attempts=attempts,
            base_delay=float(data.get("base_delay", DEFAULT_RETRY_BASE_SECONDS)),
            max_delay=float(data.get("max_delay", DEFAULT_RETRY_MAX_SECONDS)),
            jitter=bool(data.get("jitter", True)),
        )


def _coerce_list(value: object) -> List[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    if isinstance(value, str):
        return [token.strip() for token in value.split(",") if token.strip()]
    return []


@dataclass
class MediaSettings:
    placeholder_url_template: str
    prefer_local_urls: bool
    skip_reserved_names: bool
    image_extensions: Set[str] = field(default_factory=lambda: set(IMAGE_FILE_EXTENSIONS))

    @classmethod
    def from_json(cls, data: Dict[str, object]) -> "MediaSettings":
        template = str(data.get("placeholder_url_template") or DEFAULT_PLACEHOLDER_URL_TEMPLATE)
        if "{seed}" not in template:
            print("⚠️ media.placeholder_url_template lacks '{seed}'; using the default template")
            template = DEFAULT_PLACEHOLDER_URL_TEMPLATE
        extensions = set(IMAGE_FILE_EXTENSIONS)
        for token in _coerce_list(data.get("extra_image_extensions")):
            lowered = token.lower()
            extensions.add(lowered if lowered.startswith(".") else f".{lowered}")
        return cls(
            placeholder_url_template=template,
            prefer_local_urls=bool(data.get("prefer_local_urls", False)),
            skip_reserved_names=bool(data.get("skip_reserved_names", True)),
            image_extensions=extensions,
        )


def is_valid_entry_name(name: str) -> bool:
    normalized = (name or "").strip()
    if not normalized:
        return False
    return normalized.lower() not in RESERVED_NAMES


@dataclass
class AppConfig:
    remote: RemoteSettings
    store: StoreSettings
    retry: RetrySettings
    media: MediaSettings


def _load_json_config(path: str = CONFIG_PATH) -> Dict[str, object]:
    resolved = _resolve_config_path(path)
    try:
        with open(resolved, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError:
        return {}
    except json.JSONDecodeError as exc:
        raise ConfigFileError(f"Invalid JSON in config file '{resolved}': {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigFileError(f"Config file '{resolved}' must contain a JSON object")
    return data


def load_app_config(path: Optional[str] = None) -> AppConfig:
    data = _load_json_config(path or CONFIG_PATH)
    return AppConfig(
        remote=RemoteSettings.from_env(data.get("remote", {}) or {}),
        store=StoreSettings.from_json(data.get("store", {}) or {}),
        retry=RetrySettings.from_json(data.get("retry", {}) or {}),
        media=MediaSettings.from_json(data.get("media", {}) or {}),
    )


APP_CONFIG = load_app_config()

__all__ = [
    "APP_CONFIG",
    "AppConfig",
    "ConfigError",
    "ConfigFileError",
    "DEFAULT_RETRIES",
    "IMAGE_FILE_EXTENSIONS",
    "MediaSettings",
    "RESERVED_NAMES",
    "RemoteSettings",
    "RetrySettings",
    "StoreSettings",
    "is_valid_entry_name",
    "load_app_config",
]
