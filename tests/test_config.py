from __future__ import annotations

import json

import pytest

from album_vault import config
from album_vault.errors import ConfigError, ConfigFileError

ENV_KEYS = ("VAULT_BASE_URL", "VAULT_RESOURCE", "VAULT_DOCUMENT_ID", "VAULT_TIMEOUT", "VAULT_STORE")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _write(tmp_path, payload) -> str:
    path = tmp_path / "vault_config.json"
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
    return str(path)


def test_missing_file_uses_defaults(tmp_path) -> None:
    app = config.load_app_config(str(tmp_path / "absent.json"))
    assert app.remote.base_url == config.DEFAULT_BASE_URL
    assert app.remote.resource == config.DEFAULT_RESOURCE
    assert app.remote.document_id == config.DEFAULT_DOCUMENT_ID
    assert app.store.backend == "http"
    assert app.retry.attempts == config.DEFAULT_RETRIES
    assert app.retry.jitter is True
    assert app.media.skip_reserved_names is True
    assert ".jpg" in app.media.image_extensions


def test_json_sections_are_applied(tmp_path) -> None:
    path = _write(
        tmp_path,
        {
            "remote": {"base_url": "https://store.test/api/", "resource": "/libs/", "document_id": 7, "timeout": 12},
            "store": {"backend": "FILE", "file_path": "lib.json"},
            "retry": {"attempts": 0, "base_delay": 1, "max_delay": 4, "jitter": False},
            "media": {"extra_image_extensions": "jxl, .QOI", "prefer_local_urls": True},
        },
    )
    app = config.load_app_config(path)
    assert app.remote.base_url == "https://store.test/api"
    assert app.remote.resource == "libs"
    assert app.remote.document_id == "7"
    assert app.remote.timeout == 12
    assert app.store.backend == "file"
    assert app.store.file_path == "lib.json"
    assert app.retry.attempts == 1
    assert (app.retry.base_delay, app.retry.max_delay, app.retry.jitter) == (1.0, 4.0, False)
    assert {".jxl", ".qoi"} <= app.media.image_extensions
    assert app.media.prefer_local_urls is True


def test_environment_overrides_json(tmp_path, monkeypatch) -> None:
    path = _write(tmp_path, {"remote": {"base_url": "https://json.test"}})
    monkeypatch.setenv("VAULT_BASE_URL", "https://env.test")
    monkeypatch.setenv("VAULT_STORE", "file")
    app = config.load_app_config(path)
    assert app.remote.base_url == "https://env.test"
    assert app.store.backend == "file"


def test_invalid_values_fall_back_or_raise(tmp_path, monkeypatch, capsys) -> None:
    path = _write(tmp_path, {"store": {"backend": "ftp"}, "media": {"placeholder_url_template": "https://x.test/fixed"}})
    app = config.load_app_config(path)
    assert app.store.backend == "http"
    assert app.media.placeholder_url_template == config.DEFAULT_PLACEHOLDER_URL_TEMPLATE
    assert "Unknown store backend" in capsys.readouterr().out

    monkeypatch.setenv("VAULT_TIMEOUT", "soon")
    with pytest.raises(ConfigError):
        config.load_app_config(path)


def test_invalid_json_raises(tmp_path) -> None:
    with pytest.raises(ConfigFileError):
        config.load_app_config(_write(tmp_path, "{broken"))
    with pytest.raises(ConfigFileError):
        config.load_app_config(_write(tmp_path, "[1, 2]"))


def test_reserved_entry_names() -> None:
    assert config.is_valid_entry_name("Holiday")
    assert not config.is_valid_entry_name("@eaDir")
    assert not config.is_valid_entry_name("  ")
