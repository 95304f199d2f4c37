"""CLI tests using typer's CliRunner.

Keyring access is monkeypatched; uploads run against an
``httpx.MockTransport`` injected by patching ``StorageApiClient``.
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

from cloudstash import config as config_mod
from cloudstash.cli import app
from cloudstash.upload import client as client_mod

runner = CliRunner()


@pytest.fixture
def fake_keyring(monkeypatch):
    store: dict[tuple[str, str], str] = {}

    def _get(service, key):
        return store.get((service, key))

    def _set(service, key, value):
        store[(service, key)] = value

    def _delete(service, key):
        del store[(service, key)]

    monkeypatch.setattr(config_mod.keyring, "get_password", _get)
    monkeypatch.setattr(config_mod.keyring, "set_password", _set)
    monkeypatch.setattr(config_mod.keyring, "delete_password", _delete)
    monkeypatch.delenv("CLOUDSTASH_API_TOKEN", raising=False)
    monkeypatch.delenv("CLOUDSTASH_API_URL", raising=False)
    return store


@pytest.fixture
def sample_files(tmp_path: Path) -> list[Path]:
    paths = []
    for name in ("a.txt", "b.txt"):
        path = tmp_path / name
        path.write_text(f"contents of {name}")
        paths.append(path)
    return paths


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "upload_config.json"
    path.write_text(
        json.dumps({"api_base_url": "https://api.example.com", "reset_delay_seconds": 0})
    )
    return path


def _patch_transport(monkeypatch, handler):
    """Make every StorageApiClient the CLI builds use *handler*."""
    original = client_mod.StorageApiClient

    class _MockedApi(original):
        def __init__(self, base_url, **kwargs):
            super().__init__(base_url, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(client_mod, "StorageApiClient", _MockedApi)


def _storage_handler(fail_names: set[str] = frozenset()):
    ids = iter(range(1, 100))

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/files/upload-url":
            name = json.loads(request.content)["fileName"]
            return httpx.Response(
                200, json={"uploadUrl": f"https://objects.example.com/{name}", "fileId": next(ids)}
            )
        if request.url.path == "/api/files/upload/confirm":
            return httpx.Response(200, json={"message": "File uploaded successfully"})
        name = request.url.path.lstrip("/")
        return httpx.Response(500 if name in fail_names else 200)

    return handler


class TestUploadCommand:
    def test_dry_run_lists_files(self, sample_files, fake_keyring):
        result = runner.invoke(app, ["upload", "--dry-run", *map(str, sample_files)])

        assert result.exit_code == 0
        assert "a.txt" in result.output
        assert "b.txt" in result.output
        assert "2 file(s) selected" in result.output

    def test_missing_token_exits(self, sample_files, config_file, fake_keyring):
        result = runner.invoke(
            app, ["upload", "--config", str(config_file), *map(str, sample_files)]
        )

        assert result.exit_code == 1
        assert "token not found" in result.output

    def test_missing_file_rejected(self, tmp_path, fake_keyring):
        result = runner.invoke(app, ["upload", str(tmp_path / "nope.txt")])
        assert result.exit_code != 0

    def test_successful_upload(self, sample_files, config_file, fake_keyring, monkeypatch):
        fake_keyring[("cloudstash", "api_token")] = "tok"
        _patch_transport(monkeypatch, _storage_handler())

        result = runner.invoke(
            app,
            ["upload", "--config", str(config_file), "--folder", "3", *map(str, sample_files)],
        )

        assert result.exit_code == 0, result.output
        assert "All 2 files uploaded successfully!" in result.output

    def test_partial_failure_exit_code(
        self, sample_files, config_file, fake_keyring, monkeypatch
    ):
        fake_keyring[("cloudstash", "api_token")] = "tok"
        _patch_transport(monkeypatch, _storage_handler(fail_names={"b.txt"}))

        result = runner.invoke(
            app, ["upload", "--config", str(config_file), *map(str, sample_files)]
        )

        assert result.exit_code == 1
        assert "1 succeeded, 1 failed" in result.output
        assert "Failed files: b.txt" in result.output


class TestConfigCommands:
    def test_set_token_stores_and_echoes_masked(self, fake_keyring):
        result = runner.invoke(app, ["config", "set-token", "abcdefghijkl"])

        assert result.exit_code == 0
        assert fake_keyring[("cloudstash", "api_token")] == "abcdefghijkl"
        assert "abcdefgh****" in result.output
        assert "abcdefghijkl" not in result.output

    def test_empty_token_rejected(self, fake_keyring):
        result = runner.invoke(app, ["config", "set-token", "  "])
        assert result.exit_code == 1
        assert "Token cannot be empty" in result.output
        assert fake_keyring == {}

    def test_show_masks_keyring_token(self, fake_keyring, tmp_path: Path):
        fake_keyring[("cloudstash", "api_token")] = "abcdefghijkl"

        result = runner.invoke(
            app, ["config", "show", "--config", str(tmp_path / "missing.json")]
        )

        assert result.exit_code == 0
        assert "abcdefgh****" in result.output
        assert "keyring" in result.output
        assert "http://localhost:8080" in result.output
        assert "abcdefghijkl" not in result.output

    def test_show_reports_file_token_source(self, fake_keyring, tmp_path: Path):
        path = tmp_path / "upload_config.json"
        path.write_text(
            json.dumps({"api_base_url": "https://storage.example.com", "api_token": "file-token-123"})
        )

        result = runner.invoke(app, ["config", "show", "--config", str(path)])

        assert result.exit_code == 0
        assert "https://storage.example.com" in result.output
        assert "file-tok******" in result.output
        assert "config file" in result.output

    def test_show_without_token(self, fake_keyring, tmp_path: Path):
        result = runner.invoke(
            app, ["config", "show", "--config", str(tmp_path / "missing.json")]
        )

        assert result.exit_code == 0
        assert "not set" in result.output
        assert "cloudstash config set-token" in result.output

    def test_remove_token(self, fake_keyring):
        fake_keyring[("cloudstash", "api_token")] = "tok"
        result = runner.invoke(app, ["config", "remove-token"])
        assert result.exit_code == 0
        assert "Token removed" in result.output
        assert fake_keyring == {}

    def test_remove_token_when_absent(self, fake_keyring):
        result = runner.invoke(app, ["config", "remove-token"])
        assert result.exit_code == 0
        assert "Nothing to remove" in result.output
