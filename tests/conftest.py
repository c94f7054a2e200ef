"""Pytest configuration and shared fixtures for tests."""

import json
import os
from pathlib import Path

import pytest

from flexobjects.core.config import config as flex_config
from flexobjects.core.flex import Flex


CONTACTS = {
    "alice": {
        "id": "A1",
        "first_name": "Alice",
        "last_name": "Smith",
        "email": "alice@example.com",
        "address": {"city": "Berlin"},
    },
    "bob": {
        "id": "B2",
        "first_name": "Bob",
        "last_name": "Jones",
        "email": "bob@example.org",
        "address": {"city": "Amsterdam"},
    },
    "carol": {
        "id": "C3",
        "first_name": "Carol",
        "last_name": "Smith",
        "email": "carol@example.com",
        "address": {"city": "Copenhagen"},
    },
}

CONTACTS_BLUEPRINT = {
    "title": "Contacts",
    "data": {
        "search": {
            "fields": ["first_name", "last_name", "email"],
            "options": {"contains": 1},
        }
    },
}


def pytest_configure(config):
    """Register custom markers to avoid pytest warnings and document usage."""
    config.addinivalue_line("markers", "web: tests that go through the Flask test client")


def write_rows(folder: Path, rows: dict, base_mtime: int = 1_700_000_000) -> None:
    """Write one JSON file per row with distinct, predictable mtimes."""
    folder.mkdir(parents=True, exist_ok=True)
    for i, (key, row) in enumerate(rows.items()):
        path = folder / f"{key}.json"
        path.write_text(json.dumps(row), encoding="utf-8")
        os.utime(path, (base_mtime + i, base_mtime + i))


@pytest.fixture
def app_config(tmp_path, monkeypatch):
    """Point the config singleton at a temporary project tree."""
    monkeypatch.setenv("FLEX_STORAGE_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("FLEX_TEMPLATES_DIR", str(tmp_path / "templates"))
    monkeypatch.setenv("FLEX_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("FLEX_CACHE_ENABLED", "true")
    monkeypatch.setenv("FLEX_CACHE_TTL_SECONDS", "0")
    monkeypatch.setenv("FLEX_DEBUG", "false")
    monkeypatch.setenv("FLEX_GUEST_ACCESS", "site.flex.*.read")
    flex_config.reload()
    yield flex_config
    monkeypatch.undo()
    flex_config.reload()


@pytest.fixture
def storage_dir(app_config):
    contacts_dir = app_config.storage_dir / "contacts"
    write_rows(contacts_dir, CONTACTS)
    (contacts_dir / "blueprint.json").write_text(json.dumps(CONTACTS_BLUEPRINT), encoding="utf-8")
    return app_config.storage_dir


@pytest.fixture
def flex(storage_dir, app_config):
    return Flex.from_config(app_config)


@pytest.fixture
def directory(flex):
    return flex.get_directory("contacts")


@pytest.fixture
def contacts(directory):
    """The contacts collection keyed by storage key (alice, bob, carol)."""
    return directory.get_collection()


@pytest.fixture
def templates_dir(app_config):
    path = app_config.templates_dir
    path.mkdir(parents=True, exist_ok=True)
    return path
