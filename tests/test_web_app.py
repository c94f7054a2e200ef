"""Tests for the Flask app and the CLI."""

from __future__ import annotations

import json

import pytest

from flexobjects.main import main
from flexobjects.web_app import create_app

pytestmark = pytest.mark.web


@pytest.fixture()
def client(flex):
    app = create_app(flex)
    app.config["TESTING"] = True
    return app.test_client()


def test_index_lists_directories(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.get_json()["directories"] == [{"type": "contacts", "title": "Contacts"}]


def test_list_objects_with_search_and_sort(client):
    resp = client.get("/flex/contacts?search=smith&sort=first_name:desc")
    data = resp.get_json()

    assert resp.status_code == 200
    assert data["keys"] == ["carol", "alice"]
    assert data["objects"]["alice"]["email"] == "alice@example.com"


def test_list_objects_ignores_hidden_files(client, storage_dir):
    (storage_dir / "contacts" / ".draft.json").write_text("{}", encoding="utf-8")
    resp = client.get("/flex/contacts")
    assert resp.status_code == 200
    assert resp.get_json()["keys"] == ["alice", "bob", "carol"]


def test_list_objects_with_key_field(client):
    data = client.get("/flex/contacts?key_field=flex_key").get_json()
    assert data["key_field"] == "flex_key"
    assert data["keys"][0] == "contacts.alice"


def test_bad_input_is_rejected(client):
    assert client.get("/flex/contacts?sort=name:up").status_code == 400
    assert client.get("/flex/contacts?key_field=email").status_code == 400


def test_unknown_type_is_404(client):
    resp = client.get("/flex/products")
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_guest_without_access_sees_nothing(flex):
    flex.config.guest_access = ["site.flex.products.read"]
    client = create_app(flex).test_client()
    assert client.get("/flex/contacts").get_json()["count"] == 0


def test_render_route(client, flex):
    resp = client.get("/flex/contacts/render?title=People")

    assert resp.status_code == 200
    assert resp.mimetype == "text/html"
    assert "<h2>People</h2>" in resp.get_data(as_text=True)
    checksum = flex.get_directory("contacts").get_collection().get_cache_checksum()
    assert resp.headers["X-Flex-Checksum"] == checksum


def test_debugger_is_reset_per_request(client, flex):
    for i in range(5):
        assert client.get(f"/flex/contacts/render?n={i}").status_code == 200
    client.get("/flex/contacts/render/missing")

    timers = flex.debugger.get_timers()
    assert len(timers) == 1
    assert timers[0]["description"] == "Render Collection contacts (missing)"
    assert len(flex.debugger.get_exceptions()) == 1


def test_render_route_with_table_layout(client):
    html = client.get("/flex/contacts/render/table?columns=key,address.city").get_data(as_text=True)
    assert "<th>address.city</th>" in html
    assert "<td>Copenhagen</td>" in html


def test_cli_types(storage_dir, capsys):
    assert main(["types"]) == 0
    assert capsys.readouterr().out.strip() == "contacts\tContacts"


def test_cli_list(storage_dir, capsys):
    assert main(["list", "contacts", "--search", "smith", "--sort", "first_name:desc"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert list(data) == ["carol", "alice"]


def test_cli_render(storage_dir, capsys):
    assert main(["render", "contacts", "--context", "title=People"]) == 0
    assert "<h2>People</h2>" in capsys.readouterr().out


def test_cli_errors(storage_dir):
    assert main(["list", "products"]) == 1
    assert main(["list", "contacts", "--sort", "name:up"]) == 2
    assert main(["render", "contacts", "--context", "novalue"]) == 2
