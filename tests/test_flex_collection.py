"""Tests for FlexCollection bulk operations (everything but rendering)."""

from __future__ import annotations

import hashlib
import json

import pytest

from flexobjects.core.models import FlexObject, User
from flexobjects.core.objects import FlexCollection


def test_collection_is_keyed_by_type_and_storage_key(contacts):
    assert contacts.get_key() == "contacts"
    assert contacts.get_type() == "contacts"
    assert contacts.get_type(True) == "c.contacts"
    assert contacts.get_key_field() == "storage_key"
    assert contacts.get_keys() == ["alice", "bob", "carol"]


def test_cached_methods_policy():
    methods = FlexCollection.get_cached_methods()
    assert methods["search"] is True
    assert methods["render"] is False
    assert methods["is_authorized"] == "session"


def test_create_from_array(directory):
    entries = {"x": directory.create_object({"title": "X"}, "x")}
    collection = FlexCollection.create_from_array(entries, directory, "key")
    assert collection.get_key_field() == "key"
    assert collection.get_flex_directory() is directory
    assert collection.get_key() == "contacts"


def test_derived_collections_keep_directory_and_key_field(contacts):
    derived = contacts.with_key_field("key").select(["carol"])
    assert isinstance(derived, FlexCollection)
    assert derived.get_flex_directory() is contacts.get_flex_directory()
    assert derived.get_key_field() == "key"


def test_search_uses_configured_fields(contacts):
    assert contacts.search("smith").get_keys() == ["carol", "alice"]
    assert contacts.search("example.org").get_keys() == ["bob"]
    assert contacts.search("nobody").is_empty()


def test_search_orders_matches_by_key_descending(directory):
    entries = {
        key: directory.create_object({"title": title}, key)
        for key, title in [("a", "Jo"), ("b", "Jones"), ("c", "Major Jo"), ("d", "Nope")]
    }
    collection = FlexCollection.create_from_array(entries, directory)
    options = {"same_as": 1, "starts_with": 0.5, "contains": 0.2}
    result = collection.search("jo", "title", options)
    assert result.get_keys() == ["c", "b", "a"]


def test_sort(contacts):
    ordered = contacts.sort({"last_name": "ASC", "first_name": "DESC"})
    assert ordered.get_keys() == ["bob", "carol", "alice"]
    assert contacts.sort({"address.city": "ASC"}).get_keys() == ["bob", "alice", "carol"]


def test_with_key_field(contacts):
    assert contacts.with_key_field("storage_key") is contacts

    by_flex_key = contacts.with_key_field("flex_key")
    assert by_flex_key.get_keys() == ["contacts.alice", "contacts.bob", "contacts.carol"]
    assert by_flex_key.get_key_field() == "flex_key"

    by_key = by_flex_key.with_key_field()
    assert by_key.get_key_field() == "key"
    assert by_key.get_keys() == ["alice", "bob", "carol"]

    with pytest.raises(ValueError):
        contacts.with_key_field("email")


def test_key_lists(contacts):
    assert contacts.get_storage_keys() == {"alice": "alice", "bob": "bob", "carol": "carol"}
    assert contacts.with_key_field("flex_key").get_flex_keys()["contacts.bob"] == "contacts.bob"
    assert list(contacts.get_timestamps().values()) == [1_700_000_000, 1_700_000_001, 1_700_000_002]


def test_cache_key_and_checksum(contacts):
    keys_hash = hashlib.sha1(json.dumps(["alice", "bob", "carol"]).encode()).hexdigest()
    assert contacts.get_cache_key() == f"c.contacts.{keys_hash}"

    stamps = {"alice": 1_700_000_000, "bob": 1_700_000_001, "carol": 1_700_000_002}
    assert contacts.get_cache_checksum() == hashlib.sha1(json.dumps(stamps).encode()).hexdigest()

    # Subsets and reorderings change the key
    assert contacts.select(["bob", "alice"]).get_cache_key() != contacts.get_cache_key()


def test_meta_data(contacts):
    assert contacts.get_meta_data("alice")["flex_key"] == "contacts.alice"
    assert contacts.get_meta_data("nobody") == {}


def test_is_authorized(contacts):
    reader = User("reader", {"site.flex.contacts.read"})
    assert contacts.is_authorized("read", user=reader).get_keys() == ["alice", "bob", "carol"]
    assert contacts.is_authorized("delete", user=reader).is_empty()
    # No user means nothing is authorized
    assert contacts.is_authorized("read").is_empty()
    admin = User("admin", super_user=True)
    assert len(contacts.is_authorized("delete", "admin", admin)) == 3


def test_find(contacts):
    assert contacts.find("b2").get_key() == "bob"
    assert contacts.find("CAROL", "first_name").get_key() == "carol"
    assert contacts.find("") is None
    assert contacts.find("zzz") is None


def test_to_dict_and_repr(contacts):
    data = contacts.to_dict()
    assert data["alice"]["first_name"] == "Alice"
    assert data["alice"]["key"] == "alice"
    assert repr(contacts) == (
        "FlexCollection(type='contacts', key='contacts', key_field='storage_key', count=3)"
    )


def test_index(contacts, directory):
    index = contacts.with_key_field("key").get_index()
    assert index.get_key_field() == "key"
    assert index.get_keys() == ["alice", "bob", "carol"]
    assert index.get_cache_checksum() == contacts.get_cache_checksum()

    loaded = directory.get_index(["carol", "alice"]).load_collection()
    assert loaded.get_keys() == ["carol", "alice"]
    assert all(isinstance(obj, FlexObject) for obj in loaded.values())


def test_related_directory(contacts, directory):
    assert contacts.get_related_directory("contacts") is directory
    assert contacts.get_related_directory("products") is None


def test_collection_without_directory_has_no_type():
    with pytest.raises(RuntimeError):
        FlexCollection({}).get_type()
